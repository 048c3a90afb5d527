"""
Generic encrypted key export and import

The two engines here know nothing about concrete key types. A key type plugs
in with its identifier, a password adulterator, a payload builder and a
constructor, either as plain callables or through a ``KeyCodec``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, TypeVar, Union

from ..crypto.keystore import CipherBlob, encrypt_data, decrypt_data
from ..crypto.memory import clear_key_material, scoped_key_material
from ..crypto.scrypt_params import ScryptParams, STANDARD_SCRYPT_PARAMS
from ..exceptions import AuthenticationFailedError, BuilderError, KeyTypeMismatchError, ValidationError
from .envelope import EncryptedKeyExport, encode_envelope, decode_envelope
from .password import PasswordAdulterator, adulterate_password

logger = logging.getLogger(__name__)

K = TypeVar('K')

PayloadBuilder = Callable[[str, Any, CipherBlob], EncryptedKeyExport]
KeyConstructor = Callable[[EncryptedKeyExport, bytearray], Any]


def to_encrypted_json(key_type: str,
                      raw_private_key: Union[bytes, bytearray],
                      key: Any,
                      password: str,
                      scrypt_params: ScryptParams,
                      adulterated_password: PasswordAdulterator,
                      build_payload: PayloadBuilder) -> bytes:
    """
    Encrypt a private key into a JSON envelope.

    Args:
        key_type: Key type identifier recorded in the envelope
        raw_private_key: Raw private key bytes
        key: The key object handed to ``build_payload``
        password: User password
        scrypt_params: KDF cost parameters
        adulterated_password: Domain separator for this key type
        build_payload: Assembles the envelope from (key_type, key, crypto)

    Returns:
        bytes: Serialized envelope

    Raises:
        BackendError: If the KDF parameters are rejected or encryption fails
        Exception: Whatever ``build_payload`` raises, unchanged
    """
    if not isinstance(password, str):
        raise ValidationError("Password must be a string", "INVALID_PASSWORD_TYPE")

    logger.debug(f"Exporting {key_type} key")

    with scoped_key_material(raw_private_key) as raw:
        crypto = encrypt_data(raw, adulterated_password(password), scrypt_params)

    export = build_payload(key_type, key, crypto)
    data = encode_envelope(export)

    logger.debug(f"Exported {key_type} key {export.public_key}")
    return data


def from_encrypted_json(key_type: str,
                        key_json: Union[bytes, bytearray, str],
                        password: str,
                        adulterated_password: PasswordAdulterator,
                        construct: KeyConstructor) -> Any:
    """
    Decrypt a JSON envelope back into a key object.

    ``construct`` receives the decrypted bytes in a buffer that is zeroed as
    soon as it returns, so it must copy whatever it keeps.

    Args:
        key_type: Key type identifier the caller expects
        key_json: Serialized envelope
        password: User password
        adulterated_password: Domain separator for this key type
        construct: Rebuilds the key from (envelope, raw bytes)

    Returns:
        The object returned by ``construct``

    Raises:
        ParseError: If the envelope is malformed
        KeyTypeMismatchError: If the envelope holds another key type
        AuthenticationFailedError: On a wrong password or corrupted data
        Exception: Whatever ``construct`` raises, unchanged
    """
    if not isinstance(password, str):
        raise ValidationError("Password must be a string", "INVALID_PASSWORD_TYPE")

    export = decode_envelope(key_json)

    if export.key_type != key_type:
        logger.warning(f"Rejected key import: expected {key_type} key, envelope holds {export.key_type}")
        raise KeyTypeMismatchError(key_type, export.key_type)

    logger.debug(f"Importing {key_type} key {export.public_key}")

    try:
        raw = decrypt_data(export.crypto, adulterated_password(password))
    except AuthenticationFailedError:
        logger.warning(f"Could not decrypt {key_type} key {export.public_key}")
        raise

    try:
        return construct(export, raw)
    finally:
        clear_key_material(raw)


class KeyCodec(ABC, Generic[K]):
    """
    Everything the export engines need to know about one key type

    Subclasses set ``key_type`` and ``password_prefix`` and implement the
    abstract methods.
    """

    key_type: str = ''
    password_prefix: str = ''

    def adulterate_password(self, password: str) -> str:
        return adulterate_password(self.password_prefix, password)

    @abstractmethod
    def raw_private_key(self, key: K) -> Union[bytes, bytearray]:
        """Raw private key bytes of ``key``"""

    @abstractmethod
    def public_key_string(self, key: K) -> str:
        """Public identifier recorded in the envelope"""

    @abstractmethod
    def reconstruct(self, export: EncryptedKeyExport, raw: bytearray) -> K:
        """Rebuild a key from decrypted bytes"""

    def build_payload(self, key_type: str, key: K, crypto: CipherBlob) -> EncryptedKeyExport:
        public_key = self.public_key_string(key)
        if not isinstance(public_key, str) or not public_key:
            raise BuilderError(f"{key_type} codec produced an empty public key", "INVALID_PUBLIC_KEY")
        return EncryptedKeyExport(
            key_type=key_type,
            public_key=public_key,
            crypto=crypto,
        )


def export_key(codec: KeyCodec[K],
               key: K,
               password: str,
               scrypt_params: ScryptParams = STANDARD_SCRYPT_PARAMS) -> bytes:
    """
    Export a key through its codec.

    Args:
        codec: Codec for the key's type
        key: Key to export
        password: User password
        scrypt_params: KDF cost parameters

    Returns:
        bytes: Serialized envelope
    """
    return to_encrypted_json(
        codec.key_type,
        codec.raw_private_key(key),
        key,
        password,
        scrypt_params,
        codec.adulterate_password,
        codec.build_payload,
    )


def import_key(codec: KeyCodec[K], key_json: Union[bytes, bytearray, str], password: str) -> K:
    """
    Import a key through its codec.

    Args:
        codec: Codec for the expected key type
        key_json: Serialized envelope
        password: User password

    Returns:
        The reconstructed key
    """
    return from_encrypted_json(
        codec.key_type,
        key_json,
        password,
        codec.adulterate_password,
        codec.reconstruct,
    )
