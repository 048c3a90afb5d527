"""
CSA keys: Ed25519 signing keys with encrypted export support
"""

from typing import Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from ..crypto.scrypt_params import ScryptParams, STANDARD_SCRYPT_PARAMS
from ..exceptions import ConstructorError
from .envelope import EncryptedKeyExport
from .export import KeyCodec, export_key, import_key

CSA_KEY_TYPE = 'CSA'
CSA_PASSWORD_PREFIX = 'csakey'
CSA_PRIVATE_KEY_LENGTH = 32


class CSAKey:
    """
    Ed25519 key identified by its hex encoded public key
    """

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        self._public_key = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw
        )

    @classmethod
    def from_raw(cls, raw: Union[bytes, bytearray]) -> 'CSAKey':
        """
        Build a key from its 32 byte Ed25519 seed.

        Raises:
            ConstructorError: If the seed has the wrong length
        """
        if not isinstance(raw, (bytes, bytearray)) or len(raw) != CSA_PRIVATE_KEY_LENGTH:
            raise ConstructorError(
                f"CSA private key must be exactly {CSA_PRIVATE_KEY_LENGTH} bytes",
                "INVALID_PRIVATE_KEY_LENGTH"
            )
        return cls(Ed25519PrivateKey.from_private_bytes(bytes(raw)))

    def raw(self) -> bytes:
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption()
        )

    @property
    def public_key(self) -> bytes:
        return self._public_key

    def public_key_string(self) -> str:
        return self._public_key.hex()

    @property
    def id(self) -> str:
        return self.public_key_string()

    def sign(self, message: bytes) -> bytes:
        return self._private_key.sign(message)

    def to_encrypted_json(self, password: str, scrypt_params: ScryptParams = STANDARD_SCRYPT_PARAMS) -> bytes:
        """Export this key as an encrypted JSON envelope."""
        return export_key(CSA_KEY_CODEC, self, password, scrypt_params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CSAKey):
            return NotImplemented
        return self._public_key == other._public_key

    def __hash__(self) -> int:
        return hash(self._public_key)

    def __repr__(self) -> str:
        return f"CSAKey(public_key={self.public_key_string()})"


class CSAKeyCodec(KeyCodec[CSAKey]):
    key_type = CSA_KEY_TYPE
    password_prefix = CSA_PASSWORD_PREFIX

    def raw_private_key(self, key: CSAKey) -> bytes:
        return key.raw()

    def public_key_string(self, key: CSAKey) -> str:
        return key.public_key_string()

    def reconstruct(self, export: EncryptedKeyExport, raw: bytearray) -> CSAKey:
        key = CSAKey.from_raw(raw)
        # publicKey sits outside the MAC
        if export.public_key != key.public_key_string():
            raise ConstructorError(
                "Public key in envelope does not match the decrypted private key",
                "PUBLIC_KEY_MISMATCH"
            )
        return key


CSA_KEY_CODEC = CSAKeyCodec()


def csa_key_from_encrypted_json(key_json: Union[bytes, bytearray, str], password: str) -> CSAKey:
    """Import a CSA key from an encrypted JSON envelope."""
    return import_key(CSA_KEY_CODEC, key_json, password)
