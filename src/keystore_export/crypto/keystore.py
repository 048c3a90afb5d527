"""
Password-based encryption backend for key exports

Raw key bytes are encrypted with AES-128-CTR under a key derived with scrypt;
an HMAC-SHA256 over the IV and ciphertext protects integrity. The first half
of the derived key is the cipher key, the second half is the MAC key.
"""

import secrets
import logging
from typing import Dict, Any, Union
from dataclasses import dataclass

# Import cryptography components
try:
    from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
    from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
    from cryptography.hazmat.primitives import hashes, hmac
    from cryptography.exceptions import InvalidSignature
    CRYPTOGRAPHY_AVAILABLE = True
except ImportError:
    CRYPTOGRAPHY_AVAILABLE = False
    Scrypt = None  # type: ignore
    Cipher = None  # type: ignore
    algorithms = None  # type: ignore
    modes = None  # type: ignore
    hashes = None  # type: ignore
    hmac = None  # type: ignore
    InvalidSignature = Exception  # type: ignore

from ..exceptions import (
    AuthenticationFailedError,
    BackendError,
    ParseError,
    UnsupportedPlatformError,
    ValidationError,
)
from .memory import clear_key_material
from .scrypt_params import ScryptParams, SCRYPT_DKLEN

logger = logging.getLogger(__name__)

KEYSTORE_VERSION = 3
CIPHER_NAME = 'aes-128-ctr'
KDF_NAME = 'scrypt'
SALT_LENGTH = 32
IV_LENGTH = 16
CIPHER_KEY_LENGTH = 16


@dataclass(frozen=True)
class KdfParams:
    """
    Scrypt parameters as recorded in an envelope

    Attributes:
        n: CPU/memory cost factor
        r: Block size
        p: Parallelization factor
        dklen: Derived key length in bytes
        salt: Per-export random salt
    """
    n: int
    r: int
    p: int
    dklen: int
    salt: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            'n': self.n,
            'r': self.r,
            'p': self.p,
            'dklen': self.dklen,
            'salt': self.salt.hex(),
        }


@dataclass(frozen=True)
class CipherBlob:
    """
    The ``crypto`` section of an encrypted key export

    Attributes:
        cipher: Cipher name
        ciphertext: Encrypted key bytes
        iv: Cipher IV
        kdf: KDF name
        kdfparams: KDF parameters including the salt
        mac: HMAC-SHA256 over iv || ciphertext
        version: Format version
    """
    cipher: str
    ciphertext: bytes
    iv: bytes
    kdf: str
    kdfparams: KdfParams
    mac: bytes
    version: int = KEYSTORE_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cipher': self.cipher,
            'ciphertext': self.ciphertext.hex(),
            'cipherparams': {'iv': self.iv.hex()},
            'kdf': self.kdf,
            'kdfparams': self.kdfparams.to_dict(),
            'mac': self.mac.hex(),
            'version': self.version,
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'CipherBlob':
        """
        Parse and validate a ``crypto`` section.

        Args:
            data: Decoded JSON value

        Returns:
            CipherBlob: The parsed blob

        Raises:
            ParseError: If a field is missing, mistyped, or unsupported
        """
        crypto = _require_object(data, 'crypto')

        version = _require_int(crypto, 'version', 'crypto')
        if version != KEYSTORE_VERSION:
            raise ParseError(f"Unsupported keystore version: {version}", "UNSUPPORTED_VERSION")

        cipher = _require_str(crypto, 'cipher', 'crypto')
        if cipher != CIPHER_NAME:
            raise ParseError(f"Unsupported cipher: {cipher}", "UNSUPPORTED_CIPHER")

        kdf = _require_str(crypto, 'kdf', 'crypto')
        if kdf != KDF_NAME:
            raise ParseError(f"Unsupported KDF: {kdf}", "UNSUPPORTED_KDF")

        cipherparams = _require_object(_require_field(crypto, 'cipherparams', 'crypto'), 'crypto.cipherparams')
        iv = _require_hex(cipherparams, 'iv', 'crypto.cipherparams')
        if len(iv) != IV_LENGTH:
            raise ParseError(f"IV must be {IV_LENGTH} bytes", "INVALID_IV_LENGTH")

        kdfparams = _require_object(_require_field(crypto, 'kdfparams', 'crypto'), 'crypto.kdfparams')
        dklen = _require_int(kdfparams, 'dklen', 'crypto.kdfparams')
        if dklen != SCRYPT_DKLEN:
            raise ParseError(f"Unsupported dklen: {dklen}", "UNSUPPORTED_DKLEN")

        salt = _require_hex(kdfparams, 'salt', 'crypto.kdfparams')
        if not salt:
            raise ParseError("Salt cannot be empty", "INVALID_SALT")

        mac = _require_hex(crypto, 'mac', 'crypto')
        if not mac:
            raise ParseError("MAC cannot be empty", "INVALID_MAC")

        return cls(
            cipher=cipher,
            ciphertext=_require_hex(crypto, 'ciphertext', 'crypto'),
            iv=iv,
            kdf=kdf,
            kdfparams=KdfParams(
                n=_require_int(kdfparams, 'n', 'crypto.kdfparams'),
                r=_require_int(kdfparams, 'r', 'crypto.kdfparams'),
                p=_require_int(kdfparams, 'p', 'crypto.kdfparams'),
                dklen=dklen,
                salt=salt,
            ),
            mac=mac,
            version=version,
        )


def _require_object(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ParseError(f"{where} must be a JSON object", "INVALID_STRUCTURE")
    return value


def _require_field(data: Dict[str, Any], name: str, where: str) -> Any:
    if name not in data:
        raise ParseError(f"Missing required field: {where}.{name}", "MISSING_FIELD")
    return data[name]


def _require_str(data: Dict[str, Any], name: str, where: str) -> str:
    value = _require_field(data, name, where)
    if not isinstance(value, str):
        raise ParseError(f"{where}.{name} must be a string", "INVALID_FIELD_TYPE")
    return value


def _require_int(data: Dict[str, Any], name: str, where: str) -> int:
    value = _require_field(data, name, where)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"{where}.{name} must be an integer", "INVALID_FIELD_TYPE")
    return value


def _require_hex(data: Dict[str, Any], name: str, where: str) -> bytes:
    value = _require_str(data, name, where)
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise ParseError(f"{where}.{name} is not valid hex: {e}", "INVALID_HEX") from e


def _check_available() -> None:
    if not CRYPTOGRAPHY_AVAILABLE:
        raise UnsupportedPlatformError(
            "Cryptography package required for key export operations",
            "CRYPTOGRAPHY_UNAVAILABLE"
        )


def _derive_key(password: str, salt: bytes, n: int, r: int, p: int, dklen: int) -> bytes:
    kdf = Scrypt(salt=salt, length=dklen, n=n, r=r, p=p)
    return kdf.derive(password.encode('utf-8'))


def _compute_mac(mac_key: bytes, iv: bytes, ciphertext: bytes) -> 'hmac.HMAC':
    h = hmac.HMAC(mac_key, hashes.SHA256())
    h.update(iv)
    h.update(ciphertext)
    return h


def encrypt_data(plaintext: Union[bytes, bytearray], password: str, scrypt_params: ScryptParams) -> CipherBlob:
    """
    Encrypt raw key bytes under a password.

    A fresh salt and IV are drawn for every call; there is no way to supply
    them from outside.

    Args:
        plaintext: Raw key bytes
        password: Password (already domain separated by the caller)
        scrypt_params: KDF cost parameters

    Returns:
        CipherBlob: Encrypted key and everything needed to decrypt it

    Raises:
        BackendError: If parameters are out of bounds or encryption fails
        ValidationError: If inputs have the wrong type
    """
    _check_available()

    if not isinstance(plaintext, (bytes, bytearray)):
        raise ValidationError("Plaintext must be bytes", "INVALID_PLAINTEXT_TYPE")
    if not isinstance(password, str):
        raise ValidationError("Password must be a string", "INVALID_PASSWORD_TYPE")
    if not isinstance(scrypt_params, ScryptParams):
        raise ValidationError("scrypt_params must be ScryptParams instance", "INVALID_SCRYPT_PARAMS_TYPE")

    scrypt_params.check_minimum_cost()

    salt = secrets.token_bytes(SALT_LENGTH)
    iv = secrets.token_bytes(IV_LENGTH)

    try:
        derived_key = _derive_key(password, salt, scrypt_params.n, scrypt_params.r,
                                  scrypt_params.p, scrypt_params.dklen)

        encryptor = Cipher(algorithms.AES(derived_key[:CIPHER_KEY_LENGTH]), modes.CTR(iv)).encryptor()
        ciphertext = encryptor.update(plaintext) + encryptor.finalize()

        mac = _compute_mac(derived_key[CIPHER_KEY_LENGTH:], iv, ciphertext).finalize()
    except Exception as e:
        raise BackendError(f"Key encryption failed: {e}", "ENCRYPTION_FAILED") from e

    logger.debug(f"Encrypted {len(plaintext)} key bytes with scrypt n={scrypt_params.n} "
                 f"r={scrypt_params.r} p={scrypt_params.p}")

    return CipherBlob(
        cipher=CIPHER_NAME,
        ciphertext=ciphertext,
        iv=iv,
        kdf=KDF_NAME,
        kdfparams=KdfParams(
            n=scrypt_params.n,
            r=scrypt_params.r,
            p=scrypt_params.p,
            dklen=scrypt_params.dklen,
            salt=salt,
        ),
        mac=mac,
    )


def decrypt_data(crypto: CipherBlob, password: str) -> bytearray:
    """
    Decrypt a cipher blob with a password.

    The MAC is checked before anything is decrypted. The returned buffer
    belongs to the caller, who should clear it once done.

    Args:
        crypto: Parsed cipher blob
        password: Password (already domain separated by the caller)

    Returns:
        bytearray: Raw key bytes

    Raises:
        AuthenticationFailedError: On a wrong password, corrupted data, or KDF failure
    """
    _check_available()

    if not isinstance(password, str):
        raise ValidationError("Password must be a string", "INVALID_PASSWORD_TYPE")

    params = crypto.kdfparams
    try:
        derived_key = _derive_key(password, params.salt, params.n, params.r, params.p, params.dklen)
    except Exception as e:
        logger.debug(f"Scrypt derivation failed during import: {e}")
        raise AuthenticationFailedError() from e

    try:
        _compute_mac(derived_key[CIPHER_KEY_LENGTH:], crypto.iv, crypto.ciphertext).verify(crypto.mac)
    except InvalidSignature as e:
        raise AuthenticationFailedError() from e

    decryptor = Cipher(algorithms.AES(derived_key[:CIPHER_KEY_LENGTH]), modes.CTR(crypto.iv)).decryptor()
    # update_into needs room for one extra block
    buffer = bytearray(len(crypto.ciphertext) + algorithms.AES.block_size // 8 - 1)
    try:
        written = decryptor.update_into(crypto.ciphertext, buffer)
        decryptor.finalize()
        return buffer[:written]
    finally:
        clear_key_material(buffer)
