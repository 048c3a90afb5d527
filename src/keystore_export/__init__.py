"""
keystore-export
Password-encrypted export and import of private keys
"""

from .version import __version__
from .crypto.keystore import CRYPTOGRAPHY_AVAILABLE
from .crypto.scrypt_params import (
    ScryptParams,
    STANDARD_SCRYPT_PARAMS,
    LIGHT_SCRYPT_PARAMS,
    MINIMUM_SCRYPT_PARAMS,
)
from .keys import (
    EncryptedKeyExport,
    KeyCodec,
    encode_envelope,
    decode_envelope,
    to_encrypted_json,
    from_encrypted_json,
    export_key,
    import_key,
    adulterate_password,
    make_password_adulterator,
    CSAKey,
    CSA_KEY_CODEC,
    csa_key_from_encrypted_json,
    StarkKey,
    STARK_KEY_CODEC,
    stark_key_from_encrypted_json,
)
from .exceptions import (
    KeystoreExportError,
    ValidationError,
    UnsupportedPlatformError,
    BackendError,
    KeyExportError,
    BuilderError,
    KeyImportError,
    ParseError,
    KeyTypeMismatchError,
    AuthenticationFailedError,
    ConstructorError,
)


def check_platform_compatibility():
    """
    Check that the cryptographic backend is usable.

    Returns:
        dict: Compatibility information with 'compatible' (bool) and 'warnings' (list)
    """
    warnings = []
    compatible = True

    if not CRYPTOGRAPHY_AVAILABLE:
        warnings.append('Cryptography package not available - export and import will fail')
        compatible = False
    else:
        try:
            from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
            Scrypt(salt=b'salt', length=32, n=2, r=1, p=1).derive(b'password')
        except Exception as e:
            warnings.append(f'Scrypt not supported by cryptography package: {e}')
            compatible = False

    return {
        'compatible': compatible,
        'warnings': warnings
    }


# Public API exports
__all__ = [
    '__version__',
    'check_platform_compatibility',
    # KDF parameters
    'ScryptParams',
    'STANDARD_SCRYPT_PARAMS',
    'LIGHT_SCRYPT_PARAMS',
    'MINIMUM_SCRYPT_PARAMS',
    # Envelope and engines
    'EncryptedKeyExport',
    'KeyCodec',
    'encode_envelope',
    'decode_envelope',
    'to_encrypted_json',
    'from_encrypted_json',
    'export_key',
    'import_key',
    'adulterate_password',
    'make_password_adulterator',
    # Key types
    'CSAKey',
    'CSA_KEY_CODEC',
    'csa_key_from_encrypted_json',
    'StarkKey',
    'STARK_KEY_CODEC',
    'stark_key_from_encrypted_json',
    # Exceptions
    'KeystoreExportError',
    'ValidationError',
    'UnsupportedPlatformError',
    'BackendError',
    'KeyExportError',
    'BuilderError',
    'KeyImportError',
    'ParseError',
    'KeyTypeMismatchError',
    'AuthenticationFailedError',
    'ConstructorError',
]
