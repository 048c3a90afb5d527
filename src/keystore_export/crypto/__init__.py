"""
Cryptographic backend for encrypted key exports
"""

from .memory import (
    clear_key_material,
    scoped_key_material,
)

from .scrypt_params import (
    ScryptParams,
    STANDARD_SCRYPT_PARAMS,
    LIGHT_SCRYPT_PARAMS,
    MINIMUM_SCRYPT_PARAMS,
    SCRYPT_PROFILES,
    MIN_SCRYPT_N,
    MIN_SCRYPT_R,
    MIN_SCRYPT_P,
    get_scrypt_params,
)

from .keystore import (
    CipherBlob,
    KdfParams,
    KEYSTORE_VERSION,
    encrypt_data,
    decrypt_data,
)

__all__ = [
    # Key material lifetime
    'clear_key_material',
    'scoped_key_material',
    
    # KDF parameters
    'ScryptParams',
    'STANDARD_SCRYPT_PARAMS',
    'LIGHT_SCRYPT_PARAMS',
    'MINIMUM_SCRYPT_PARAMS',
    'SCRYPT_PROFILES',
    'MIN_SCRYPT_N',
    'MIN_SCRYPT_R',
    'MIN_SCRYPT_P',
    'get_scrypt_params',
    
    # Encryption backend
    'CipherBlob',
    'KdfParams',
    'KEYSTORE_VERSION',
    'encrypt_data',
    'decrypt_data',
]
