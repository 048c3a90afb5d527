"""
Encrypted export and import of private keys
"""

from .password import (
    adulterate_password,
    make_password_adulterator,
)

from .envelope import (
    EncryptedKeyExport,
    encode_envelope,
    decode_envelope,
)

from .export import (
    KeyCodec,
    to_encrypted_json,
    from_encrypted_json,
    export_key,
    import_key,
)

from .csakey import (
    CSAKey,
    CSAKeyCodec,
    CSA_KEY_CODEC,
    CSA_KEY_TYPE,
    csa_key_from_encrypted_json,
)

from .starkkey import (
    StarkKey,
    StarkKeyCodec,
    STARK_KEY_CODEC,
    STARK_KEY_TYPE,
    stark_key_from_encrypted_json,
)

__all__ = [
    # Password domain separation
    'adulterate_password',
    'make_password_adulterator',
    
    # Envelope
    'EncryptedKeyExport',
    'encode_envelope',
    'decode_envelope',
    
    # Engines
    'KeyCodec',
    'to_encrypted_json',
    'from_encrypted_json',
    'export_key',
    'import_key',
    
    # Key types
    'CSAKey',
    'CSAKeyCodec',
    'CSA_KEY_CODEC',
    'CSA_KEY_TYPE',
    'csa_key_from_encrypted_json',
    'StarkKey',
    'StarkKeyCodec',
    'STARK_KEY_CODEC',
    'STARK_KEY_TYPE',
    'stark_key_from_encrypted_json',
]
