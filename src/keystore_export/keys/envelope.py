"""
Encrypted key export envelope and its JSON encoding
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Union

from ..crypto.keystore import CipherBlob
from ..exceptions import ParseError, ValidationError


@dataclass(frozen=True)
class EncryptedKeyExport:
    """
    The persisted form of an exported key
    
    Attributes:
        key_type: Key type identifier (e.g. 'CSA')
        public_key: Type-specific public key string
        crypto: Encrypted key material and decryption parameters
    """
    key_type: str
    public_key: str
    crypto: CipherBlob
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'keyType': self.key_type,
            'publicKey': self.public_key,
            'crypto': self.crypto.to_dict(),
        }


def encode_envelope(export: EncryptedKeyExport) -> bytes:
    """
    Serialize an export to JSON bytes.
    
    Raises:
        ValidationError: If export is not an EncryptedKeyExport
    """
    if not isinstance(export, EncryptedKeyExport):
        raise ValidationError("export must be EncryptedKeyExport instance", "INVALID_EXPORT_TYPE")
    
    return json.dumps(export.to_dict()).encode('utf-8')


def decode_envelope(data: Union[bytes, bytearray, str]) -> EncryptedKeyExport:
    """
    Parse JSON bytes into an export.
    
    Args:
        data: Serialized envelope
        
    Returns:
        EncryptedKeyExport: The parsed envelope
        
    Raises:
        ParseError: If the envelope is malformed or uses an unsupported format
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            text = bytes(data).decode('utf-8')
        except UnicodeDecodeError as e:
            raise ParseError(f"Envelope is not valid UTF-8: {e}", "INVALID_ENCODING") from e
    elif isinstance(data, str):
        text = data
    else:
        raise ParseError("Envelope must be bytes or str", "INVALID_ENVELOPE_TYPE")
    
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ParseError(f"Invalid JSON in envelope: {e}", "INVALID_JSON") from e
    
    if not isinstance(document, dict):
        raise ParseError("Envelope must be a JSON object", "INVALID_STRUCTURE")
    
    for field in ('keyType', 'publicKey', 'crypto'):
        if field not in document:
            raise ParseError(f"Missing required field: {field}", "MISSING_FIELD")
    
    key_type = document['keyType']
    public_key = document['publicKey']
    if not isinstance(key_type, str) or not key_type:
        raise ParseError("keyType must be a non-empty string", "INVALID_FIELD_TYPE")
    if not isinstance(public_key, str):
        raise ParseError("publicKey must be a string", "INVALID_FIELD_TYPE")
    
    return EncryptedKeyExport(
        key_type=key_type,
        public_key=public_key,
        crypto=CipherBlob.from_dict(document['crypto']),
    )
