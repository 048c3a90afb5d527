"""
Exception classes for the keystore export SDK
"""

from typing import Optional, Dict, Any


class KeystoreExportError(Exception):
    """Base exception for all keystore export errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ValidationError(KeystoreExportError):
    """Exception raised for invalid caller input"""
    pass


class UnsupportedPlatformError(KeystoreExportError):
    """Exception raised when platform features are not supported"""
    pass


class BackendError(KeystoreExportError):
    """Exception raised for KDF/cipher parameter violations or backend faults"""
    pass


class KeyExportError(KeystoreExportError):
    """Exception raised for key export errors"""
    pass


class BuilderError(KeyExportError):
    """Exception raised when an export payload cannot be assembled"""
    pass


class KeyImportError(KeystoreExportError):
    """Exception raised for key import errors"""
    pass


class ParseError(KeyImportError):
    """Exception raised for malformed or unsupported envelopes"""
    pass


class KeyTypeMismatchError(KeyImportError):
    """Exception raised when an envelope belongs to a different key type"""
    
    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Key type mismatch: expected {expected!r}, got {actual!r}",
            "KEY_TYPE_MISMATCH",
            {'expected': expected, 'actual': actual}
        )
        self.expected = expected
        self.actual = actual


class AuthenticationFailedError(KeyImportError):
    """
    Exception raised when an envelope cannot be decrypted.
    
    Wrong passwords and corrupted ciphertext both end up here with the same
    message and error code.
    """
    
    def __init__(self, message: str = "Could not decrypt key - wrong password or corrupted data"):
        super().__init__(message, "AUTHENTICATION_FAILED")


class ConstructorError(KeyImportError):
    """Exception raised when a key cannot be rebuilt from decrypted bytes"""
    pass
