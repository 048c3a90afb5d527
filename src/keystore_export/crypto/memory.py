"""
Helpers for keeping raw key material short-lived

Python cannot guarantee that every copy of a secret is gone, but buffers the
SDK owns are mutable ``bytearray`` objects that get overwritten in place once
they are no longer needed.
"""

from contextlib import contextmanager
from typing import Iterator, Union

from ..exceptions import ValidationError


def clear_key_material(buffer: bytearray) -> None:
    """
    Overwrite a key buffer with zeros (best effort).
    
    Args:
        buffer: The buffer to clear
    """
    for i in range(len(buffer)):
        buffer[i] = 0


@contextmanager
def scoped_key_material(data: Union[bytes, bytearray, memoryview]) -> Iterator[bytearray]:
    """
    Copy key material into a private buffer that is zeroed on exit.
    
    The caller's object is never modified; the yielded buffer is cleared on
    every exit path, including exceptions.
    
    Args:
        data: Raw key bytes
        
    Yields:
        bytearray: Private copy of the key bytes
        
    Raises:
        ValidationError: If data is not bytes-like
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise ValidationError("Key material must be bytes-like", "INVALID_KEY_MATERIAL_TYPE")
    
    buffer = bytearray(data)
    try:
        yield buffer
    finally:
        clear_key_material(buffer)
