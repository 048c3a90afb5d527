"""
Per key type password domain separation

Each key type mixes its own constant into the password before it reaches the
KDF, so a password recovered for one key type does not open exports of
another.
"""

from typing import Callable

PasswordAdulterator = Callable[[str], str]


def adulterate_password(prefix: str, password: str) -> str:
    """Return the password as seen by the KDF for the key type owning ``prefix``."""
    return prefix + password


def make_password_adulterator(prefix: str) -> PasswordAdulterator:
    """
    Build the one-argument password adulterator for a key type.
    
    Args:
        prefix: Constant string owned by the key type (e.g. 'csakey')
        
    Returns:
        Callable mapping a user password to the domain separated password
    """
    def adulterated_password(password: str) -> str:
        return adulterate_password(prefix, password)
    
    return adulterated_password
