"""
Scrypt cost parameters for encrypted key exports

The floor values below are a policy decision: exports below them are refused,
imports accept whatever cost the envelope records.
"""

from dataclasses import dataclass
from typing import Dict

from ..exceptions import BackendError, ValidationError

# Policy floor for export-time cost parameters
MIN_SCRYPT_N = 1 << 12
MIN_SCRYPT_R = 8
MIN_SCRYPT_P = 1

# aes-128-ctr key followed by the MAC key
SCRYPT_DKLEN = 32

# scrypt requires r * p < 2^30
MAX_SCRYPT_RP = 1 << 30


@dataclass(frozen=True)
class ScryptParams:
    """
    Cost parameters for the scrypt KDF
    
    Attributes:
        n: CPU/memory cost factor (power of 2)
        r: Block size
        p: Parallelization factor
        dklen: Derived key length in bytes
    """
    n: int
    r: int
    p: int
    dklen: int = SCRYPT_DKLEN
    
    def check_minimum_cost(self) -> None:
        """
        Verify the parameters are usable and not weaker than the policy floor.
        
        Raises:
            BackendError: If any parameter is out of bounds
        """
        for name in ('n', 'r', 'p', 'dklen'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise BackendError(f"Scrypt parameter {name} must be an integer", "INVALID_SCRYPT_PARAMS")
        
        if self.n <= 1 or (self.n & (self.n - 1)) != 0:
            raise BackendError("Scrypt N must be a power of 2 greater than 1", "INVALID_SCRYPT_N")
        
        if self.dklen != SCRYPT_DKLEN:
            raise BackendError(f"Scrypt dklen must be {SCRYPT_DKLEN}", "INVALID_SCRYPT_DKLEN")
        
        if self.n < MIN_SCRYPT_N or self.r < MIN_SCRYPT_R or self.p < MIN_SCRYPT_P:
            raise BackendError(
                f"Scrypt cost too low (minimum n={MIN_SCRYPT_N}, r={MIN_SCRYPT_R}, p={MIN_SCRYPT_P})",
                "SCRYPT_COST_TOO_LOW",
                {'n': self.n, 'r': self.r, 'p': self.p}
            )
        
        if self.r * self.p >= MAX_SCRYPT_RP:
            raise BackendError("Scrypt r * p must be less than 2^30", "INVALID_SCRYPT_RP")


# Interactive-grade cost, the default for exports
STANDARD_SCRYPT_PARAMS = ScryptParams(n=1 << 18, r=8, p=1)

# Cheaper cost for constrained hosts
LIGHT_SCRYPT_PARAMS = ScryptParams(n=1 << 12, r=8, p=6)

# The floor itself; mostly useful for tests
MINIMUM_SCRYPT_PARAMS = ScryptParams(n=MIN_SCRYPT_N, r=MIN_SCRYPT_R, p=MIN_SCRYPT_P)

SCRYPT_PROFILES: Dict[str, ScryptParams] = {
    'standard': STANDARD_SCRYPT_PARAMS,
    'light': LIGHT_SCRYPT_PARAMS,
    'minimum': MINIMUM_SCRYPT_PARAMS,
}


def get_scrypt_params(profile: str) -> ScryptParams:
    """
    Look up a named scrypt profile.
    
    Args:
        profile: One of 'standard', 'light', 'minimum'
        
    Returns:
        ScryptParams: The profile's parameters
        
    Raises:
        ValidationError: If the profile is unknown
    """
    try:
        return SCRYPT_PROFILES[profile]
    except KeyError:
        raise ValidationError(f"Unknown scrypt profile: {profile}", "UNKNOWN_SCRYPT_PROFILE")
