"""
StarkNet keys: private scalars on the STARK curve with encrypted export support

The curve is y^2 = x^3 + ALPHA*x + BETA over FIELD_PRIME. The public key is the
x coordinate of k*G. Point arithmetic here is only used to derive public
keys and is not constant time.
"""

from typing import Optional, Tuple, Union

from ..crypto.scrypt_params import ScryptParams, STANDARD_SCRYPT_PARAMS
from ..exceptions import ConstructorError
from .envelope import EncryptedKeyExport
from .export import KeyCodec, export_key, import_key

STARK_KEY_TYPE = 'StarkNet'
STARK_PASSWORD_PREFIX = 'starkkey'
STARK_PRIVATE_KEY_LENGTH = 32

FIELD_PRIME = 2**251 + 17 * 2**192 + 1
ALPHA = 1
BETA = 0x06f21413efbe40de150e596d72f7a8c5609ad26c15c915c1f4cdfcb99cee9e89
EC_ORDER = 0x0800000000000010ffffffffffffffffb781126dcae7b2321e66a241adc64d2f
EC_GEN = (
    0x01ef15c18599971b7beced415a40f0c7deacfd9b0d1819e03d723d8bc943cfca,
    0x005668060aa49730b7be4801df46ec62de53ecd11abe43a32873000c36e8dc1f,
)

Point = Tuple[int, int]


def is_on_curve(point: Point) -> bool:
    x, y = point
    return (y * y - (x * x * x + ALPHA * x + BETA)) % FIELD_PRIME == 0


def _point_add(a: Optional[Point], b: Optional[Point]) -> Optional[Point]:
    # None is the point at infinity
    if a is None:
        return b
    if b is None:
        return a

    x1, y1 = a
    x2, y2 = b
    if x1 == x2:
        if (y1 + y2) % FIELD_PRIME == 0:
            return None
        slope = (3 * x1 * x1 + ALPHA) * pow(2 * y1, -1, FIELD_PRIME) % FIELD_PRIME
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, FIELD_PRIME) % FIELD_PRIME

    x3 = (slope * slope - x1 - x2) % FIELD_PRIME
    y3 = (slope * (x1 - x3) - y1) % FIELD_PRIME
    return x3, y3


def scalar_mult(k: int, point: Point = EC_GEN) -> Optional[Point]:
    """Compute k*point by double-and-add."""
    result: Optional[Point] = None
    addend: Optional[Point] = point
    while k:
        if k & 1:
            result = _point_add(result, addend)
        addend = _point_add(addend, addend)
        k >>= 1
    return result


def private_to_stark_key(private_key: int) -> int:
    """
    Derive the public key (x coordinate of k*G) for a private scalar.

    Raises:
        ConstructorError: If the scalar is outside [1, EC_ORDER)
    """
    if not 1 <= private_key < EC_ORDER:
        raise ConstructorError("StarkNet private key out of range", "INVALID_PRIVATE_KEY_VALUE")
    point = scalar_mult(private_key)
    assert point is not None
    return point[0]


class StarkKey:
    """
    StarkNet private key identified by its 0x prefixed public key
    """

    def __init__(self, private_key: int):
        self._public_key = private_to_stark_key(private_key)
        self._private_key = private_key

    @classmethod
    def from_raw(cls, raw: Union[bytes, bytearray]) -> 'StarkKey':
        """
        Build a key from its 32 byte big-endian scalar.

        Raises:
            ConstructorError: If the bytes are not a valid scalar
        """
        if not isinstance(raw, (bytes, bytearray)) or len(raw) != STARK_PRIVATE_KEY_LENGTH:
            raise ConstructorError(
                f"StarkNet private key must be exactly {STARK_PRIVATE_KEY_LENGTH} bytes",
                "INVALID_PRIVATE_KEY_LENGTH"
            )
        return cls(int.from_bytes(raw, 'big'))

    def raw(self) -> bytes:
        return self._private_key.to_bytes(STARK_PRIVATE_KEY_LENGTH, 'big')

    @property
    def public_key(self) -> int:
        return self._public_key

    def public_key_string(self) -> str:
        return f"0x{self._public_key:064x}"

    def to_encrypted_json(self, password: str, scrypt_params: ScryptParams = STANDARD_SCRYPT_PARAMS) -> bytes:
        """Export this key as an encrypted JSON envelope."""
        return export_key(STARK_KEY_CODEC, self, password, scrypt_params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StarkKey):
            return NotImplemented
        return self._public_key == other._public_key

    def __hash__(self) -> int:
        return hash(self._public_key)

    def __repr__(self) -> str:
        return f"StarkKey(public_key={self.public_key_string()})"


class StarkKeyCodec(KeyCodec[StarkKey]):
    key_type = STARK_KEY_TYPE
    password_prefix = STARK_PASSWORD_PREFIX

    def raw_private_key(self, key: StarkKey) -> bytes:
        return key.raw()

    def public_key_string(self, key: StarkKey) -> str:
        return key.public_key_string()

    def reconstruct(self, export: EncryptedKeyExport, raw: bytearray) -> StarkKey:
        key = StarkKey.from_raw(raw)
        if export.public_key != key.public_key_string():
            raise ConstructorError(
                "Public key in envelope does not match the decrypted private key",
                "PUBLIC_KEY_MISMATCH"
            )
        return key


STARK_KEY_CODEC = StarkKeyCodec()


def stark_key_from_encrypted_json(key_json: Union[bytes, bytearray, str], password: str) -> StarkKey:
    """Import a StarkNet key from an encrypted JSON envelope."""
    return import_key(STARK_KEY_CODEC, key_json, password)
