"""
Prime Field Arithmetic
======================

All circuit arithmetic happens modulo the Mersenne prime 2^127 - 1. The
field is wide enough that a 126-bit decomposition recomposes without
wrapping, which is what lets the comparator reject over-width values.

Field elements have no ordering: numeric comparison is only
meaningful through bit decomposition inside a circuit.

Version: 0.1.0
"""

import secrets
from collections.abc import Iterable, Sequence

from shared.exceptions import InvalidInputError


FIELD_MODULUS = 2**127 - 1

# Canonical big-endian encoding width
ELEMENT_SIZE = 16


class FieldElement:
    """An element of GF(2^127 - 1)."""

    __slots__ = ("value",)

    def __init__(self, value: int) -> None:
        if isinstance(value, FieldElement):
            value = value.value
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"FieldElement needs an int, got {type(value).__name__}")
        self.value = value % FIELD_MODULUS

    @classmethod
    def zero(cls) -> "FieldElement":
        return cls(0)

    @classmethod
    def one(cls) -> "FieldElement":
        return cls(1)

    @classmethod
    def random(cls) -> "FieldElement":
        """Uniform element from a cryptographically secure source."""
        return cls(secrets.randbelow(FIELD_MODULUS))

    @classmethod
    def from_bytes(cls, data: bytes) -> "FieldElement":
        """Decode a canonical 16-byte big-endian encoding."""
        if len(data) != ELEMENT_SIZE:
            raise InvalidInputError(f"Field element must be {ELEMENT_SIZE} bytes, got {len(data)}")
        value = int.from_bytes(data, "big")
        if value >= FIELD_MODULUS:
            raise InvalidInputError("Non-canonical field element encoding")
        return cls(value)

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(ELEMENT_SIZE, "big")

    def bits(self, width: int) -> list[int]:
        """Little-endian bits of the canonical representative."""
        return [(self.value >> i) & 1 for i in range(width)]

    def inverse(self) -> "FieldElement":
        if self.value == 0:
            raise ZeroDivisionError("Zero has no inverse")
        return FieldElement(pow(self.value, FIELD_MODULUS - 2, FIELD_MODULUS))

    def __int__(self) -> int:
        return self.value

    def __add__(self, other: "FieldElement | int") -> "FieldElement":
        return FieldElement(self.value + _as_int(other))

    __radd__ = __add__

    def __sub__(self, other: "FieldElement | int") -> "FieldElement":
        return FieldElement(self.value - _as_int(other))

    def __rsub__(self, other: "FieldElement | int") -> "FieldElement":
        return FieldElement(_as_int(other) - self.value)

    def __mul__(self, other: "FieldElement | int") -> "FieldElement":
        return FieldElement(self.value * _as_int(other))

    __rmul__ = __mul__

    def __neg__(self) -> "FieldElement":
        return FieldElement(-self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldElement):
            return self.value == other.value
        if isinstance(other, int) and not isinstance(other, bool):
            return self.value == other % FIELD_MODULUS
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("FieldElement", self.value))

    def __repr__(self) -> str:
        return f"FieldElement({self.value})"


def _as_int(value: "FieldElement | int") -> int:
    if isinstance(value, FieldElement):
        return value.value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Unsupported operand type: {type(value).__name__}")
    return value


def encode_elements(values: Iterable[int]) -> bytes:
    """Concatenate canonical encodings of reduced field integers."""
    return b"".join(v.to_bytes(ELEMENT_SIZE, "big") for v in values)


def decode_elements(data: bytes, count: int) -> list[int]:
    """
    Decode exactly ``count`` canonical field integers.

    Raises:
        InvalidInputError: On a length mismatch or a non-canonical element.
    """
    if len(data) != count * ELEMENT_SIZE:
        raise InvalidInputError(
            f"Expected {count * ELEMENT_SIZE} bytes of field elements, got {len(data)}"
        )
    values = []
    for offset in range(0, len(data), ELEMENT_SIZE):
        value = int.from_bytes(data[offset : offset + ELEMENT_SIZE], "big")
        if value >= FIELD_MODULUS:
            raise InvalidInputError("Non-canonical field element encoding")
        values.append(value)
    return values


def recompose(bits: Sequence[int]) -> int:
    """Integer value of little-endian bits."""
    return sum(bit << i for i, bit in enumerate(bits))
