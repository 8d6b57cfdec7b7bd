"""
Comparator Circuit
==================

Circuit for the predicate ``private_value > public_threshold`` over a fixed,
public bit width.

Both inputs are decomposed into bits and compared from the most significant
bit down, tracking whether a strictly greater position has been seen and
whether all higher positions were equal. The circuit asserts the result is
true, so an argument for it exists only when the private value really is
greater.

Version: 0.1.0
"""

from functools import lru_cache

from shared.exceptions import InvalidInputError
from shared.logging import get_logger
from shared.zk.circuit import Circuit, CircuitBuilder


logger = get_logger(__name__)

PRIVATE_VALUE = "private_value"
PUBLIC_THRESHOLD = "public_threshold"
IS_GREATER = "is_greater"

# 2^126 - 1 is the largest value that recomposes without wrapping mod 2^127 - 1
MAX_BIT_WIDTH = 126


def build_comparator_circuit(bit_width: int = 64) -> Circuit:
    """
    Build the ``value > threshold`` circuit.

    Args:
        bit_width: Number of bits both operands are decomposed into.

    Returns:
        Circuit with inputs ``private_value`` / ``public_threshold`` and
        output ``is_greater``, constrained to ``is_greater == 1``.

    Raises:
        InvalidInputError: If bit_width is outside [1, 126].
    """
    if isinstance(bit_width, bool) or not isinstance(bit_width, int):
        raise InvalidInputError("bit_width must be an integer")
    if not 1 <= bit_width <= MAX_BIT_WIDTH:
        raise InvalidInputError(f"bit_width must be between 1 and {MAX_BIT_WIDTH}, got {bit_width}")

    builder = CircuitBuilder(bit_width=bit_width)
    value = builder.private_input(PRIVATE_VALUE)
    threshold = builder.public_input(PUBLIC_THRESHOLD)

    value_bits = builder.split_bits(value, bit_width)
    threshold_bits = builder.split_bits(threshold, bit_width)

    result = builder.constant(0)
    still_equal = builder.constant(1)

    for i in reversed(range(bit_width)):
        v_bit = value_bits[i]
        t_bit = threshold_bits[i]

        bit_greater = builder.and_(v_bit, builder.not_(t_bit))
        bit_equal = builder.is_equal(v_bit, t_bit)

        result = builder.or_(result, builder.and_(still_equal, bit_greater))
        still_equal = builder.and_(still_equal, bit_equal)

    builder.mark_output(IS_GREATER, result)
    builder.assert_true(result)

    circuit = builder.build()
    logger.debug(
        "comparator_circuit_built",
        bit_width=bit_width,
        gates=circuit.size,
        private_wires=len(circuit.private_wires),
        multiplications=len(circuit.mul_wires),
    )
    return circuit


@lru_cache(maxsize=8)
def get_comparator_circuit(bit_width: int = 64) -> Circuit:
    """Process-wide cached comparator circuit for ``bit_width``."""
    return build_comparator_circuit(bit_width)
