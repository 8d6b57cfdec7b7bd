"""
Arithmetic Circuits
===================

Immutable gate graphs over GF(2^127 - 1) and the builder that produces them.

Wire ``i`` is the output of gate ``i``; operands always refer to earlier
wires, so a single forward pass evaluates the circuit. A wire is *public*
when it depends only on public inputs and constants. The prover and the
verifier both compute public wires in the clear; only private wires are
secret-shared when proving.

Boolean gates assume boolean operands. The builder guarantees that for the
bits it creates through ``split_bits``.

Version: 0.1.0
"""

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from shared.exceptions import InvalidInputError
from shared.zk.field import FIELD_MODULUS, FieldElement


P = FIELD_MODULUS


class GateType(str, Enum):
    """Kinds of gates a circuit may contain."""

    PRIVATE_INPUT = "private_input"
    PUBLIC_INPUT = "public_input"
    CONSTANT = "constant"
    BIT = "bit"
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    NOT = "not"
    AND = "and"
    OR = "or"
    EQ = "eq"


# Gates whose evaluation needs a product of their two operands
MULTIPLICATIVE_GATES = frozenset({GateType.MUL, GateType.AND, GateType.OR, GateType.EQ})


@dataclass(frozen=True, slots=True)
class Gate:
    """
    A single gate.

    ``constant`` holds the value of a CONSTANT gate and the bit index of a
    BIT gate; it is zero otherwise.
    """

    kind: GateType
    operands: tuple[int, ...] = ()
    constant: int = 0
    label: str | None = None
    public: bool = False


@dataclass(frozen=True, slots=True)
class Assertion:
    """Constraint ``wire == expected``."""

    wire: int
    expected: int


def combine(kind: GateType, a: int, b: int, product: int, offset: int) -> int:
    """
    Finish a multiplicative gate from its operands and their product.

    ``offset`` is 1 for a plain evaluation and for party 0 of a sharing,
    0 for the other parties, so that constants are added exactly once.
    """
    if kind is GateType.MUL or kind is GateType.AND:
        return product
    if kind is GateType.OR:
        return (a + b - product) % P
    # EQ on booleans: 1 - a - b + 2ab
    return (offset - a - b + 2 * product) % P


def apply_gate(gate: Gate, values: list[int]) -> int:
    """Evaluate a non-input gate in the clear."""
    kind = gate.kind
    if kind is GateType.CONSTANT:
        return gate.constant
    if kind is GateType.BIT:
        return (values[gate.operands[0]] >> gate.constant) & 1
    if kind is GateType.NOT:
        return (1 - values[gate.operands[0]]) % P
    a = values[gate.operands[0]]
    b = values[gate.operands[1]]
    if kind is GateType.ADD:
        return (a + b) % P
    if kind is GateType.SUB:
        return (a - b) % P
    return combine(kind, a, b, a * b % P, 1)


@dataclass(frozen=True, eq=False)
class Circuit:
    """
    An immutable arithmetic circuit.

    Built once per predicate shape and shared read-only between concurrent
    provers and verifiers.
    """

    gates: tuple[Gate, ...]
    assertions: tuple[Assertion, ...]
    inputs: Mapping[str, int]
    outputs: Mapping[str, int]
    bit_width: int = 0

    # Derived layout, filled in __post_init__
    private_wires: tuple[int, ...] = field(init=False)
    mul_wires: tuple[int, ...] = field(init=False)
    public_assertions: tuple[Assertion, ...] = field(init=False)
    private_assertions: tuple[Assertion, ...] = field(init=False)
    digest: bytes = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", MappingProxyType(dict(self.inputs)))
        object.__setattr__(self, "outputs", MappingProxyType(dict(self.outputs)))

        private_wires = []
        mul_wires = []
        for wire, gate in enumerate(self.gates):
            if gate.public:
                continue
            if gate.kind in (GateType.PRIVATE_INPUT, GateType.BIT):
                private_wires.append(wire)
            elif gate.kind in MULTIPLICATIVE_GATES and not any(
                self.gates[op].public for op in gate.operands
            ):
                mul_wires.append(wire)

        object.__setattr__(self, "private_wires", tuple(private_wires))
        object.__setattr__(self, "mul_wires", tuple(mul_wires))
        object.__setattr__(
            self,
            "public_assertions",
            tuple(a for a in self.assertions if self.gates[a.wire].public),
        )
        object.__setattr__(
            self,
            "private_assertions",
            tuple(a for a in self.assertions if not self.gates[a.wire].public),
        )
        object.__setattr__(self, "digest", self._compute_digest())

    def _compute_digest(self) -> bytes:
        h = hashlib.sha256(b"zkcredit/circuit/v1")
        h.update(self.bit_width.to_bytes(2, "big"))
        h.update(len(self.gates).to_bytes(4, "big"))
        for gate in self.gates:
            h.update(gate.kind.value.encode())
            h.update(len(gate.operands).to_bytes(1, "big"))
            for operand in gate.operands:
                h.update(operand.to_bytes(4, "big"))
            h.update(gate.constant.to_bytes(16, "big"))
            label = (gate.label or "").encode()
            h.update(len(label).to_bytes(1, "big") + label)
        h.update(len(self.assertions).to_bytes(4, "big"))
        for assertion in self.assertions:
            h.update(assertion.wire.to_bytes(4, "big"))
            h.update(assertion.expected.to_bytes(16, "big"))
        return h.digest()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def wire(self, name: str) -> int:
        """Wire id of a named input or output."""
        if name in self.inputs:
            return self.inputs[name]
        if name in self.outputs:
            return self.outputs[name]
        raise KeyError(name)

    @property
    def private_input_names(self) -> frozenset[str]:
        return frozenset(
            name for name, wire in self.inputs.items()
            if self.gates[wire].kind is GateType.PRIVATE_INPUT
        )

    @property
    def public_input_names(self) -> frozenset[str]:
        return frozenset(
            name for name, wire in self.inputs.items()
            if self.gates[wire].kind is GateType.PUBLIC_INPUT
        )

    @property
    def size(self) -> int:
        return len(self.gates)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(
        self,
        private: Mapping[str, FieldElement],
        public: Mapping[str, FieldElement],
    ) -> list[int]:
        """
        Evaluate every wire in the clear.

        Bit wires take the bits of their source wire; whether those bits
        recompose to the source is left to the assertions.
        """
        values = [0] * len(self.gates)
        for wire, gate in enumerate(self.gates):
            if gate.kind is GateType.PRIVATE_INPUT:
                values[wire] = int(private[gate.label])
            elif gate.kind is GateType.PUBLIC_INPUT:
                values[wire] = int(public[gate.label])
            else:
                values[wire] = apply_gate(gate, values)
        return values

    def evaluate_public(self, public: Mapping[str, FieldElement]) -> dict[int, int]:
        """Evaluate only the public wires."""
        values = [0] * len(self.gates)
        result: dict[int, int] = {}
        for wire, gate in enumerate(self.gates):
            if not gate.public:
                continue
            if gate.kind is GateType.PUBLIC_INPUT:
                values[wire] = int(public[gate.label])
            else:
                values[wire] = apply_gate(gate, values)
            result[wire] = values[wire]
        return result

    def unsatisfied(self, values: Mapping[int, int] | list[int]) -> list[Assertion]:
        """Assertions that ``values`` violates."""
        return [a for a in self.assertions if values[a.wire] != a.expected]


class CircuitBuilder:
    """
    Incrementally constructs a Circuit.

    Usage:
        builder = CircuitBuilder(bit_width=8)
        x = builder.private_input("x")
        y = builder.public_input("y")
        builder.assert_true(builder.is_equal(x, y))
        circuit = builder.build()
    """

    def __init__(self, bit_width: int = 0) -> None:
        self.bit_width = bit_width
        self._gates: list[Gate] = []
        self._assertions: list[Assertion] = []
        self._inputs: dict[str, int] = {}
        self._outputs: dict[str, int] = {}
        self._constants: dict[int, int] = {}

    def _add(
        self,
        kind: GateType,
        operands: tuple[int, ...] = (),
        constant: int = 0,
        label: str | None = None,
    ) -> int:
        for operand in operands:
            if not 0 <= operand < len(self._gates):
                raise InvalidInputError(f"Unknown wire {operand}")
        if kind is GateType.PUBLIC_INPUT or kind is GateType.CONSTANT:
            public = True
        elif kind is GateType.PRIVATE_INPUT:
            public = False
        else:
            public = all(self._gates[op].public for op in operands)
        self._gates.append(Gate(kind, operands, constant, label, public))
        return len(self._gates) - 1

    def _named_input(self, kind: GateType, name: str) -> int:
        if name in self._inputs:
            raise InvalidInputError(f"Duplicate input name '{name}'")
        wire = self._add(kind, label=name)
        self._inputs[name] = wire
        return wire

    # Inputs and constants

    def private_input(self, name: str) -> int:
        return self._named_input(GateType.PRIVATE_INPUT, name)

    def public_input(self, name: str) -> int:
        return self._named_input(GateType.PUBLIC_INPUT, name)

    def constant(self, value: int) -> int:
        value %= P
        if value not in self._constants:
            self._constants[value] = self._add(GateType.CONSTANT, constant=value)
        return self._constants[value]

    # Arithmetic

    def add(self, a: int, b: int) -> int:
        return self._add(GateType.ADD, (a, b))

    def sub(self, a: int, b: int) -> int:
        return self._add(GateType.SUB, (a, b))

    def mul(self, a: int, b: int) -> int:
        return self._add(GateType.MUL, (a, b))

    # Boolean logic

    def not_(self, a: int) -> int:
        return self._add(GateType.NOT, (a,))

    def and_(self, a: int, b: int) -> int:
        return self._add(GateType.AND, (a, b))

    def or_(self, a: int, b: int) -> int:
        return self._add(GateType.OR, (a, b))

    def is_equal(self, a: int, b: int) -> int:
        return self._add(GateType.EQ, (a, b))

    def split_bits(self, wire: int, width: int) -> list[int]:
        """
        Little-endian bit decomposition of ``wire``.

        Adds the constraints that every bit is boolean and that the bits
        recompose to ``wire``. A value needing more than ``width`` bits
        therefore makes the circuit unsatisfiable.
        """
        if width < 1 or 2**width > P:
            raise InvalidInputError(f"Cannot decompose into {width} bits")

        bits = [self._add(GateType.BIT, (wire,), constant=i) for i in range(width)]
        for bit in bits:
            self.assert_zero(self.sub(self.mul(bit, bit), bit))

        total = self.mul(bits[0], self.constant(1))
        for i in range(1, width):
            total = self.add(total, self.mul(bits[i], self.constant(1 << i)))
        self.assert_zero(self.sub(total, wire))
        return bits

    # Constraints and outputs

    def assert_equal(self, wire: int, value: int) -> None:
        self._assertions.append(Assertion(wire, value % P))

    def assert_zero(self, wire: int) -> None:
        self.assert_equal(wire, 0)

    def assert_true(self, wire: int) -> None:
        self.assert_equal(wire, 1)

    def mark_output(self, name: str, wire: int) -> None:
        self._outputs[name] = wire

    def build(self) -> Circuit:
        if not self._assertions:
            raise InvalidInputError("Circuit has no constraints")
        return Circuit(
            gates=tuple(self._gates),
            assertions=tuple(self._assertions),
            inputs=self._inputs,
            outputs=self._outputs,
            bit_width=self.bit_width,
        )
