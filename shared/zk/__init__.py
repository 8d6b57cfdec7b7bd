"""
Zero-Knowledge Argument Module
==============================

Circuits over GF(2^127 - 1) and a hash-based MPC-in-the-head argument
system for proving a witness satisfies them.

Usage:
    from shared.zk import ArgumentProver, ArgumentVerifier, get_comparator_circuit

    circuit = get_comparator_circuit(64)
    argument = ArgumentProver().prove(
        circuit,
        {"private_value": 6000},
        {"public_threshold": 5000},
    )

    # Raises VerificationError if the argument must not be trusted
    ArgumentVerifier().verify(circuit, argument.to_bytes(), {"public_threshold": 5000})

Version: 0.1.0
"""

from shared.zk.circuit import Assertion, Circuit, CircuitBuilder, Gate, GateType
from shared.zk.comparator import (
    IS_GREATER,
    MAX_BIT_WIDTH,
    PRIVATE_VALUE,
    PUBLIC_THRESHOLD,
    build_comparator_circuit,
    get_comparator_circuit,
)
from shared.zk.field import FIELD_MODULUS, FieldElement
from shared.zk.models import Argument, ArgumentRound, PublicInputs, Witness, argument_size
from shared.zk.prover import ArgumentProver, prove, prove_async
from shared.zk.verifier import ArgumentVerifier, is_valid, verify, verify_async


__all__ = [
    # Field
    "FIELD_MODULUS",
    "FieldElement",
    # Circuits
    "Assertion",
    "Circuit",
    "CircuitBuilder",
    "Gate",
    "GateType",
    "build_comparator_circuit",
    "get_comparator_circuit",
    "PRIVATE_VALUE",
    "PUBLIC_THRESHOLD",
    "IS_GREATER",
    "MAX_BIT_WIDTH",
    # Prover
    "ArgumentProver",
    "prove",
    "prove_async",
    # Verifier
    "ArgumentVerifier",
    "verify",
    "verify_async",
    "is_valid",
    # Models
    "Argument",
    "ArgumentRound",
    "PublicInputs",
    "Witness",
    "argument_size",
]
