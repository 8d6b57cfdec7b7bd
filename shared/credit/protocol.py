"""
Threshold-Proof Protocol
========================

The prover-side flow: show that a private salary exceeds a public
threshold and attach a noisy encrypted expense average.

A salary at or below the threshold is an expected outcome, reported as
REJECTED without proving or aggregating anything.

Version: 0.1.0
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from shared.config import settings
from shared.credit.nonces import issue_nonce
from shared.exceptions import AggregationError, InvalidInputError, ProofGenerationError, ProverError
from shared.fhe import Ciphertext, EncryptedAggregator
from shared.logging import get_logger
from shared.zk import (
    PRIVATE_VALUE,
    PUBLIC_THRESHOLD,
    ArgumentProver,
    PublicInputs,
    Witness,
    get_comparator_circuit,
)


logger = get_logger(__name__)

THRESHOLD_NOT_MET = "salary threshold not met"


class ProtocolStatus(str, Enum):
    """Protocol outcome."""

    SUCCESS = "success"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ThresholdProof:
    """Everything the verifier needs, all as bytes."""

    argument: bytes
    public_inputs: bytes
    encrypted_average: bytes
    nonce: bytes

    def __repr__(self) -> str:
        return (
            f"ThresholdProof(argument={len(self.argument)} bytes, "
            f"encrypted_average={len(self.encrypted_average)} bytes, nonce={self.nonce.hex()[:16]})"
        )


@dataclass(frozen=True)
class ProtocolResult:
    status: ProtocolStatus
    proof: ThresholdProof | None = None
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status is ProtocolStatus.SUCCESS


class ThresholdProofProtocol:
    """
    Runs the threshold-proof protocol for one applicant.

    Usage:
        protocol = ThresholdProofProtocol(EncryptedAggregator(session.evaluation_key))
        result = protocol.run(salary, session.encrypt_many(expenses), threshold)
    """

    def __init__(
        self,
        aggregator: EncryptedAggregator,
        bit_width: int | None = None,
        prover: ArgumentProver | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.bit_width = bit_width or settings.zk.bit_width
        self.prover = prover or ArgumentProver()

    def _check_value(self, name: str, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInputError(f"{name} must be an integer")
        if not 0 <= value < 2**self.bit_width:
            raise InvalidInputError(f"{name} must be in [0, 2^{self.bit_width})")

    def run(
        self,
        salary: int,
        expenses: Sequence[Ciphertext | bytes],
        threshold: int,
    ) -> ProtocolResult:
        """
        Run the protocol.

        Args:
            salary: Private value; never logged or returned
            expenses: Encrypted expense values
            threshold: Public salary threshold

        Returns:
            ProtocolResult with status SUCCESS and a proof, or REJECTED

        Raises:
            InvalidInputError: On out-of-range salary or threshold
            AggregationError: On an empty expense list
            ProofGenerationError: If proving fails for a satisfiable statement
        """
        self._check_value("salary", salary)
        self._check_value("threshold", threshold)
        if not expenses:
            raise AggregationError("cannot average zero values")

        if salary <= threshold:
            logger.info("credit_proof_rejected", threshold=threshold, reason=THRESHOLD_NOT_MET)
            return ProtocolResult(ProtocolStatus.REJECTED, reason=THRESHOLD_NOT_MET)

        circuit = get_comparator_circuit(self.bit_width)
        witness = Witness({PRIVATE_VALUE: salary})
        public_inputs = PublicInputs({PUBLIC_THRESHOLD: threshold})

        nonce = issue_nonce()
        try:
            # The nonce is bound into the argument so it cannot be swapped
            argument = self.prover.prove(circuit, witness, public_inputs, context=nonce)
        except ProverError as e:
            logger.error("credit_proof_generation_failed", error=type(e).__name__)
            raise ProofGenerationError("Failed to prove a satisfiable threshold statement") from e

        encrypted_average = self.aggregator.average(expenses)

        proof = ThresholdProof(
            argument=argument.to_bytes(),
            public_inputs=public_inputs.to_bytes(),
            encrypted_average=encrypted_average.data,
            nonce=nonce,
        )
        logger.info(
            "credit_proof_generated",
            threshold=threshold,
            argument_size=len(proof.argument),
            values=len(expenses),
        )
        return ProtocolResult(ProtocolStatus.SUCCESS, proof=proof)

    async def run_async(
        self,
        salary: int,
        expenses: Sequence[Ciphertext | bytes],
        threshold: int,
    ) -> ProtocolResult:
        """Run the protocol on a worker thread."""
        return await asyncio.to_thread(self.run, salary, expenses, threshold)
