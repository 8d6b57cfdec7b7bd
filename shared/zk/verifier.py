"""
ZK Argument Verification
========================

Checks MPC-in-the-head arguments against a circuit and public inputs.

For every repetition the verifier re-derives the two opened parties' tapes
from their seeds, re-runs them through the circuit, recomputes their view
commitments and output shares, and infers the hidden party's outputs from
the expected circuit outputs. The recomputed Fiat-Shamir digest must equal
the one carried by the argument.

Every failure raises VerificationError; callers must treat it as "do not
trust", never as a system fault.

Version: 0.1.0
"""

import asyncio
import hmac
import time
from collections.abc import Mapping

from shared.config import settings
from shared.exceptions import InvalidInputError, VerificationError
from shared.logging import get_logger
from shared.zk.circuit import Circuit
from shared.zk.field import FIELD_MODULUS, FieldElement
from shared.zk.models import Argument, PublicInputs
from shared.zk.mpc import (
    PARTIES,
    challenge_digest,
    commit_view,
    expand_tape,
    simulate,
    tape_length,
)


logger = get_logger(__name__)

P = FIELD_MODULUS


class ArgumentVerifier:
    """
    Argument verifier.

    The repetition count is a property of the verifier, not of the
    argument: an argument with fewer repetitions than required is rejected.
    """

    def __init__(self, repetitions: int | None = None) -> None:
        """
        Initialize the verifier.

        Args:
            repetitions: Required number of repetitions.
                        Defaults to settings.zk.repetitions.
        """
        self.repetitions = repetitions or settings.zk.repetitions

    def verify(
        self,
        circuit: Circuit,
        argument: bytes | Argument,
        public_inputs: PublicInputs | Mapping[str, FieldElement | int],
        context: bytes = b"",
    ) -> None:
        """
        Verify an argument.

        Args:
            circuit: Circuit the argument claims to satisfy
            argument: Serialized or parsed argument
            public_inputs: Must equal the public inputs used when proving
            context: Must equal the context bytes used when proving

        Raises:
            VerificationError: If the argument must not be trusted
        """
        start_time = time.time()
        try:
            self._verify(circuit, argument, public_inputs, context)
        except VerificationError as e:
            logger.warning(
                "zk_argument_rejected",
                circuit=circuit.digest.hex()[:16],
                error=str(e),
            )
            raise

        logger.info(
            "zk_argument_verified",
            circuit=circuit.digest.hex()[:16],
            repetitions=self.repetitions,
            verification_time_ms=int((time.time() - start_time) * 1000),
        )

    def _verify(
        self,
        circuit: Circuit,
        argument: bytes | Argument,
        public_inputs: PublicInputs | Mapping[str, FieldElement | int],
        context: bytes,
    ) -> None:
        try:
            if not isinstance(public_inputs, PublicInputs):
                public_inputs = PublicInputs(public_inputs)
        except (InvalidInputError, TypeError) as e:
            raise VerificationError(f"Malformed public inputs: {e}") from e

        if set(public_inputs) != circuit.public_input_names:
            raise VerificationError("Public inputs do not match the circuit's public inputs")

        # Parsed arguments go through the wire format too, so round challenges
        # are always derived from the digest rather than taken from the object
        if isinstance(argument, Argument):
            try:
                argument = argument.to_bytes()
            except (AttributeError, OverflowError, TypeError, ValueError) as e:
                raise VerificationError(f"Malformed argument: {e}") from e
        argument = Argument.from_bytes(argument, circuit)

        if argument.repetitions != self.repetitions or len(argument.rounds) != self.repetitions:
            raise VerificationError(
                f"Argument has {argument.repetitions} repetitions, {self.repetitions} required"
            )

        public_values = circuit.evaluate_public(public_inputs)
        for assertion in circuit.public_assertions:
            if public_values[assertion.wire] != assertion.expected:
                raise VerificationError("Public inputs violate the circuit's constraints")

        expected = [a.expected for a in circuit.private_assertions]
        n_private = len(circuit.private_wires)
        n_mul = len(circuit.mul_wires)
        length = tape_length(circuit)

        all_outputs = []
        all_commitments = []
        for rnd in argument.rounds:
            e, nxt = rnd.opened
            hidden = (e + 2) % PARTIES

            if len(rnd.view) != n_mul or len(rnd.explicit_inputs) != n_private:
                raise VerificationError("Round does not match the circuit layout")

            seeds = {e: rnd.seeds[0], nxt: rnd.seeds[1]}
            tapes = {party: expand_tape(seeds[party], length) for party in (e, nxt)}
            shares = {
                party: list(rnd.explicit_inputs) if party == 2 else tapes[party][:n_private]
                for party in (e, nxt)
            }

            views, outputs = simulate(
                circuit,
                public_values,
                parties=(e, nxt),
                input_shares=shares,
                tapes=tapes,
                given_views={nxt: rnd.view},
            )

            round_outputs: list[list[int]] = [[], [], []]
            round_outputs[e] = outputs[e]
            round_outputs[nxt] = outputs[nxt]
            round_outputs[hidden] = [
                (target - y_e - y_n) % P
                for target, y_e, y_n in zip(expected, outputs[e], outputs[nxt], strict=True)
            ]

            round_commitments: list[bytes] = [b"", b"", b""]
            round_commitments[e] = commit_view(
                seeds[e], shares[e] if e == 2 else None, views[e]
            )
            round_commitments[nxt] = commit_view(
                seeds[nxt], shares[nxt] if nxt == 2 else None, views[nxt]
            )
            round_commitments[hidden] = rnd.hidden_commitment

            all_outputs.append(round_outputs)
            all_commitments.append(round_commitments)

        digest = challenge_digest(
            circuit, public_inputs.to_bytes(), all_outputs, all_commitments, context
        )
        if not hmac.compare_digest(digest, argument.challenge):
            raise VerificationError("Argument does not verify")

    async def verify_async(
        self,
        circuit: Circuit,
        argument: bytes | Argument,
        public_inputs: PublicInputs | Mapping[str, FieldElement | int],
        context: bytes = b"",
    ) -> None:
        """Run ``verify`` on a worker thread."""
        await asyncio.to_thread(self.verify, circuit, argument, public_inputs, context)


# Convenience functions

def verify(
    circuit: Circuit,
    argument: bytes | Argument,
    public_inputs: PublicInputs | Mapping[str, FieldElement | int],
    repetitions: int | None = None,
    context: bytes = b"",
) -> None:
    """Verify with a default-configured verifier; raises VerificationError."""
    ArgumentVerifier(repetitions).verify(circuit, argument, public_inputs, context)


async def verify_async(
    circuit: Circuit,
    argument: bytes | Argument,
    public_inputs: PublicInputs | Mapping[str, FieldElement | int],
    repetitions: int | None = None,
    context: bytes = b"",
) -> None:
    """Verify on a worker thread; raises VerificationError."""
    await ArgumentVerifier(repetitions).verify_async(circuit, argument, public_inputs, context)


def is_valid(
    circuit: Circuit,
    argument: bytes | Argument,
    public_inputs: PublicInputs | Mapping[str, FieldElement | int],
    repetitions: int | None = None,
    context: bytes = b"",
) -> bool:
    """Boolean form of ``verify``."""
    try:
        verify(circuit, argument, public_inputs, repetitions, context)
    except VerificationError:
        return False
    return True
