"""
ZK Argument Generation
======================

Produces non-interactive MPC-in-the-head arguments that a private witness
satisfies every constraint of a circuit.

Per repetition the prover secret-shares the private wires between three
simulated parties, runs the circuit, and commits to each party's seed and
view. A Fiat-Shamir challenge then selects two adjacent parties to open.
Any two views reveal nothing about the witness; a cheating prover is caught
in each repetition with probability at least 1/3.

Proving is CPU-bound. Async callers should use ``prove_async``, which runs
on a worker thread.

Version: 0.1.0
"""

import asyncio
import secrets
import time
from collections.abc import Mapping

from shared.config import settings
from shared.exceptions import ProofGenerationError, ProverError, UnknownWireError, UnsatisfiedWitnessError
from shared.logging import get_logger
from shared.zk.circuit import Circuit
from shared.zk.field import FIELD_MODULUS, FieldElement
from shared.zk.models import Argument, ArgumentRound, PublicInputs, Witness
from shared.zk.mpc import (
    PARTIES,
    SEED_SIZE,
    challenge_digest,
    commit_view,
    derive_challenges,
    expand_tape,
    simulate,
    tape_length,
)


logger = get_logger(__name__)

P = FIELD_MODULUS


class ArgumentProver:
    """
    Argument generator.

    Usage:
        prover = ArgumentProver()
        argument = prover.prove(
            circuit,
            Witness({"private_value": 6000}),
            PublicInputs({"public_threshold": 5000}),
        )
        blob = argument.to_bytes()
    """

    def __init__(self, repetitions: int | None = None) -> None:
        """
        Initialize the prover.

        Args:
            repetitions: Number of parallel repetitions.
                        Defaults to settings.zk.repetitions.
        """
        self.repetitions = repetitions or settings.zk.repetitions
        if not 1 <= self.repetitions <= 65535:
            raise ValueError(f"repetitions must be in [1, 65535], got {self.repetitions}")

    def _check_names(
        self,
        circuit: Circuit,
        witness: Mapping[str, FieldElement],
        public_inputs: Mapping[str, FieldElement],
    ) -> None:
        private_names = circuit.private_input_names
        public_names = circuit.public_input_names

        for name in witness:
            if name not in private_names:
                raise UnknownWireError(f"Circuit has no private input '{name}'")
        for name in public_inputs:
            if name not in public_names:
                raise UnknownWireError(f"Circuit has no public input '{name}'")

        missing = sorted((private_names - set(witness)) | (public_names - set(public_inputs)))
        if missing:
            raise ProverError(f"Missing values for inputs: {', '.join(missing)}")

    def prove(
        self,
        circuit: Circuit,
        witness: Witness | Mapping[str, FieldElement | int],
        public_inputs: PublicInputs | Mapping[str, FieldElement | int],
        context: bytes = b"",
    ) -> Argument:
        """
        Generate an argument that ``witness`` satisfies ``circuit``.

        Args:
            circuit: Circuit to prove against
            witness: Values for every private input
            public_inputs: Values for every public input
            context: Extra bytes the argument is bound to, e.g. a nonce;
                     the verifier must supply the same bytes

        Returns:
            Argument bound to the circuit digest and the public inputs

        Raises:
            UnknownWireError: If a name is not an input of the right kind
            UnsatisfiedWitnessError: If any constraint fails
            ProverError: If an input value is missing
        """
        if not isinstance(witness, Witness):
            witness = Witness(witness)
        if not isinstance(public_inputs, PublicInputs):
            public_inputs = PublicInputs(public_inputs)

        self._check_names(circuit, witness, public_inputs)

        start_time = time.time()

        values = circuit.evaluate(witness, public_inputs)
        failed = circuit.unsatisfied(values)
        if failed:
            raise UnsatisfiedWitnessError(
                f"Witness violates {len(failed)} of {len(circuit.assertions)} constraints"
            )

        public_values = {w: values[w] for w, gate in enumerate(circuit.gates) if gate.public}
        secret = [values[w] for w in circuit.private_wires]
        expected = [a.expected for a in circuit.private_assertions]
        public_bytes = public_inputs.to_bytes()
        n_private = len(secret)
        length = tape_length(circuit)

        all_seeds = []
        all_explicit = []
        all_views = []
        all_outputs = []
        all_commitments = []

        for _ in range(self.repetitions):
            seeds = [secrets.token_bytes(SEED_SIZE) for _ in range(PARTIES)]
            tapes = {party: expand_tape(seeds[party], length) for party in range(PARTIES)}

            share_0 = tapes[0][:n_private]
            share_1 = tapes[1][:n_private]
            share_2 = [(x - a - b) % P for x, a, b in zip(secret, share_0, share_1, strict=True)]
            shares = {0: share_0, 1: share_1, 2: share_2}

            views, outputs = simulate(
                circuit,
                public_values,
                parties=range(PARTIES),
                input_shares=shares,
                tapes=tapes,
            )

            for i, target in enumerate(expected):
                if sum(outputs[party][i] for party in range(PARTIES)) % P != target:
                    raise ProofGenerationError("Party outputs do not reconstruct the expected values")

            commitments = [
                commit_view(seeds[party], share_2 if party == 2 else None, views[party])
                for party in range(PARTIES)
            ]

            all_seeds.append(seeds)
            all_explicit.append(share_2)
            all_views.append(views)
            all_outputs.append([outputs[party] for party in range(PARTIES)])
            all_commitments.append(commitments)

        digest = challenge_digest(circuit, public_bytes, all_outputs, all_commitments, context)
        challenges = derive_challenges(digest, self.repetitions)

        rounds = []
        for r, e in enumerate(challenges):
            nxt = (e + 1) % PARTIES
            hidden = (e + 2) % PARTIES
            opens_two = 2 in (e, nxt)
            rounds.append(
                ArgumentRound(
                    challenge=e,
                    seeds=(all_seeds[r][e], all_seeds[r][nxt]),
                    hidden_commitment=all_commitments[r][hidden],
                    explicit_inputs=tuple(all_explicit[r]) if opens_two else (0,) * n_private,
                    view=tuple(all_views[r][nxt]),
                )
            )

        argument = Argument(
            circuit_digest=circuit.digest,
            repetitions=self.repetitions,
            challenge=digest,
            rounds=tuple(rounds),
        )

        proving_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "zk_argument_generated",
            circuit=circuit.digest.hex()[:16],
            repetitions=self.repetitions,
            proving_time_ms=proving_time_ms,
        )
        return argument

    async def prove_async(
        self,
        circuit: Circuit,
        witness: Witness | Mapping[str, FieldElement | int],
        public_inputs: PublicInputs | Mapping[str, FieldElement | int],
        context: bytes = b"",
    ) -> Argument:
        """Run ``prove`` on a worker thread."""
        return await asyncio.to_thread(self.prove, circuit, witness, public_inputs, context)


# Convenience functions

def prove(
    circuit: Circuit,
    witness: Witness | Mapping[str, FieldElement | int],
    public_inputs: PublicInputs | Mapping[str, FieldElement | int],
    repetitions: int | None = None,
    context: bytes = b"",
) -> Argument:
    """Generate an argument with a default-configured prover."""
    return ArgumentProver(repetitions).prove(circuit, witness, public_inputs, context)


async def prove_async(
    circuit: Circuit,
    witness: Witness | Mapping[str, FieldElement | int],
    public_inputs: PublicInputs | Mapping[str, FieldElement | int],
    repetitions: int | None = None,
    context: bytes = b"",
) -> Argument:
    """Generate an argument on a worker thread."""
    return await ArgumentProver(repetitions).prove_async(circuit, witness, public_inputs, context)
