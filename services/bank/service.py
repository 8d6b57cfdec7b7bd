"""
Bank Service Core
=================

Verifies a threshold proof and decides on the loan.

Every check fails closed: any failure yields an ineligible decision with
score 0 and a fixed reason, never an exception to the caller.

Version: 0.1.0
"""

from collections.abc import Awaitable, Callable
from functools import lru_cache

from services.bank.models import LoanDecision, LoanDecisionRequest
from shared.config import settings
from shared.credit import (
    RATIO_SCALE,
    THRESHOLD_NOT_MET,
    NonceRegistry,
    ScoringPolicy,
    decide,
)
from shared.exceptions import InvalidInputError, ReplayDetectedError, VerificationError
from shared.logging import bind_context, clear_context, get_logger
from shared.zk import PUBLIC_THRESHOLD, ArgumentVerifier, PublicInputs, get_comparator_circuit


logger = get_logger(__name__)

NONCE_REUSED = "nonce already used"
PUBLIC_INPUTS_MISMATCH = "public inputs do not match requested threshold"
VERIFICATION_FAILED = "proof verification failed"
RATIO_UNAVAILABLE = "expense ratio unavailable"

RevealExpenseRatio = Callable[[str, bytes], Awaitable[int]]


def _rejected(reason: str) -> LoanDecision:
    return LoanDecision(eligible=False, reason=reason, score=0)


class BankService:
    """
    Verifier-side service.

    Usage:
        service = BankService()
        decision = await service.verify_proof_and_decide(request, client.reveal_expense_ratio)
    """

    def __init__(
        self,
        nonce_registry: NonceRegistry | None = None,
        policy: ScoringPolicy | None = None,
        bit_width: int | None = None,
        verifier: ArgumentVerifier | None = None,
    ) -> None:
        self.nonces = nonce_registry or NonceRegistry()
        self.policy = policy or ScoringPolicy()
        self.bit_width = bit_width or settings.zk.bit_width
        self.verifier = verifier or ArgumentVerifier()

    def _check_public_inputs(self, request: LoanDecisionRequest) -> PublicInputs | None:
        try:
            public_inputs = PublicInputs.from_bytes(request.public_inputs)
        except InvalidInputError:
            return None
        if set(public_inputs) != {PUBLIC_THRESHOLD}:
            return None
        if int(public_inputs[PUBLIC_THRESHOLD]) != request.threshold:
            return None
        return public_inputs

    async def verify_proof_and_decide(
        self,
        request: LoanDecisionRequest,
        reveal_expense_ratio: RevealExpenseRatio,
    ) -> LoanDecision:
        """
        Verify the proof, obtain the expense ratio and decide.

        Args:
            request: Proof fields and the lender's terms
            reveal_expense_ratio: Async callable returning the ratio in
                basis points for (session_id, encrypted_average)

        Returns:
            LoanDecision
        """
        bind_context(session_id=request.session_id)
        try:
            return await self._decide(request, reveal_expense_ratio)
        finally:
            clear_context()

    async def _decide(
        self,
        request: LoanDecisionRequest,
        reveal_expense_ratio: RevealExpenseRatio,
    ) -> LoanDecision:
        if not request.argument:
            logger.info("loan_rejected", reason=THRESHOLD_NOT_MET)
            return _rejected(THRESHOLD_NOT_MET)

        try:
            self.nonces.consume(request.nonce)
        except (ReplayDetectedError, InvalidInputError) as e:
            logger.warning("loan_nonce_rejected", error=str(e))
            return _rejected(NONCE_REUSED)

        public_inputs = self._check_public_inputs(request)
        if public_inputs is None:
            logger.warning("loan_public_inputs_mismatch", threshold=request.threshold)
            return _rejected(PUBLIC_INPUTS_MISMATCH)

        circuit = get_comparator_circuit(self.bit_width)
        try:
            await self.verifier.verify_async(
                circuit, request.argument, public_inputs, context=request.nonce
            )
        except VerificationError:
            return _rejected(VERIFICATION_FAILED)

        try:
            ratio = await reveal_expense_ratio(request.session_id, request.encrypted_average)
        except Exception as e:
            # The reveal step is remote; whatever went wrong, do not approve
            logger.warning("expense_ratio_reveal_failed", error=str(e), error_type=type(e).__name__)
            return _rejected(RATIO_UNAVAILABLE)

        if isinstance(ratio, bool) or not isinstance(ratio, int) or not 0 <= ratio <= RATIO_SCALE:
            logger.warning("expense_ratio_out_of_range")
            return _rejected(RATIO_UNAVAILABLE)

        verdict = decide(
            request.argument,
            public_inputs,
            ratio,
            request.max_expense_ratio,
            self.policy,
        )
        return LoanDecision(eligible=verdict.eligible, reason=verdict.reason, score=verdict.score)


@lru_cache
def get_bank_service() -> BankService:
    """Process-wide service instance; owns the nonce registry."""
    return BankService()
