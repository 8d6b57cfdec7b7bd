"""
NBFC Service Core
=================

Holds applicant sessions, runs the threshold-proof protocol and performs
the expense ratio reveal.

The salary is decrypted inside this process to build the witness. It is
never logged, stored in plaintext or returned.

Version: 0.1.0
"""

import asyncio
from functools import lru_cache

from services.nbfc.models import CreditProofRequest, CreditProofResponse
from services.nbfc.sessions import SessionStore
from shared.config import settings
from shared.credit import ThresholdProofProtocol, expense_ratio_basis_points
from shared.exceptions import InvalidInputError
from shared.fhe import Ciphertext, EncryptedAggregator, EncryptionSession, load_evaluation_context
from shared.logging import get_logger
from shared.zk import ArgumentProver


logger = get_logger(__name__)


class NBFCService:
    """
    Prover-side service.

    Usage:
        service = NBFCService(SessionStore())
        session = service.create_session()
        response = service.generate_credit_proof(request)
    """

    def __init__(
        self,
        session_store: SessionStore,
        bit_width: int | None = None,
        prover: ArgumentProver | None = None,
    ) -> None:
        self.sessions = session_store
        self.bit_width = bit_width or settings.zk.bit_width
        self.prover = prover or ArgumentProver()

    def create_session(self) -> EncryptionSession:
        session = self.sessions.create()
        logger.info("nbfc_session_created", session_id=session.session_id)
        return session

    def generate_credit_proof(self, request: CreditProofRequest) -> CreditProofResponse:
        """
        Prove the session's salary exceeds ``request.threshold``.

        Raises:
            SessionNotFoundError: Unknown session
            InvalidInputError: Bad threshold, ciphertext or evaluation key
            ProofGenerationError: Internal proving failure
        """
        session = self.sessions.get(request.session_id)

        evaluation_context = load_evaluation_context(request.evaluation_key)
        if request.evaluation_key != session.evaluation_key:
            raise InvalidInputError("Evaluation key does not belong to this session")

        encrypted_salary = Ciphertext(request.encrypted_salary)
        salary = session.decrypt_integer(encrypted_salary)
        if salary < 0:
            raise InvalidInputError("salary must be non-negative")

        protocol = ThresholdProofProtocol(
            EncryptedAggregator(evaluation_context),
            bit_width=self.bit_width,
            prover=self.prover,
        )
        result = protocol.run(
            salary,
            [Ciphertext(ct) for ct in request.encrypted_expenses],
            request.threshold,
        )

        if result.proof is None:
            return CreditProofResponse(status=result.status, reason=result.reason)

        self.sessions.remember_proof(
            request.session_id, encrypted_salary, result.proof.encrypted_average
        )
        return CreditProofResponse(
            status=result.status,
            argument=result.proof.argument,
            public_inputs=result.proof.public_inputs,
            encrypted_average=result.proof.encrypted_average,
            nonce=result.proof.nonce,
            reason=result.reason,
        )

    async def generate_credit_proof_async(self, request: CreditProofRequest) -> CreditProofResponse:
        """Run ``generate_credit_proof`` on a worker thread."""
        return await asyncio.to_thread(self.generate_credit_proof, request)

    def reveal_expense_ratio(self, session_id: str, encrypted_average: bytes) -> int:
        """
        Decrypt a noisy expense average and express it against the salary.

        Only the average issued with the session's latest credit proof is
        decrypted, and only once.

        Returns:
            Ratio in basis points

        Raises:
            SessionNotFoundError: Unknown or expired session
            InvalidInputError: Ciphertext not issued by this session, or
                already revealed
        """
        session = self.sessions.get(session_id)
        encrypted_salary = self.sessions.claim_average(session_id, encrypted_average)
        salary = session.decrypt_integer(encrypted_salary)
        if salary <= 0:
            raise InvalidInputError("salary must be positive to compute a ratio")

        average = session.decrypt(Ciphertext(encrypted_average))
        ratio = expense_ratio_basis_points(average, salary)
        logger.info("expense_ratio_revealed", session_id=session_id)
        return ratio


@lru_cache
def get_nbfc_service() -> NBFCService:
    """Process-wide service instance."""
    return NBFCService(SessionStore())
