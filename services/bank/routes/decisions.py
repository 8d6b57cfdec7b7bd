"""
Loan Decision Routes
====================

API endpoint for verifying threshold proofs and deciding on loans.
"""

from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends

from services.bank.client import NBFCClient
from services.bank.models import LoanDecision, LoanDecisionRequest
from services.bank.service import BankService, get_bank_service
from shared.logging import get_logger


logger = get_logger(__name__)
router = APIRouter()


async def get_nbfc_client() -> AsyncGenerator[NBFCClient, None]:
    """Per-request NBFC client."""
    async with NBFCClient() as client:
        yield client


@router.post("", response_model=LoanDecision)
async def decide_loan(
    request: LoanDecisionRequest,
    service: BankService = Depends(get_bank_service),
    nbfc: NBFCClient = Depends(get_nbfc_client),
) -> LoanDecision:
    """
    Verify a salary threshold proof and decide on the loan.

    Cryptographic failures are not HTTP errors: they produce an ineligible
    decision with score 0.
    """
    logger.info(
        "loan_decision_requested",
        session_id=request.session_id,
        threshold=request.threshold,
        max_ratio=request.max_expense_ratio,
    )
    return await service.verify_proof_and_decide(request, nbfc.reveal_expense_ratio)
