"""
Credit Proof Routes
===================

API endpoint for generating salary threshold proofs.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from services.nbfc.models import CreditProofRequest, CreditProofResponse
from services.nbfc.service import NBFCService, get_nbfc_service
from services.nbfc.sessions import SessionNotFoundError
from shared.exceptions import CreditEvaluationError, InvalidInputError
from shared.logging import get_logger


logger = get_logger(__name__)
router = APIRouter()


@router.post("", response_model=CreditProofResponse)
async def generate_credit_proof(
    request: CreditProofRequest,
    service: NBFCService = Depends(get_nbfc_service),
) -> CreditProofResponse:
    """
    Prove the applicant's salary exceeds a public threshold.

    A salary at or below the threshold is not an error: the response has
    status "rejected" and carries no proof.
    """
    logger.info(
        "credit_proof_requested",
        session_id=request.session_id,
        threshold=request.threshold,
    )

    try:
        return await service.generate_credit_proof_async(request)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except InvalidInputError as e:
        logger.warning("credit_proof_validation_error", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except CreditEvaluationError as e:
        logger.error("credit_proof_generation_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Proof generation failed",
        ) from e
