"""
Encryption Session Routes
=========================

API endpoints for applicant sessions and the expense ratio reveal.
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, status

from services.nbfc.models import ExpenseRatioRequest, ExpenseRatioResponse, SessionResponse
from services.nbfc.service import NBFCService, get_nbfc_service
from services.nbfc.sessions import SessionLimitError, SessionNotFoundError
from shared.exceptions import InvalidInputError
from shared.logging import get_logger


logger = get_logger(__name__)
router = APIRouter()


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    service: NBFCService = Depends(get_nbfc_service),
) -> SessionResponse:
    """
    Create an encryption session for one applicant.

    The response carries the public evaluation key the applicant encrypts
    salary and expenses with.
    """
    try:
        session = await asyncio.to_thread(service.create_session)
    except SessionLimitError as e:
        logger.warning("nbfc_session_limit_reached", error=str(e))
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    return SessionResponse(session_id=session.session_id, evaluation_key=session.evaluation_key)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: str,
    service: NBFCService = Depends(get_nbfc_service),
) -> None:
    """Discard a session and its keys."""
    try:
        service.sessions.close(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post("/{session_id}/expense-ratio", response_model=ExpenseRatioResponse)
async def reveal_expense_ratio(
    session_id: str,
    request: ExpenseRatioRequest,
    service: NBFCService = Depends(get_nbfc_service),
) -> ExpenseRatioResponse:
    """
    Reveal a noisy expense average as a share of the session's salary.

    Only the ratio, in basis points, leaves the service.
    """
    try:
        ratio = await asyncio.to_thread(
            service.reveal_expense_ratio, session_id, request.encrypted_average
        )
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except InvalidInputError as e:
        logger.warning("expense_ratio_invalid_request", session_id=session_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return ExpenseRatioResponse(session_id=session_id, expense_ratio=ratio)
