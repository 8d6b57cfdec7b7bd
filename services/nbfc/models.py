"""
NBFC Request/Response Models
============================

Byte fields travel as base64 text.
"""

from pydantic import BaseModel, Field

from shared.credit import ProtocolStatus
from shared.models import Base64Payload


class SessionResponse(BaseModel):
    """A new encryption session."""

    session_id: str
    evaluation_key: Base64Payload = Field(..., description="Public CKKS context")


class CreditProofRequest(BaseModel):
    """Request to prove salary > threshold for a session."""

    session_id: str
    encrypted_salary: Base64Payload
    encrypted_expenses: list[Base64Payload]
    evaluation_key: Base64Payload
    threshold: int = Field(..., description="Public salary threshold")

    def __repr__(self) -> str:
        return (
            f"CreditProofRequest(session_id={self.session_id!r}, "
            f"expenses={len(self.encrypted_expenses)}, threshold={self.threshold})"
        )


class CreditProofResponse(BaseModel):
    """Protocol outcome; byte fields are absent when rejected."""

    status: ProtocolStatus
    argument: Base64Payload | None = None
    public_inputs: Base64Payload | None = None
    encrypted_average: Base64Payload | None = None
    nonce: Base64Payload | None = None
    reason: str = ""


class ExpenseRatioRequest(BaseModel):
    """Encrypted average to reveal as a ratio of the session's salary."""

    encrypted_average: Base64Payload


class ExpenseRatioResponse(BaseModel):
    session_id: str
    expense_ratio: int = Field(..., description="Basis points, 10000 = 100%")
