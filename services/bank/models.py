"""
Bank Request/Response Models
============================
"""

from pydantic import BaseModel, Field

from shared.config import settings
from shared.credit import RATIO_SCALE
from shared.models import Base64Payload


class LoanDecisionRequest(BaseModel):
    """A threshold proof as produced by the NBFC, plus the lender's terms."""

    session_id: str
    argument: Base64Payload
    public_inputs: Base64Payload
    encrypted_average: Base64Payload
    nonce: Base64Payload
    threshold: int = Field(..., ge=0, description="Salary threshold the lender requires")
    max_expense_ratio: int = Field(
        default_factory=lambda: settings.credit.default_max_expense_ratio,
        ge=1,
        le=RATIO_SCALE,
        description="Basis points, 10000 = 100%",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "session_id": "7f1c2d9e-0000-4000-8000-000000000000",
                    "argument": "WktDQQE...",
                    "public_inputs": "AAEQcHVibGljX3RocmVzaG9sZA...",
                    "encrypted_average": "XqEQBAAA...",
                    "nonce": "q83vASNFZ4mrze8BI0VniavN7wEjRWeJq83vASNFZ4k=",
                    "threshold": 5000,
                    "max_expense_ratio": 5000,
                }
            ]
        }
    }


class LoanDecision(BaseModel):
    """Loan decision. Every failed check yields eligible=False, score=0."""

    eligible: bool
    reason: str
    score: int
