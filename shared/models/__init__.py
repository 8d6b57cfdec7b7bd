"""
Shared Models
=============

Pydantic models shared across zkcredit services.
"""

from shared.models.common import (
    Base64Payload,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "Base64Payload",
    "ErrorResponse",
    "HealthResponse",
]
