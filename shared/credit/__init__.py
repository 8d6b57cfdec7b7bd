"""
Credit Evaluation Module
========================

Threshold-proof protocol, loan decision policy and replay protection.

Usage:
    from shared.credit import ThresholdProofProtocol, decide

Version: 0.1.0
"""

from shared.credit.decision import (
    ELIGIBLE_REASON,
    INELIGIBLE_REASON,
    RATIO_SCALE,
    EligibilityVerdict,
    ScoringPolicy,
    decide,
    expense_ratio_basis_points,
)
from shared.credit.nonces import NONCE_SIZE, NonceRegistry, issue_nonce
from shared.credit.protocol import (
    THRESHOLD_NOT_MET,
    ProtocolResult,
    ProtocolStatus,
    ThresholdProof,
    ThresholdProofProtocol,
)


__all__ = [
    # Decision
    "RATIO_SCALE",
    "ELIGIBLE_REASON",
    "INELIGIBLE_REASON",
    "EligibilityVerdict",
    "ScoringPolicy",
    "decide",
    "expense_ratio_basis_points",
    # Replay protection
    "NONCE_SIZE",
    "NonceRegistry",
    "issue_nonce",
    # Protocol
    "THRESHOLD_NOT_MET",
    "ProtocolResult",
    "ProtocolStatus",
    "ThresholdProof",
    "ThresholdProofProtocol",
]
