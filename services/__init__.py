"""
zkcredit Services
=================

FastAPI services of the privacy-preserving credit evaluation flow.

Services:
- nbfc: encryption sessions, salary threshold proofs, expense ratio reveal
- bank: proof verification and loan decisions
"""

__all__ = [
    "nbfc",
    "bank",
]
