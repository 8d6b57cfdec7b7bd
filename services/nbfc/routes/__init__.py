"""
NBFC Service Routes
===================

API route handlers for the NBFC service.
"""

from services.nbfc.routes import proofs, sessions


__all__ = ["proofs", "sessions"]
