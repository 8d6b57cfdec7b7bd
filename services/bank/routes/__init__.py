"""
Bank Service Routes
===================

API route handlers for the Bank service.
"""

from services.bank.routes import decisions


__all__ = ["decisions"]
