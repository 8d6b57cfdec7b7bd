"""
Bank Service
============

Verifier-side collaborator of the credit evaluation flow.

This service provides:
- Threshold argument verification with replay protection
- Expense ratio retrieval from the NBFC
- Deterministic loan decisions

Version: 0.1.0
"""

__version__ = "0.1.0"
