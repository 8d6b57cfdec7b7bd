"""
NBFC Service
============

Prover-side collaborator of the credit evaluation flow.

This service provides:
- Per-applicant CKKS encryption sessions
- Salary threshold arguments with a noisy encrypted expense average
- The expense ratio reveal step for the lender

Version: 0.1.0
"""

__version__ = "0.1.0"
