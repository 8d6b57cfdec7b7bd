"""
Homomorphic Encryption Module
=============================

TenSEAL CKKS sessions and the noisy encrypted aggregator.

Version: 0.1.0
"""

from shared.fhe.aggregator import EncryptedAggregator
from shared.fhe.session import (
    Ciphertext,
    EncryptionSession,
    encrypt_value,
    load_evaluation_context,
)


__all__ = [
    "Ciphertext",
    "EncryptionSession",
    "EncryptedAggregator",
    "encrypt_value",
    "load_evaluation_context",
]
