"""
zkcredit Shared Library
=======================

Common utilities and the cryptographic core shared by the zkcredit services.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - models: Shared Pydantic models
    - zk: Circuits and the MPC-in-the-head argument system
    - fhe: TenSEAL CKKS sessions and encrypted aggregation
    - credit: Threshold-proof protocol and loan decisions

Version: 0.1.0
"""

__version__ = "0.1.0"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
