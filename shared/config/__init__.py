"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from shared.config import settings

    print(settings.environment)
    print(settings.zk.bit_width)
"""

from shared.config.settings import (
    CreditPolicySettings,
    Environment,
    FHESettings,
    LogLevel,
    Settings,
    ZKSettings,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
    "ZKSettings",
    "FHESettings",
    "CreditPolicySettings",
]
