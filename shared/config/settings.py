"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ZKSettings(BaseSettings):
    """Zero-knowledge argument configuration."""

    model_config = SettingsConfigDict(env_prefix="ZK_")

    # Public bit width of the comparator circuit; both parties must agree on it
    bit_width: int = Field(default=64, ge=1, le=126)

    # Each repetition lets a cheating prover through with probability 2/3.
    # 137 repetitions gives roughly 80 bits of soundness.
    repetitions: int = Field(default=137, ge=1, le=65535)


class FHESettings(BaseSettings):
    """Homomorphic encryption (TenSEAL CKKS) configuration."""

    model_config = SettingsConfigDict(env_prefix="FHE_")

    poly_modulus_degree: int = 8192
    coeff_mod_bit_sizes: list[int] = Field(default_factory=lambda: [60, 40, 40, 60])
    global_scale_bits: int = 40

    # Differential privacy noise is drawn uniformly from [0, noise_bound]
    noise_bound: int = Field(default=5, ge=0)

    @property
    def global_scale(self) -> int:
        """CKKS encoding scale."""
        return 2**self.global_scale_bits


class CreditPolicySettings(BaseSettings):
    """Loan decision scoring policy."""

    model_config = SettingsConfigDict(env_prefix="CREDIT_")

    base_score: int = 700
    max_bonus: int = 100
    ineligible_score: int = 600

    # Basis points (10000 = 100%)
    default_max_expense_ratio: int = Field(default=5000, ge=1, le=10000)


class ServicePorts(BaseSettings):
    """Service port configuration."""

    nbfc: int = Field(default=50051, alias="NBFC_PORT")
    bank: int = Field(default=50052, alias="BANK_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    # Service ports
    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Where the Bank reaches the NBFC for the expense ratio reveal step
    nbfc_url: str = "http://localhost:50051"
    nbfc_timeout_seconds: float = 30.0
    nbfc_max_retries: int = Field(default=3, ge=1)

    # NBFC encryption sessions hold secret keys; bound how many and how long
    nbfc_max_sessions: int = Field(default=1000, ge=1)
    nbfc_session_ttl_seconds: float = Field(default=900.0, gt=0)

    # Bank refuses nonces issued longer ago than this
    nonce_ttl_seconds: float = Field(default=900.0, gt=0)

    # Cryptography
    zk: ZKSettings = Field(default_factory=ZKSettings)
    fhe: FHESettings = Field(default_factory=FHESettings)

    # Decision policy
    credit: CreditPolicySettings = Field(default_factory=CreditPolicySettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
