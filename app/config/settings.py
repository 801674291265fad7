"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


COMMISSION_POLICY_DAILY = "daily_aggregate"
COMMISSION_POLICY_PER_TRANSACTION = "per_transaction"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_pool_size: int = Field(default=10, ge=1)
    database_max_overflow: int = Field(default=20, ge=0)

    # Redis (for Dramatiq and distributed locks)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/rewards.log"
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Commission distribution
    commission_policy: str = Field(
        default=COMMISSION_POLICY_DAILY,
        description=(
            "Commission payout policy: 'daily_aggregate' (settlement job, "
            "system of record) or 'per_transaction' (legacy flat bonus)"
        ),
    )
    commission_delay_ms: int = Field(
        default=2_000,
        ge=0,
        description="Delay before per-transaction commission distribution runs",
    )

    # Daily settlement
    settlement_batch_size: int = Field(
        default=500, gt=0, description="Active users fetched per settlement page"
    )
    settlement_hour_utc: int = Field(default=0, ge=0, le=23)
    settlement_minute_utc: int = Field(default=5, ge=0, le=59)

    # Referral graph
    downline_fanout_limit: int = Field(
        default=200,
        gt=0,
        description="Maximum children fetched per node when building downline trees",
    )

    # Withdrawals
    withdrawal_min_amount: float = Field(
        default=10.0, gt=0, description="Minimum withdrawal amount"
    )
    withdrawal_fee_rate: float = Field(
        default=0.05, ge=0, lt=1, description="Withdrawal fee as a fraction"
    )

    # Emergency stop flags
    emergency_stop_withdrawals: bool = Field(
        default=False,
        description="Emergency stop for all withdrawals"
    )
    emergency_stop_commissions: bool = Field(
        default=False,
        description="Emergency stop for all commission distribution"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("commission_policy")
    @classmethod
    def validate_commission_policy(cls, v: str) -> str:
        """Validate commission policy name."""
        value = v.strip().lower()
        if value not in (COMMISSION_POLICY_DAILY, COMMISSION_POLICY_PER_TRANSACTION):
            raise ValueError(
                "COMMISSION_POLICY must be 'daily_aggregate' or 'per_transaction'"
            )
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        value = v.upper()
        if value not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return value

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                logger.warning(
                    "DATABASE_URL points to SQLite in production; "
                    "row locks and concurrent balance updates are not supported."
                )
        return self

    @property
    def uses_daily_settlement(self) -> bool:
        """True when commissions are paid by the daily settlement job."""
        return self.commission_policy == COMMISSION_POLICY_DAILY


settings = Settings()
