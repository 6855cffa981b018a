"""
Configuration management for the Laundry Order Platform.

Loads settings from .env via pydantic-settings.

Notes:
    - pickup_fee / delivery_fee are per-deployment surcharges (rupiah)
    - validate_production_settings() enforces strict CORS and a JWT secret in production
    - an empty SMTP_HOST disables outgoing email (notifications are still recorded)
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/laundry.db"
    store_timeout_seconds: float = 5.0   # bound on a single load/commit

    # ── Pricing (rupiah) ────────────────────────────────────────────
    pickup_fee: int = 5_000      # courier collects laundry (PICKUP orders)
    delivery_fee: int = 10_000   # courier returns finished laundry
    default_payment_method: str = "QRIS"

    # ── Email (SMTP) ────────────────────────────────────────────────
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "Laundry <no-reply@laundry.local>"
    smtp_start_tls: bool = True
    smtp_timeout_seconds: float = 10.0

    # ── Side effects ────────────────────────────────────────────────
    # Email + real-time publication run after commit; this bounds each one.
    side_effect_timeout_seconds: float = 15.0

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "laundry-api"
    jwt_access_ttl_minutes: int = 60

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5500,http://127.0.0.1:5500,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host)

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup.
        """
        if self.pickup_fee < 0 or self.delivery_fee < 0:
            raise ValueError("PICKUP_FEE and DELIVERY_FEE must not be negative.")

        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to verify access tokens."
                )
            if not self.smtp_host:
                logger.warning("SMTP_HOST not set: order emails are disabled")
            logger.info("✅ Production settings validated")
        else:
            warnings = []
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            if not self.smtp_host:
                warnings.append("SMTP_HOST empty (emails are logged, not sent)")
            for w in warnings:
                logger.warning(f"⚠️  {w}")


# Global settings instance
settings = Settings()
