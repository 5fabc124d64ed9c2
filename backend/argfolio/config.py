# backend/argfolio/config.py
"""
Engine configuration using Pydantic Settings.

Loads configuration from environment variables (prefix ARGFOLIO_) with validation:
- ARGFOLIO_ENVIRONMENT: Runtime mode (development, test, production)
- ARGFOLIO_LOG_LEVEL / ARGFOLIO_LOG_FORMAT: Logging setup
- ARGFOLIO_MIN_SIGNIFICANT_*: Significance thresholds for the rubro builder
- ARGFOLIO_DEFAULT_COSTING_METHOD: Lot selection used by sale previews

Configuration is validated on import. Invalid configuration
will raise a ValueError with a descriptive message.

Usage:
    from argfolio.config import settings

    if settings.is_production:
        ...

Services accept a Settings instance so tests can inject their own:

    PortfolioService(settings=Settings(min_significant_ars=Decimal("10")))
"""
from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from argfolio.models import CostingMethod


# The .env file lives in the project root (parent of backend/)
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Environment variables:
        - ARGFOLIO_ENVIRONMENT: Runtime environment (development, test, production)
        - ARGFOLIO_LOG_LEVEL: Logging level (default: "INFO")
        - ARGFOLIO_LOG_FORMAT: "text" or "json" (default: "text")

    Valuation thresholds (optional, with sensible defaults):
        - ARGFOLIO_MIN_SIGNIFICANT_ARS: Minimum ARS value for a row to be shown
        - ARGFOLIO_MIN_SIGNIFICANT_USD_QTY: Minimum USD quantity for USD cash rows
        - ARGFOLIO_LOT_QUANTITY_TOLERANCE: Allowed drift between FIFO lots and positions
    """

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    # =========================================================================
    # SIGNIFICANCE THRESHOLDS
    # =========================================================================
    min_significant_ars: Decimal = Field(
        default=Decimal("1"),
        description="Rows valued below this many ARS are hidden (cash and tradeables)"
    )
    min_significant_usd_qty: Decimal = Field(
        default=Decimal("0.01"),
        description="USD cash rows with at least this quantity are always shown"
    )
    lot_quantity_tolerance: Decimal = Field(
        default=Decimal("0.00000001"),
        description="Max difference between FIFO lot quantity and position quantity"
    )

    # =========================================================================
    # DEFAULTS
    # =========================================================================
    default_costing_method: CostingMethod = Field(
        default=CostingMethod.FIFO,
        description="Lot selection method used when a sale preview names none"
    )
    default_fixed_deposit_term_days: int = Field(
        default=30,
        ge=1,
        le=3650,
        description="Term assumed for fixed deposits recorded without one"
    )
    recent_interest_limit: int = Field(
        default=30,
        ge=0,
        le=365,
        description="Number of interest movements listed in wallet details"
    )

    model_config = SettingsConfigDict(
        env_prefix="ARGFOLIO_",
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        """
        Reject thresholds that would make the significance filter meaningless.

        Rules:
        - min_significant_ars and min_significant_usd_qty must be >= 0
        - lot_quantity_tolerance must be >= 0
        """
        for name in ("min_significant_ars", "min_significant_usd_qty", "lot_quantity_tolerance"):
            if getattr(self, name) < 0:
                raise ValueError(
                    f"{name.upper()} cannot be negative, got {getattr(self, name)}"
                )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


# Create single instance
settings = Settings()
