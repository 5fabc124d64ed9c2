# backend/argfolio/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

This module provides:
- Currency code validation (fiat and crypto symbols)
- Identifier validation
- Rate validation (TNA percentages)
- Timestamp normalization (naive datetimes are UTC)

These validators ensure consistent input handling across all schemas.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal

# =============================================================================
# CONSTANTS
# =============================================================================

# Currency: ISO 4217 (ARS, USD) or crypto tickers (USDT, BTC, MATIC)
CURRENCY_PATTERN = re.compile(r'^[A-Z0-9]{2,10}$')

# Tickers quoted in USD for valuation purposes
USD_LIKE_CURRENCIES = frozenset({"USD", "USDT", "USDC", "DAI"})

# Nominal annual rates above this are almost certainly a units mistake
# (e.g. 0.35 typed as 35000)
MAX_TNA_PERCENT = Decimal("1000")


# =============================================================================
# CURRENCY VALIDATION
# =============================================================================

def validate_currency(value: str) -> str:
    """
    Validate and normalize a currency code.

    Args:
        value: Raw currency input

    Returns:
        Normalized currency code (uppercase, trimmed)

    Raises:
        ValueError: If currency format is invalid
    """
    if not value:
        raise ValueError("Currency cannot be empty")

    normalized = value.strip().upper()

    if not CURRENCY_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid currency code: '{normalized}'. "
            "Must be 2-10 uppercase letters or digits"
        )

    return normalized


def is_usd_like(currency: str) -> bool:
    """True for USD and the dollar stablecoins."""
    return currency.upper() in USD_LIKE_CURRENCIES


# =============================================================================
# IDENTIFIER VALIDATION
# =============================================================================

def validate_identifier(value: str) -> str:
    """
    Validate an entity identifier (account, movement, instrument).

    Raises:
        ValueError: If the identifier is blank or contains ':'
    """
    normalized = value.strip()
    if not normalized:
        raise ValueError("Identifier cannot be empty")
    # ':' separates account id and item kind in FX override keys
    if ":" in normalized:
        raise ValueError(f"Identifier cannot contain ':': '{normalized}'")
    return normalized


# =============================================================================
# RATE VALIDATION
# =============================================================================

def validate_tna(value: Decimal | None) -> Decimal | None:
    """
    Validate a nominal annual rate expressed in percent (e.g. 35 for 35%).

    Raises:
        ValueError: If the rate is negative or implausibly large
    """
    if value is None:
        return None
    if value < 0:
        raise ValueError(f"TNA cannot be negative: {value}")
    if value > MAX_TNA_PERCENT:
        raise ValueError(f"TNA {value}% exceeds {MAX_TNA_PERCENT}%")
    return value


# =============================================================================
# TIMESTAMP NORMALIZATION
# =============================================================================

def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Treat naive datetimes as UTC so aware and naive inputs can be compared.

    Aware datetimes are returned unchanged.
    """
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
