# backend/argfolio/services/constants.py
"""
Centralized constants for the portfolio engine.

Tunable thresholds (significance filters, tolerances) live in
argfolio.config.Settings; this module holds the fixed business constants
and display labels.

Usage:
    from argfolio.services.constants import (
        MONEY_QUANTUM,
        DAYS_PER_YEAR,
        RUBRO_DISPLAY,
    )
"""

from decimal import Decimal

from argfolio.models import RubroId


# =============================================================================
# NUMERIC PRECISION
# =============================================================================

# Item-level money values are quantized to cents before any summation,
# so provider/rubro/KPI totals are exact Decimal additions
MONEY_QUANTUM: Decimal = Decimal("0.01")

# Exposure percentages are quantized to 4 places; the ARS share is
# 100 minus the other two, so the three always close to exactly 100
PERCENT_QUANTUM: Decimal = Decimal("0.0001")

# Annual rates (TNA/TEA) are reported with 2 decimals
RATE_QUANTUM: Decimal = Decimal("0.01")

HUNDRED: Decimal = Decimal("100")
ZERO: Decimal = Decimal("0")


# =============================================================================
# FINANCIAL CALENDAR CONSTANTS
# =============================================================================

# Argentine TNA is quoted on a 365-day calendar year
DAYS_PER_YEAR: int = 365

# Last-resort divisor for the exposure split when neither MEP nor
# Oficial sell is available (only avoids division by zero)
EXPOSURE_RATE_LAST_RESORT: Decimal = Decimal("1")


# =============================================================================
# PROVIDER LABELS
# =============================================================================

# Suffix for the wallets-rubro provider that holds a broker/exchange's cash
CASH_PROVIDER_ID_SUFFIX: str = ":cash"
CASH_PROVIDER_NAME_SUFFIX: str = " (Liquidez)"

# Fallback provider name for accounts without a usable name
FALLBACK_ACCOUNT_NAME: str = "Cuenta #{short_id}"

# Names that upstream importers use as placeholders
PLACEHOLDER_ACCOUNT_NAMES: frozenset[str] = frozenset({"", "account"})

# Fixed deposits without a bank are grouped here
UNKNOWN_BANK_NAME: str = "Sin Banco"

# Fixed deposits without a code get "PF-" + the first chars of their id
FIXED_DEPOSIT_CODE_PREFIX: str = "PF-"
FIXED_DEPOSIT_CODE_LENGTH: int = 8


# =============================================================================
# RUBRO DISPLAY METADATA
# =============================================================================

# (name, icon, fx policy label) in display order
RUBRO_DISPLAY: dict[RubroId, tuple[str, str, str]] = {
    RubroId.WALLETS: ("Billeteras", "Wallet", "Oficial Venta"),
    RubroId.FRASCOS: ("Frascos", "PiggyBank", "Oficial Venta"),
    RubroId.PLAZOS: ("Plazos Fijos", "Calendar", "Oficial Venta"),
    RubroId.CEDEARS: ("CEDEARs", "BarChart3", "MEP"),
    RubroId.CRYPTO: ("Cripto", "Bitcoin", "Cripto"),
    RubroId.FCI: ("Fondos (FCI)", "TrendingUp", "VCP"),
}
