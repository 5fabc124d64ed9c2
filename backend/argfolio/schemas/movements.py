# backend/argfolio/schemas/movements.py
"""
Pydantic schemas for ledger movements.

These schemas handle:
- Movement validation (types, currencies, quantities)
- Fee specification (percent or fixed)
- FX snapshot captured at trade time
- Derived amounts used by the FIFO engine (fee, net amount, trade FX)
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from argfolio.models import (
    ADDITIVE_MOVEMENT_TYPES,
    SUBTRACTIVE_MOVEMENT_TYPES,
    FeeMode,
    FxFamily,
    FxSide,
    MovementAssetClass,
    MovementType,
)
from argfolio.schemas.validators import ensure_utc, validate_currency, validate_tna


# =============================================================================
# NESTED SCHEMAS
# =============================================================================

class FeeSpec(BaseModel):
    """Commission charged on a trade."""

    mode: FeeMode
    amount: Decimal = Field(..., ge=0, description="Percent (e.g. 0.5) or fixed amount")
    currency: str | None = Field(default=None, description="Defaults to the trade currency")

    model_config = ConfigDict(frozen=True)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str | None) -> str | None:
        return validate_currency(v) if v is not None else None


class TradeFxSnapshot(BaseModel):
    """FX rate in force when the movement was recorded."""

    kind: FxFamily
    rate: Decimal
    side: FxSide
    timestamp: dt.datetime | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: dt.datetime | None) -> dt.datetime | None:
        return ensure_utc(v)


# =============================================================================
# MOVEMENT
# =============================================================================

class Movement(BaseModel):
    """
    One immutable ledger entry.

    Amount fields (net/gross/total) are optional: when missing, the engine
    derives them from quantity, unit price and fee.
    """

    id: str = Field(..., min_length=1)
    timestamp: dt.datetime
    type: MovementType
    asset_class: MovementAssetClass
    instrument_id: str | None = None
    account_id: str = Field(..., min_length=1)

    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    trade_currency: str = "ARS"
    fee: FeeSpec | None = None

    # FX at trade time; fx_at_trade is the legacy flat field
    fx: TradeFxSnapshot | None = None
    fx_at_trade: Decimal | None = None

    total_amount: Decimal | None = None
    net_amount: Decimal | None = None
    gross_amount: Decimal | None = None
    total_ars: Decimal | None = None
    total_usd: Decimal | None = None

    # Fixed-deposit fields (asset_class == pf)
    bank: str | None = None
    alias: str | None = None
    principal_ars: Decimal | None = None
    tna: Decimal | None = None
    term_days: int | None = Field(default=None, ge=1)
    pf_id: str | None = Field(default=None, description="Constitution linked by a redemption")
    pf_code: str | None = None

    auto_generated: bool = False
    notes: str | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: dt.datetime) -> dt.datetime:
        """Naive timestamps are taken as UTC."""
        return ensure_utc(v)

    @field_validator("trade_currency")
    @classmethod
    def normalize_trade_currency(cls, v: str) -> str:
        return validate_currency(v)

    @field_validator("tna")
    @classmethod
    def check_tna(cls, v: Decimal | None) -> Decimal | None:
        return validate_tna(v)

    @property
    def is_additive(self) -> bool:
        """True if the movement adds inventory (BUY, DEPOSIT, TRANSFER_IN)."""
        return self.type in ADDITIVE_MOVEMENT_TYPES

    @property
    def is_subtractive(self) -> bool:
        """True if the movement consumes inventory (SELL, WITHDRAW, TRANSFER_OUT)."""
        return self.type in SUBTRACTIVE_MOVEMENT_TYPES

    @property
    def effective_fx_rate(self) -> Decimal | None:
        """Positive trade-time FX rate, or None when it was not captured."""
        for candidate in (self.fx.rate if self.fx else None, self.fx_at_trade):
            if candidate is not None and candidate.is_finite() and candidate > 0:
                return candidate
        return None

    @property
    def gross_trade_amount(self) -> Decimal:
        """Declared gross amount, else quantity × unit price (0 when unknown)."""
        if self.gross_amount is not None:
            return self.gross_amount
        if self.quantity is None or self.unit_price is None:
            return Decimal("0")
        return self.quantity * self.unit_price

    @property
    def fee_amount(self) -> Decimal:
        """
        Fee in trade currency.

        Fees charged in a different currency cannot be netted against the
        trade amount without an FX assumption, so they count as zero here.
        """
        if self.fee is None:
            return Decimal("0")
        if self.fee.currency is not None and self.fee.currency != self.trade_currency:
            return Decimal("0")
        if self.fee.mode is FeeMode.PERCENT:
            return self.gross_trade_amount * self.fee.amount / Decimal("100")
        return self.fee.amount

    @property
    def net_trade_amount(self) -> Decimal:
        """
        Net amount in trade currency.

        Cost calculation (additive):   net = gross + fee
        Proceeds calculation (sale):   net = gross - fee
        """
        if self.net_amount is not None:
            return self.net_amount
        gross = self.gross_trade_amount
        if self.is_subtractive:
            return gross - self.fee_amount
        return gross + self.fee_amount
