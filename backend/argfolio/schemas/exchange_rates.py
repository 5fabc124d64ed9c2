# backend/argfolio/schemas/exchange_rates.py
"""
Pydantic schemas for FX rate inputs.

These schemas handle:
- The FX snapshot (Oficial, MEP, CCL, Cripto quotes) used by one build
- Manual FX overrides keyed by "account_id:item_kind"
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from argfolio.models import FxFamily, FxSide, ItemKind
from argfolio.schemas.validators import ensure_utc


# =============================================================================
# FX SNAPSHOT
# =============================================================================

class FxPair(BaseModel):
    """Buy (bid) and sell (ask) quotes of one FX family, as ARS per USD."""

    buy: Decimal | None = Field(default=None, description="Bid: ARS paid per USD bought by the desk")
    sell: Decimal | None = Field(default=None, description="Ask: ARS charged per USD sold by the desk")

    model_config = ConfigDict(frozen=True)

    def quote(self, side: FxSide) -> Decimal | None:
        """
        Return the quote for a side, or None when it is not a positive number.

        Zero and negative quotes are treated as "no rate" so that callers
        never divide by zero or silently value a position at rate 1.
        """
        value = self.buy if side is FxSide.BUY else self.sell
        if value is None or not value.is_finite() or value <= 0:
            return None
        return value


class FxRates(BaseModel):
    """Immutable FX snapshot for one computation cycle."""

    oficial: FxPair = Field(default_factory=FxPair)
    mep: FxPair = Field(default_factory=FxPair)
    ccl: FxPair = Field(default_factory=FxPair)
    cripto: FxPair = Field(default_factory=FxPair)
    updated_at: dt.datetime = Field(..., description="When the quotes were fetched")

    model_config = ConfigDict(frozen=True)

    @field_validator("updated_at")
    @classmethod
    def normalize_updated_at(cls, v: dt.datetime) -> dt.datetime:
        return ensure_utc(v)

    def pair(self, family: FxFamily) -> FxPair:
        """Get the quote pair of a family."""
        return {
            FxFamily.OFICIAL: self.oficial,
            FxFamily.MEP: self.mep,
            FxFamily.CCL: self.ccl,
            FxFamily.CRIPTO: self.cripto,
        }[family]

    def quote(self, family: FxFamily, side: FxSide) -> Decimal | None:
        """Positive rate for (family, side), or None."""
        return self.pair(family).quote(side)


# =============================================================================
# MANUAL OVERRIDES
# =============================================================================

class FxOverride(BaseModel):
    """A user-chosen FX family and side for one (account, item kind) pair."""

    family: FxFamily
    side: FxSide

    model_config = ConfigDict(frozen=True)


def build_fx_override_key(account_id: str, item_kind: ItemKind | str) -> str:
    """
    Build the lookup key of an FX override.

    Example:
        >>> build_fx_override_key("iol", ItemKind.CASH_USD)
        'iol:cash_usd'
    """
    kind = item_kind.value if isinstance(item_kind, ItemKind) else item_kind
    return f"{account_id}:{kind}"
