# backend/argfolio/schemas/positions.py
"""
Pydantic schemas for pre-aggregated position rows.

An external positions/pricing collaborator groups raw holdings into one
AssetRowMetrics per (account, instrument). Its valuation fields are kept
for reference only; the rubro builder recomputes ARS/USD values with the
FX resolver.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from argfolio.models import AssetCategory
from argfolio.schemas.validators import validate_currency


class AssetRowMetrics(BaseModel):
    """One instrument held in one account."""

    instrument_id: str | None = None
    symbol: str
    name: str = ""
    category: AssetCategory
    quantity: Decimal = Decimal("0")
    current_price: Decimal | None = Field(default=None, description="Live price, native currency")
    avg_cost: Decimal | None = Field(default=None, description="Average unit cost, native currency")
    native_currency: str = "ARS"

    # Upstream figures (informational, recomputed by the engine)
    val_ars: Decimal | None = None
    val_usd: Decimal | None = None
    pnl_ars: Decimal | None = None
    pnl_usd: Decimal | None = None

    # Historical cost basis in each reporting currency, when known
    cost_ars: Decimal | None = None
    cost_usd: Decimal | None = None

    # True when the balance was reconstructed rather than recorded
    opening_balance_inferred: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("native_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return validate_currency(v)

    @property
    def instrument_key(self) -> str:
        """Identity of the instrument within its account."""
        return self.instrument_id or self.symbol


class GroupedPositions(BaseModel):
    """All position rows of one account."""

    account_id: str
    account_name: str = ""
    metrics: list[AssetRowMetrics] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
