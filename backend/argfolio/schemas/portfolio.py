# backend/argfolio/schemas/portfolio.py
"""
Pydantic response schemas for the aggregated portfolio.

These schemas serialize a built PortfolioV2 for the UI layer:
- Rubro -> provider -> item tree
- KPIs and currency exposure
- Detail overlays (lots, wallets, plazos)
- Flags and diagnostics

All models read attributes (from_attributes=True), so they validate the
engine's dataclasses directly:

    PortfolioV2Response.model_validate(portfolio)
"""

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from argfolio.models import (
    AccountKind,
    AssetCategory,
    DiagnosticCode,
    FixedDepositStatus,
    FxFamily,
    FxSide,
    FxSource,
    ItemKind,
    PriceSource,
    RubroId,
)
from argfolio.schemas.exchange_rates import FxRates


# =============================================================================
# ITEM META SCHEMAS
# =============================================================================

class MoneyPairResponse(BaseModel):
    """An amount in ARS and in USD."""

    model_config = ConfigDict(from_attributes=True)

    ars: Decimal
    usd: Decimal


class FxMetaResponse(BaseModel):
    """FX family, side and rate used to value an item."""

    model_config = ConfigDict(from_attributes=True)

    family: FxFamily
    side: FxSide
    rate: Decimal | None
    source: FxSource
    fell_back: bool = Field(
        default=False,
        description="True when the preferred family/side had no usable quote"
    )


class PriceMetaResponse(BaseModel):
    """Source of an item's unit price."""

    model_config = ConfigDict(from_attributes=True)

    source: PriceSource
    price: Decimal | None = None


class YieldMetaResponse(BaseModel):
    """Remunerated-account rates."""

    model_config = ConfigDict(from_attributes=True)

    tna: Decimal
    tea: Decimal


class FixedDepositMetaResponse(BaseModel):
    """Plazo fijo terms carried by a plazos item."""

    model_config = ConfigDict(from_attributes=True)

    start_at: dt.datetime
    maturity_at: dt.datetime
    days_remaining: int
    capital_ars: Decimal
    expected_interest_ars: Decimal
    expected_total_ars: Decimal
    tna: Decimal
    tea: Decimal


# =============================================================================
# TREE SCHEMAS
# =============================================================================

class ItemResponse(BaseModel):
    """One (account, instrument) position or one plazo fijo."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: ItemKind
    account_id: str
    instrument_key: str
    symbol: str
    label: str
    category: AssetCategory
    currency: str = Field(
        ...,
        description="Valuation currency of the item (ARS or USD)"
    )
    quantity: Decimal
    val_ars: Decimal
    val_usd: Decimal
    pnl_ars: Decimal | None = None
    pnl_usd: Decimal | None = None
    pnl_pct: Decimal | None = None
    fx_meta: FxMetaResponse | None = None
    fx_missing: bool = False
    price_meta: PriceMetaResponse | None = None
    yield_meta: YieldMetaResponse | None = None
    pf_meta: FixedDepositMetaResponse | None = None


class ProviderResponse(BaseModel):
    """Account (or bank) group inside a rubro."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    account_id: str | None
    name: str
    account_kind: AccountKind | None
    totals: MoneyPairResponse
    pnl: MoneyPairResponse
    items: list[ItemResponse]
    fx_family: FxFamily | None = None


class RubroResponse(BaseModel):
    """Top-level portfolio sector."""

    model_config = ConfigDict(from_attributes=True)

    id: RubroId
    name: str
    icon: str
    fx_policy: str = Field(
        ...,
        description="Display label of the FX policy, e.g. 'Oficial Venta'"
    )
    totals: MoneyPairResponse
    pnl: MoneyPairResponse
    providers: list[ProviderResponse]
    fx_family: FxFamily | None = None


# =============================================================================
# KPI SCHEMAS
# =============================================================================

class ExposureBucketsResponse(BaseModel):
    """Currency exposure buckets."""

    model_config = ConfigDict(from_attributes=True)

    usd_hard: Decimal = Field(..., description="Crypto and USD cash, in USD")
    usd_equivalent: Decimal = Field(..., description="Dollar-linked assets, in USD")
    ars_real: Decimal = Field(..., description="ARS cash, in ARS")


class PortfolioKPIsResponse(BaseModel):
    """Portfolio-wide totals and exposure percentages."""

    model_config = ConfigDict(from_attributes=True)

    total_ars: Decimal
    total_usd: Decimal
    pnl_unrealized_ars: Decimal
    pnl_unrealized_usd: Decimal
    exposure: ExposureBucketsResponse
    exposure_rate: Decimal
    total_portfolio_usd: Decimal
    pct_usd_hard: Decimal
    pct_usd_eq: Decimal
    pct_ars: Decimal


class PortfolioFlagsResponse(BaseModel):
    """Data-quality counters."""

    model_config = ConfigDict(from_attributes=True)

    inferred_balance_count: int
    has_inferred_balances: bool
    fx_missing_count: int
    price_missing_count: int


# =============================================================================
# DETAIL SCHEMAS
# =============================================================================

class LotDetailResponse(BaseModel):
    """One open lot valued at the current price."""

    model_config = ConfigDict(from_attributes=True)

    lot_id: str
    trade_date: dt.datetime
    quantity: Decimal
    unit_cost_native: Decimal
    unit_cost_ars: Decimal
    unit_cost_usd: Decimal
    cost_ars: Decimal
    cost_usd: Decimal
    value_ars: Decimal
    value_usd: Decimal
    pnl_ars: Decimal
    pnl_usd: Decimal
    pnl_pct: Decimal | None
    fx_at_trade: Decimal | None
    fx_missing: bool = Field(
        ...,
        description="True when the trade did not record its FX rate"
    )


class InstrumentDetailResponse(BaseModel):
    """Lot breakdown of a CEDEAR, crypto or FCI item."""

    model_config = ConfigDict(from_attributes=True)

    item_id: str
    account_id: str
    instrument_key: str
    symbol: str
    name: str
    category: AssetCategory
    native_currency: str
    total_quantity: Decimal
    current_price: Decimal | None
    price_meta: PriceMetaResponse | None
    fx_rate: Decimal | None
    current_value_ars: Decimal
    current_value_usd: Decimal
    cost_ars: Decimal
    cost_usd: Decimal
    pnl_ars: Decimal
    pnl_usd: Decimal
    pnl_pct: Decimal | None
    lots: list[LotDetailResponse]
    lots_quantity: Decimal
    lots_quantity_mismatch: bool = False
    warnings: list[str] = Field(default_factory=list)


class InterestEntryResponse(BaseModel):
    """One day of credited interest."""

    model_config = ConfigDict(from_attributes=True)

    movement_id: str
    date: dt.date
    amount_ars: Decimal


class WalletDetailResponse(BaseModel):
    """Yield detail of a remunerated account."""

    model_config = ConfigDict(from_attributes=True)

    item_id: str
    account_id: str
    account_name: str
    currency: str
    cash_ars: Decimal
    cash_usd: Decimal
    yield_enabled: bool
    tna: Decimal
    tea: Decimal
    interest_today_ars: Decimal
    interest_month_ars: Decimal
    interest_ytd_ars: Decimal
    projected_month_end_ars: Decimal
    projected_year_end_ars: Decimal
    recent_interest: list[InterestEntryResponse] = Field(default_factory=list)


class FixedDepositDetailResponse(BaseModel):
    """Terms and accrual of one plazo fijo."""

    model_config = ConfigDict(from_attributes=True)

    item_id: str
    movement_id: str
    pf_code: str
    bank: str
    alias: str | None
    status: FixedDepositStatus
    capital_ars: Decimal
    tna: Decimal
    tea: Decimal
    term_days: int
    start_at: dt.datetime
    maturity_at: dt.datetime
    days_remaining: int
    days_elapsed: int
    expected_interest_ars: Decimal
    expected_total_ars: Decimal
    accrued_interest_ars: Decimal
    initial_fx: Decimal | None


class DiagnosticResponse(BaseModel):
    """Structured anomaly found while building."""

    model_config = ConfigDict(from_attributes=True)

    code: DiagnosticCode
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# PORTFOLIO SCHEMA
# =============================================================================

class PortfolioV2Response(BaseModel):
    """
    Complete aggregated portfolio.

    Detail maps are keyed by item id.
    """

    model_config = ConfigDict(from_attributes=True)

    as_of: dt.datetime
    fx: FxRates
    kpis: PortfolioKPIsResponse
    flags: PortfolioFlagsResponse
    rubros: list[RubroResponse]
    wallet_details: dict[str, WalletDetailResponse] = Field(default_factory=dict)
    fixed_deposit_details: dict[str, FixedDepositDetailResponse] = Field(default_factory=dict)
    cedear_details: dict[str, InstrumentDetailResponse] = Field(default_factory=dict)
    crypto_details: dict[str, InstrumentDetailResponse] = Field(default_factory=dict)
    fci_details: dict[str, InstrumentDetailResponse] = Field(default_factory=dict)
    diagnostics: list[DiagnosticResponse] = Field(default_factory=list)
