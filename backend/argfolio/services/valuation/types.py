# backend/argfolio/services/valuation/types.py
"""
Internal data types for the valuation engine.

These dataclasses are produced by the valuation calculators and builders.
They are NOT Pydantic schemas - inputs are validated by the models in
argfolio/schemas/, and argfolio/schemas/portfolio.py serializes the
output for the UI layer.

Design Principles:
- Immutable (frozen=True, tuples instead of lists) for everything that
  ends up inside PortfolioV2, so read-side projections cannot alter it
- Use Decimal for ALL financial values (never float)
- Optional values use None, not sentinel values (a missing FX rate is
  None, never 0 or 1)
- Warnings accumulate for data quality tracking

Type Hierarchy:
    Lot / FifoResult        - FIFO inventory
    AllocationEntry /
    SaleAllocation          - Sale costing
    FxResolution            - Family/side/rate chosen for a conversion
    Item -> Provider -> Rubro
    PortfolioKPIs           - Totals and currency exposure
    InstrumentDetail        - CEDEAR/crypto/FCI lot drill-down
    WalletDetail            - Yield-bearing cash drill-down
    FixedDepositDetail      - Plazo fijo drill-down
    PortfolioV2             - Complete snapshot
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterator

from argfolio.models import (
    AccountKind,
    AssetCategory,
    CostingMethod,
    DiagnosticCode,
    FixedDepositStatus,
    FxFamily,
    FxSide,
    FxSource,
    ItemKind,
    PriceSource,
    RubroId,
)
from argfolio.services.exceptions import FXRateNotFoundError

if TYPE_CHECKING:
    from argfolio.schemas.exchange_rates import FxRates
    from argfolio.schemas.movements import Movement
    from argfolio.services.exceptions import AllocationError


# =============================================================================
# FIFO LOTS
# =============================================================================

@dataclass(frozen=True)
class Lot:
    """
    An open acquisition batch of one instrument in one account.

    Attributes:
        id: Originating movement id (stable across rebuilds)
        trade_date: Acquisition timestamp
        quantity: Units still open
        original_quantity: Units acquired
        unit_cost_native: Cost per unit in the trade currency, fees included
        currency: Trade currency
        fx_at_trade: ARS per USD at trade time, None when not captured
        fx_missing: True when fx_at_trade is None

    Note:
        Lots are never edited. A partial sale yields a reduced copy.
    """

    id: str
    trade_date: datetime
    quantity: Decimal
    original_quantity: Decimal
    unit_cost_native: Decimal
    currency: str
    fx_at_trade: Decimal | None = None
    fx_missing: bool = False

    @property
    def total_cost_native(self) -> Decimal:
        return self.quantity * self.unit_cost_native


@dataclass
class FifoResult:
    """Open lots after replaying a movement history."""

    lots: list[Lot]
    total_quantity: Decimal
    total_cost_native: Decimal
    warnings: list[str] = field(default_factory=list)

    @property
    def average_unit_cost(self) -> Decimal | None:
        """Weighted average cost of the open lots, None when flat."""
        if self.total_quantity <= 0:
            return None
        return self.total_cost_native / self.total_quantity


# =============================================================================
# SALE ALLOCATION
# =============================================================================

@dataclass(frozen=True)
class AllocationEntry:
    """Units taken from one lot by a sale."""

    lot_id: str
    quantity: Decimal
    unit_cost_native: Decimal
    cost_native: Decimal


@dataclass
class SaleAllocation:
    """
    Result of costing a sale against open lots.

    Invalid requests do not raise: `error` carries the typed failure and
    the totals are zero. `pending` marks a manual sale with no selection
    yet, which is not an error.
    """

    method: CostingMethod
    allocations: list[AllocationEntry] = field(default_factory=list)
    total_qty_sold: Decimal = Decimal("0")
    total_cost_native: Decimal = Decimal("0")
    total_proceeds_native: Decimal = Decimal("0")
    realized_pnl_native: Decimal = Decimal("0")
    realized_pnl_pct: Decimal | None = None
    warnings: list[str] = field(default_factory=list)
    pending: bool = False
    error: AllocationError | None = None

    @property
    def ok(self) -> bool:
        """True when the request was valid."""
        return self.error is None

    def raise_for_error(self) -> None:
        """Raise the stored AllocationError, if any."""
        if self.error is not None:
            raise self.error


# =============================================================================
# FX RESOLUTION
# =============================================================================

@dataclass(frozen=True)
class FxResolution:
    """
    FX family, side and rate chosen for one conversion.

    Attributes:
        family: Family whose quote was used (after any fallback)
        side: Quote side used (after any fallback)
        rate: Positive ARS-per-USD rate, None when nothing was available
        source: auto or override
        fell_back: True when the requested quote was missing and the
                   chain moved to another side or family
    """

    family: FxFamily
    side: FxSide
    rate: Decimal | None
    source: FxSource = FxSource.AUTO
    fell_back: bool = False

    @property
    def has_rate(self) -> bool:
        return self.rate is not None

    def require_rate(self) -> Decimal:
        """
        Return the rate or raise.

        Raises:
            FXRateNotFoundError: If no positive rate was resolved
        """
        if self.rate is None:
            raise FXRateNotFoundError(self.family.value, self.side.value)
        return self.rate


# =============================================================================
# ITEM / PROVIDER / RUBRO
# =============================================================================

@dataclass(frozen=True)
class MoneyPair:
    """The same amount expressed in ARS and in USD."""

    ars: Decimal = Decimal("0")
    usd: Decimal = Decimal("0")

    def __add__(self, other: MoneyPair) -> MoneyPair:
        return MoneyPair(ars=self.ars + other.ars, usd=self.usd + other.usd)


@dataclass(frozen=True)
class PriceMeta:
    """Where an item's unit price came from."""

    source: PriceSource
    price: Decimal | None = None

    @property
    def is_missing(self) -> bool:
        return self.source is PriceSource.MISSING


@dataclass(frozen=True)
class YieldMeta:
    """Yield of remunerated cash. Rates are in percent."""

    tna: Decimal
    tea: Decimal


@dataclass(frozen=True)
class FixedDepositMeta:
    """Terms of a fixed deposit."""

    start_at: datetime
    maturity_at: datetime
    days_remaining: int
    capital_ars: Decimal
    expected_interest_ars: Decimal
    expected_total_ars: Decimal
    tna: Decimal
    tea: Decimal


@dataclass(frozen=True)
class Item:
    """
    One position line: an instrument (or cash balance) in one account.

    val_ars/val_usd are quantized to cents. When the FX rate is missing the
    converted side is 0 and fx_missing is True.
    """

    id: str
    kind: ItemKind
    account_id: str
    instrument_key: str
    symbol: str
    label: str
    category: AssetCategory
    currency: str
    quantity: Decimal
    val_ars: Decimal
    val_usd: Decimal
    pnl_ars: Decimal | None = None
    pnl_usd: Decimal | None = None
    pnl_pct: Decimal | None = None
    fx_meta: FxResolution | None = None
    fx_missing: bool = False
    price_meta: PriceMeta | None = None
    yield_meta: YieldMeta | None = None
    pf_meta: FixedDepositMeta | None = None

    @property
    def value(self) -> MoneyPair:
        return MoneyPair(ars=self.val_ars, usd=self.val_usd)

    @property
    def dedup_key(self) -> tuple[str, str]:
        """(account, instrument) identity used to detect double counting."""
        return self.account_id, self.instrument_key


@dataclass(frozen=True)
class Provider:
    """Account-level (or bank-level, for plazos) group of items in a rubro."""

    id: str
    account_id: str | None
    name: str
    account_kind: AccountKind | None
    totals: MoneyPair
    pnl: MoneyPair
    items: tuple[Item, ...]
    fx_family: FxFamily | None = None


@dataclass(frozen=True)
class Rubro:
    """Top-level portfolio sector."""

    id: RubroId
    name: str
    icon: str
    fx_policy: str
    totals: MoneyPair
    pnl: MoneyPair
    providers: tuple[Provider, ...]
    fx_family: FxFamily | None = None

    def iter_items(self) -> Iterator[Item]:
        for provider in self.providers:
            yield from provider.items


# =============================================================================
# KPIS
# =============================================================================

@dataclass(frozen=True)
class ExposureBuckets:
    """
    Currency exposure of the portfolio.

    Attributes:
        usd_hard: USD actually held (crypto, USD cash), in USD
        usd_equivalent: ARS assets priced off a dollar (CEDEARs, plazos,
                        FCI), summed from each item's resolved USD value
        ars_real: ARS cash, in ARS
    """

    usd_hard: Decimal
    usd_equivalent: Decimal
    ars_real: Decimal


@dataclass(frozen=True)
class PortfolioKPIs:
    """Portfolio-wide totals and exposure split."""

    total_ars: Decimal
    total_usd: Decimal
    pnl_unrealized_ars: Decimal
    pnl_unrealized_usd: Decimal
    exposure: ExposureBuckets
    exposure_rate: Decimal
    total_portfolio_usd: Decimal
    pct_usd_hard: Decimal
    pct_usd_eq: Decimal
    pct_ars: Decimal


# =============================================================================
# DETAIL OVERLAYS
# =============================================================================

@dataclass(frozen=True)
class LotDetail:
    """One FIFO lot valued at current prices, in native and reporting currencies."""

    lot_id: str
    trade_date: datetime
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
    fx_missing: bool


@dataclass(frozen=True)
class InstrumentDetail:
    """Lot-level drill-down of a CEDEAR, crypto or FCI item."""

    item_id: str
    account_id: str
    instrument_key: str
    symbol: str
    name: str
    category: AssetCategory
    native_currency: str
    total_quantity: Decimal
    current_price: Decimal | None
    price_meta: PriceMeta | None
    fx_rate: Decimal | None
    current_value_ars: Decimal
    current_value_usd: Decimal
    cost_ars: Decimal
    cost_usd: Decimal
    pnl_ars: Decimal
    pnl_usd: Decimal
    pnl_pct: Decimal | None
    lots: tuple[LotDetail, ...]
    lots_quantity: Decimal
    lots_quantity_mismatch: bool = False
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class InterestEntry:
    """An interest credit shown in a wallet's history."""

    movement_id: str
    date: date
    amount_ars: Decimal


@dataclass(frozen=True)
class WalletDetail:
    """Yield drill-down of a frascos item."""

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
    recent_interest: tuple[InterestEntry, ...] = ()


@dataclass(frozen=True)
class FixedDepositDetail:
    """Drill-down of a plazo fijo item."""

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
    start_at: datetime
    maturity_at: datetime
    days_remaining: int
    days_elapsed: int
    expected_interest_ars: Decimal
    expected_total_ars: Decimal
    accrued_interest_ars: Decimal
    initial_fx: Decimal | None


# =============================================================================
# YIELD
# =============================================================================

@dataclass(frozen=True)
class YieldMetrics:
    """Forward-looking yield of a cash balance (daily compounding)."""

    tea: Decimal
    interest_tomorrow: Decimal
    projected_30d: Decimal
    projected_1y: Decimal


@dataclass
class AccrualResult:
    """INTEREST movements generated by a daily accrual run."""

    movements: list[Movement]
    last_accrued_date: date | None


# =============================================================================
# PORTFOLIO SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class Diagnostic:
    """Structured anomaly report sent to the diagnostics sink."""

    code: DiagnosticCode
    message: str
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PortfolioFlags:
    """Data-quality counters for UI warnings."""

    inferred_balance_count: int = 0
    fx_missing_count: int = 0
    price_missing_count: int = 0

    @property
    def has_inferred_balances(self) -> bool:
        return self.inferred_balance_count > 0


@dataclass(frozen=True)
class PortfolioV2:
    """
    Complete portfolio snapshot.

    Detail maps are keyed by item id.
    """

    as_of: datetime
    fx: FxRates
    kpis: PortfolioKPIs
    flags: PortfolioFlags
    rubros: tuple[Rubro, ...]
    wallet_details: dict[str, WalletDetail] = field(default_factory=dict)
    fixed_deposit_details: dict[str, FixedDepositDetail] = field(default_factory=dict)
    cedear_details: dict[str, InstrumentDetail] = field(default_factory=dict)
    crypto_details: dict[str, InstrumentDetail] = field(default_factory=dict)
    fci_details: dict[str, InstrumentDetail] = field(default_factory=dict)
    diagnostics: tuple[Diagnostic, ...] = ()

    def iter_items(self) -> Iterator[Item]:
        for rubro in self.rubros:
            yield from rubro.iter_items()

    def get_rubro(self, rubro_id: RubroId) -> Rubro | None:
        """Get a rubro by id, None when it was dropped (no providers)."""
        for rubro in self.rubros:
            if rubro.id is rubro_id:
                return rubro
        return None
