# backend/argfolio/services/valuation/rubros.py
"""
Item / Provider / Rubro builder.

Every (account, instrument) position is classified into exactly one of
six rubros through a single dispatch table (RUBRO_RULES). Each rule is a
predicate over the position plus an item-kind selector, a provider-key
selector and a source flag (plazos come from fixed-deposit data, not from
positions).

Per-item valuation is always recomputed with the FxResolver:
    ARS-native:  val_ars = qty × price        val_usd = val_ars ÷ rate (BUY)
    USD-native:  val_usd = qty × price        val_ars = val_usd × rate (SELL)

FCI pricing cascade (never an implicit price of 1):
    live quote > 0 -> last same-currency trade -> average cost -> missing

Aggregation is strictly bottom-up: provider totals are sums of item
values, rubro totals are sums of provider totals. Items are quantized to
cents first so every sum is exact.

Failure semantics: missing rates and prices degrade to zero values with
flags; empty providers and empty rubros are dropped; nothing raises.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Sequence

from argfolio.config import Settings, settings as default_settings
from argfolio.models import (
    AccountKind,
    AssetCategory,
    ConversionDirection,
    DiagnosticCode,
    FxFamily,
    ItemKind,
    MovementType,
    PriceSource,
    RubroId,
)
from argfolio.schemas.accounts import Account, AccountSettings
from argfolio.schemas.exchange_rates import FxOverride, FxRates, build_fx_override_key
from argfolio.schemas.fixed_deposits import FixedDepositData, FixedDepositPosition
from argfolio.schemas.movements import Movement
from argfolio.schemas.positions import AssetRowMetrics, GroupedPositions
from argfolio.schemas.validators import is_usd_like
from argfolio.services.constants import (
    CASH_PROVIDER_ID_SUFFIX,
    CASH_PROVIDER_NAME_SUFFIX,
    FALLBACK_ACCOUNT_NAME,
    HUNDRED,
    MONEY_QUANTUM,
    PLACEHOLDER_ACCOUNT_NAMES,
    RUBRO_DISPLAY,
    UNKNOWN_BANK_NAME,
    ZERO,
)
from argfolio.services.valuation.diagnostics import DiagnosticsCollector
from argfolio.services.valuation.fx_resolver import FxResolver
from argfolio.services.valuation.types import (
    FixedDepositMeta,
    FxResolution,
    Item,
    MoneyPair,
    PriceMeta,
    Provider,
    Rubro,
    YieldMeta,
)
from argfolio.services.valuation.yield_accrual import compute_tea
from argfolio.utils.date_utils import days_between
from argfolio.utils.fx_conversion import ars_to_usd, usd_to_ars

logger = logging.getLogger(__name__)

TRADE_TYPES = frozenset({MovementType.BUY, MovementType.SELL})


# =============================================================================
# CLASSIFICATION TABLE
# =============================================================================

class RubroSource(str, enum.Enum):
    """Where a rubro's items come from."""
    POSITIONS = "positions"
    FIXED_DEPOSITS = "fixed_deposits"


@dataclass(frozen=True)
class PositionContext:
    """A position row together with the account data needed to classify it."""

    account_id: str
    account: Account | None
    group_name: str
    settings: AccountSettings | None
    metrics: AssetRowMetrics

    @property
    def category(self) -> AssetCategory:
        return self.metrics.category

    @property
    def account_kind(self) -> AccountKind:
        return self.account.kind if self.account is not None else AccountKind.OTHER

    @property
    def rubro_override(self) -> RubroId | None:
        return self.settings.rubro_override if self.settings is not None else None


@dataclass(frozen=True)
class RubroRule:
    """
    One row of the dispatch table.

    Attributes:
        id: Rubro identifier
        priority: Lower wins when several rules claim the same position
        source: POSITIONS or FIXED_DEPOSITS
        claims: Predicate deciding membership
        item_kind: Item kind for a claimed position
        provider_key: (provider id, name suffix) for a claimed position
    """

    id: RubroId
    priority: int
    source: RubroSource
    claims: Callable[[PositionContext], bool]
    item_kind: Callable[[PositionContext], ItemKind]
    provider_key: Callable[[PositionContext], tuple[str, str]]

    @property
    def name(self) -> str:
        return RUBRO_DISPLAY[self.id][0]

    @property
    def icon(self) -> str:
        return RUBRO_DISPLAY[self.id][1]

    @property
    def fx_policy(self) -> str:
        return RUBRO_DISPLAY[self.id][2]


def _cash_kind(ctx: PositionContext) -> ItemKind:
    return ItemKind.CASH_USD if ctx.category is AssetCategory.CASH_USD else ItemKind.CASH_ARS


def _own_provider(ctx: PositionContext) -> tuple[str, str]:
    return ctx.account_id, ""


def _wallet_provider(ctx: PositionContext) -> tuple[str, str]:
    # Broker/exchange cash gets its own provider unless the account is forced into wallets
    carved_out = ctx.account_kind in (AccountKind.BROKER, AccountKind.EXCHANGE)
    if carved_out and ctx.rubro_override is not RubroId.WALLETS:
        return ctx.account_id + CASH_PROVIDER_ID_SUFFIX, CASH_PROVIDER_NAME_SUFFIX
    return ctx.account_id, ""


def _is_frasco(ctx: PositionContext) -> bool:
    return ctx.category.is_cash and ctx.rubro_override is RubroId.FRASCOS


def _never(ctx: PositionContext) -> bool:
    return False


# Display order. Priority settles overlaps (which a consistent table never has).
RUBRO_RULES: tuple[RubroRule, ...] = (
    RubroRule(
        id=RubroId.WALLETS,
        priority=1,
        source=RubroSource.POSITIONS,
        claims=lambda ctx: ctx.category.is_cash and not _is_frasco(ctx),
        item_kind=_cash_kind,
        provider_key=_wallet_provider,
    ),
    RubroRule(
        id=RubroId.FRASCOS,
        priority=0,
        source=RubroSource.POSITIONS,
        claims=_is_frasco,
        item_kind=lambda ctx: ItemKind.WALLET_YIELD,
        provider_key=_own_provider,
    ),
    RubroRule(
        id=RubroId.PLAZOS,
        priority=5,
        source=RubroSource.FIXED_DEPOSITS,
        claims=_never,
        item_kind=lambda ctx: ItemKind.PLAZO_FIJO,
        provider_key=_own_provider,
    ),
    RubroRule(
        id=RubroId.CEDEARS,
        priority=2,
        source=RubroSource.POSITIONS,
        claims=lambda ctx: ctx.category is AssetCategory.CEDEAR,
        item_kind=lambda ctx: ItemKind.CEDEAR,
        provider_key=_own_provider,
    ),
    RubroRule(
        id=RubroId.CRYPTO,
        priority=3,
        source=RubroSource.POSITIONS,
        claims=lambda ctx: (
            ctx.category in (AssetCategory.CRYPTO, AssetCategory.STABLE)
            or (ctx.category is AssetCategory.OTHER and ctx.account_kind is AccountKind.EXCHANGE)
        ),
        item_kind=lambda ctx: (
            ItemKind.STABLE if ctx.category is AssetCategory.STABLE else ItemKind.CRYPTO
        ),
        provider_key=_own_provider,
    ),
    RubroRule(
        id=RubroId.FCI,
        priority=4,
        source=RubroSource.POSITIONS,
        claims=lambda ctx: ctx.category is AssetCategory.FCI,
        item_kind=lambda ctx: ItemKind.FCI,
        provider_key=_own_provider,
    ),
)

_POSITION_RULES = sorted(
    (rule for rule in RUBRO_RULES if rule.source is RubroSource.POSITIONS),
    key=lambda rule: rule.priority,
)

_USD_NATIVE_CATEGORIES = frozenset({
    AssetCategory.CASH_USD,
    AssetCategory.CRYPTO,
    AssetCategory.STABLE,
})


def classify(ctx: PositionContext) -> list[RubroRule]:
    """All rules claiming a position, highest priority first."""
    return [rule for rule in _POSITION_RULES if rule.claims(ctx)]


def provider_display_name(account_id: str, *candidates: str | None) -> str:
    """
    First usable name among candidates, else "Cuenta #ABC123".

    Blank names and the "Account" placeholder are not usable.
    """
    for candidate in candidates:
        if candidate is not None and candidate.strip().lower() not in PLACEHOLDER_ACCOUNT_NAMES:
            return candidate.strip()
    return FALLBACK_ACCOUNT_NAME.format(short_id=account_id[:6].upper())


# =============================================================================
# BUILDER
# =============================================================================

@dataclass
class _ProviderDraft:
    id: str
    account_id: str | None
    name: str
    account_kind: AccountKind | None
    items: list[Item]


class RubroBuilder:
    """
    Builds the rubro -> provider -> item tree.

    Stateless apart from injected settings and diagnostics collector.
    """

    def __init__(
            self,
            settings: Settings | None = None,
            diagnostics: DiagnosticsCollector | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.diagnostics = diagnostics or DiagnosticsCollector()

    def build(
            self,
            grouped_positions: Mapping[str, GroupedPositions],
            accounts: Sequence[Account],
            fixed_deposits: FixedDepositData | None,
            fx_rates: FxRates,
            account_settings: Mapping[str, AccountSettings] | None = None,
            fx_overrides: Mapping[str, FxOverride] | None = None,
            movements: Iterable[Movement] = (),
            as_of: datetime | None = None,
    ) -> list[Rubro]:
        """
        Classify, value and aggregate every position.

        Args:
            grouped_positions: Position rows keyed by account id
            accounts: Known accounts
            fixed_deposits: Plazo fijo data (None means no plazos)
            fx_rates: FX snapshot for this build
            account_settings: Per-account overrides keyed by account id
            fx_overrides: Manual FX choices keyed "account_id:item_kind"
            movements: Ledger, used for FCI last-trade prices
            as_of: Valuation time (defaults to fx_rates.updated_at)

        Returns:
            Non-empty rubros in display order
        """
        as_of = as_of or fx_rates.updated_at
        accounts_by_id = {account.id: account for account in accounts}
        account_settings = account_settings or {}
        fx_overrides = fx_overrides or {}
        resolver = FxResolver(fx_rates)
        last_trades = self._last_trade_prices(movements)

        drafts: dict[RubroId, dict[str, _ProviderDraft]] = {rule.id: {} for rule in RUBRO_RULES}

        for account_id, group in grouped_positions.items():
            account = accounts_by_id.get(account_id)
            if account is None:
                self.diagnostics.emit(
                    DiagnosticCode.UNKNOWN_ACCOUNT,
                    f"Positions reference unknown account {account_id}",
                    account_id=account_id,
                )
            settings = account_settings.get(account_id)

            for metrics in group.metrics:
                if metrics.category is AssetCategory.PF:
                    # Plazos come from fixed-deposit data only
                    logger.debug(f"Skipping PF position row {metrics.symbol} of {account_id}")
                    continue

                ctx = PositionContext(
                    account_id=account_id,
                    account=account,
                    group_name=group.account_name,
                    settings=settings,
                    metrics=metrics,
                )
                rule = self._pick_rule(ctx)
                if rule is None:
                    continue

                kind = rule.item_kind(ctx)
                override = fx_overrides.get(build_fx_override_key(account_id, kind))
                item = self._build_position_item(ctx, kind, resolver, override, last_trades)
                if not self._is_significant(item):
                    if item.fx_missing and item.currency == "USD" and item.quantity > 0:
                        # USD holdings with no rate at all value at ARS 0 and fall below the threshold
                        self.diagnostics.emit(
                            DiagnosticCode.FX_MISSING,
                            f"{item.symbol} in {account_id} dropped: no FX rate to value it",
                            item_id=item.id,
                            account_id=account_id,
                        )
                    continue

                provider_id, name_suffix = rule.provider_key(ctx)
                draft = drafts[rule.id].get(provider_id)
                if draft is None:
                    name = provider_display_name(
                        account_id,
                        settings.display_name_override if settings else None,
                        account.name if account else None,
                        group.account_name,
                    )
                    draft = _ProviderDraft(
                        id=provider_id,
                        account_id=account_id,
                        name=name + name_suffix,
                        account_kind=account.kind if account else None,
                        items=[],
                    )
                    drafts[rule.id][provider_id] = draft
                draft.items.append(item)

        if fixed_deposits is not None:
            self._add_fixed_deposits(
                drafts[RubroId.PLAZOS],
                fixed_deposits.open_positions,
                accounts_by_id,
                resolver,
                fx_overrides,
                as_of,
            )

        rubros = [
            rubro for rule in RUBRO_RULES
            if (rubro := self._assemble_rubro(rule, drafts[rule.id].values())) is not None
        ]
        logger.debug(f"Built {len(rubros)} rubros")
        return rubros

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def _pick_rule(self, ctx: PositionContext) -> RubroRule | None:
        rules = classify(ctx)
        if not rules:
            self.diagnostics.emit(
                DiagnosticCode.UNCLASSIFIED_POSITION,
                f"{ctx.metrics.symbol} ({ctx.category.value}) in {ctx.account_id} fits no rubro",
                account_id=ctx.account_id,
                instrument=ctx.metrics.instrument_key,
                category=ctx.category.value,
            )
            return None
        if len(rules) > 1:
            self.diagnostics.emit(
                DiagnosticCode.CLASSIFICATION_CONFLICT,
                f"{ctx.metrics.symbol} in {ctx.account_id} claimed by "
                f"{', '.join(rule.id.value for rule in rules)}; using {rules[0].id.value}",
                account_id=ctx.account_id,
                instrument=ctx.metrics.instrument_key,
                rubros=[rule.id.value for rule in rules],
            )
        return rules[0]

    # -------------------------------------------------------------------------
    # Item valuation
    # -------------------------------------------------------------------------

    def _build_position_item(
            self,
            ctx: PositionContext,
            kind: ItemKind,
            resolver: FxResolver,
            override: FxOverride | None,
            last_trades: Mapping[tuple[str, str, str], Decimal],
    ) -> Item:
        metrics = ctx.metrics
        usd_native = self._is_usd_native(metrics)
        direction = ConversionDirection.USD_TO_ARS if usd_native else ConversionDirection.ARS_TO_USD
        fx = resolver.resolve(ctx.account, metrics.category, direction, override)

        if metrics.category.is_cash:
            price_meta = None
            native_value = metrics.quantity
        else:
            last_trade = last_trades.get((ctx.account_id, metrics.instrument_key, metrics.native_currency))
            price_meta = self._resolve_price(metrics, last_trade)
            native_value = metrics.quantity * price_meta.price if price_meta.price is not None else ZERO
            if price_meta.source is not PriceSource.QUOTE:
                logger.debug(f"{metrics.symbol} in {ctx.account_id} priced from {price_meta.source.value}")

        val_ars, val_usd = self._convert(native_value, usd_native, fx)
        pnl_ars, pnl_usd, pnl_pct = self._compute_pnl(metrics, usd_native, fx, val_ars, val_usd, price_meta)

        yield_meta = None
        if kind is ItemKind.WALLET_YIELD:
            yield_meta = self._yield_meta(ctx)

        return Item(
            id=f"{ctx.account_id}-{metrics.instrument_key}",
            kind=kind,
            account_id=ctx.account_id,
            instrument_key=metrics.instrument_key,
            symbol=metrics.symbol,
            label=metrics.name or metrics.symbol,
            category=metrics.category,
            currency="USD" if usd_native else "ARS",
            quantity=metrics.quantity,
            val_ars=val_ars,
            val_usd=val_usd,
            pnl_ars=pnl_ars,
            pnl_usd=pnl_usd,
            pnl_pct=pnl_pct,
            fx_meta=fx if fx.has_rate else None,
            fx_missing=not fx.has_rate,
            price_meta=price_meta,
            yield_meta=yield_meta,
        )

    @staticmethod
    def _is_usd_native(metrics: AssetRowMetrics) -> bool:
        if metrics.category in _USD_NATIVE_CATEGORIES:
            return True
        if metrics.category is AssetCategory.CASH_ARS:
            return False
        return is_usd_like(metrics.native_currency)

    @staticmethod
    def _resolve_price(metrics: AssetRowMetrics, last_trade: Decimal | None) -> PriceMeta:
        """
        Unit price and its source.

        last_trade is only passed for FCI; other categories go straight
        from a live quote to missing.
        """
        if metrics.current_price is not None and metrics.current_price > 0:
            return PriceMeta(source=PriceSource.QUOTE, price=metrics.current_price)
        if metrics.category is AssetCategory.FCI:
            if last_trade is not None:
                return PriceMeta(source=PriceSource.LAST_TRADE, price=last_trade)
            if metrics.avg_cost is not None and metrics.avg_cost > 0:
                return PriceMeta(source=PriceSource.AVG_COST, price=metrics.avg_cost)
        return PriceMeta(source=PriceSource.MISSING)

    @staticmethod
    def _convert(
            native_value: Decimal,
            usd_native: bool,
            fx: FxResolution,
    ) -> tuple[Decimal, Decimal]:
        """Return (val_ars, val_usd), the converted side is 0 without a rate."""
        if usd_native:
            val_usd = native_value
            val_ars = usd_to_ars(native_value, fx.rate) if fx.rate is not None else ZERO
        else:
            val_ars = native_value
            val_usd = ars_to_usd(native_value, fx.rate) if fx.rate is not None else ZERO
        return val_ars.quantize(MONEY_QUANTUM), val_usd.quantize(MONEY_QUANTUM)

    @staticmethod
    def _compute_pnl(
            metrics: AssetRowMetrics,
            usd_native: bool,
            fx: FxResolution,
            val_ars: Decimal,
            val_usd: Decimal,
            price_meta: PriceMeta | None,
    ) -> tuple[Decimal | None, Decimal | None, Decimal | None]:
        """
        Unrealized P&L in ARS, USD and percent (native currency).

        Cash has no P&L. Unpriced positions have no P&L (a zero value
        would read as a total loss). Each side needs a cost basis, taken
        from the row or from avg_cost × qty converted at the current rate.
        """
        if metrics.category.is_cash or price_meta is None or price_meta.is_missing:
            return None, None, None

        cost_native = metrics.avg_cost * metrics.quantity if metrics.avg_cost is not None else None
        rate = fx.rate

        if usd_native:
            cost_usd = metrics.cost_usd if metrics.cost_usd is not None else cost_native
            cost_ars = metrics.cost_ars
            if cost_ars is None and cost_usd is not None and rate is not None:
                cost_ars = usd_to_ars(cost_usd, rate)
        else:
            cost_ars = metrics.cost_ars if metrics.cost_ars is not None else cost_native
            cost_usd = metrics.cost_usd
            if cost_usd is None and cost_ars is not None and rate is not None:
                cost_usd = ars_to_usd(cost_ars, rate)

        converted_ok = rate is not None
        pnl_ars = None
        if cost_ars is not None and (converted_ok or not usd_native):
            pnl_ars = (val_ars - cost_ars).quantize(MONEY_QUANTUM)
        pnl_usd = None
        if cost_usd is not None and (converted_ok or usd_native):
            pnl_usd = (val_usd - cost_usd).quantize(MONEY_QUANTUM)

        native_cost, native_pnl = (cost_usd, pnl_usd) if usd_native else (cost_ars, pnl_ars)
        pnl_pct = None
        if native_cost is not None and native_cost > 0 and native_pnl is not None:
            pnl_pct = (native_pnl / native_cost * HUNDRED).quantize(MONEY_QUANTUM)

        return pnl_ars, pnl_usd, pnl_pct

    @staticmethod
    def _yield_meta(ctx: PositionContext) -> YieldMeta | None:
        tna = ctx.settings.tna_override if ctx.settings is not None else None
        if tna is None and ctx.account is not None and ctx.account.cash_yield is not None:
            tna = ctx.account.cash_yield.tna
        if tna is None:
            return None
        return YieldMeta(tna=tna, tea=compute_tea(tna))

    def _is_significant(self, item: Item) -> bool:
        min_ars = self.settings.min_significant_ars
        if item.category is AssetCategory.CASH_ARS:
            return abs(item.val_ars) >= min_ars
        if item.category is AssetCategory.CASH_USD:
            # A USD balance stays visible even if its ARS conversion is stale or missing
            return abs(item.val_ars) >= min_ars or abs(item.quantity) >= self.settings.min_significant_usd_qty
        if item.category is AssetCategory.FCI:
            return item.quantity > 0
        if item.category is AssetCategory.PF:
            return item.val_ars >= min_ars
        return item.quantity > 0 and item.val_ars >= min_ars

    @staticmethod
    def _last_trade_prices(movements: Iterable[Movement]) -> dict[tuple[str, str, str], Decimal]:
        """Most recent positive BUY/SELL unit price per (account, instrument, currency)."""
        prices: dict[tuple[str, str, str], Decimal] = {}
        for movement in sorted(movements, key=lambda m: m.timestamp):
            if movement.type not in TRADE_TYPES or movement.instrument_id is None:
                continue
            if movement.unit_price is None or movement.unit_price <= 0:
                continue
            key = (movement.account_id, movement.instrument_id, movement.trade_currency)
            prices[key] = movement.unit_price
        return prices

    # -------------------------------------------------------------------------
    # Fixed deposits
    # -------------------------------------------------------------------------

    def _add_fixed_deposits(
            self,
            drafts: dict[str, _ProviderDraft],
            positions: list[FixedDepositPosition],
            accounts_by_id: Mapping[str, Account],
            resolver: FxResolver,
            fx_overrides: Mapping[str, FxOverride],
            as_of: datetime,
    ) -> None:
        for position in positions:
            item = self._build_fixed_deposit_item(position, accounts_by_id, resolver, fx_overrides, as_of)
            if not self._is_significant(item):
                continue

            bank = position.bank or UNKNOWN_BANK_NAME
            provider_id = f"pf:{bank}"
            draft = drafts.get(provider_id)
            if draft is None:
                draft = _ProviderDraft(
                    id=provider_id,
                    account_id=None,
                    name=bank,
                    account_kind=None,
                    items=[],
                )
                drafts[provider_id] = draft
            draft.items.append(item)

    @staticmethod
    def _build_fixed_deposit_item(
            position: FixedDepositPosition,
            accounts_by_id: Mapping[str, Account],
            resolver: FxResolver,
            fx_overrides: Mapping[str, FxOverride],
            as_of: datetime,
    ) -> Item:
        override = fx_overrides.get(build_fx_override_key(position.account_id, ItemKind.PLAZO_FIJO))
        fx = resolver.resolve(
            accounts_by_id.get(position.account_id),
            AssetCategory.PF,
            ConversionDirection.ARS_TO_USD,
            override,
        )

        val_ars = position.expected_total_ars.quantize(MONEY_QUANTUM)
        interest = position.expected_interest_ars.quantize(MONEY_QUANTUM)
        if fx.rate is not None:
            val_usd = ars_to_usd(val_ars, fx.rate).quantize(MONEY_QUANTUM)
            pnl_usd = ars_to_usd(interest, fx.rate).quantize(MONEY_QUANTUM)
        else:
            val_usd, pnl_usd = ZERO.quantize(MONEY_QUANTUM), None

        pnl_pct = None
        if position.principal_ars > 0:
            pnl_pct = (interest / position.principal_ars * HUNDRED).quantize(MONEY_QUANTUM)

        return Item(
            id=position.id,
            kind=ItemKind.PLAZO_FIJO,
            account_id=position.account_id,
            instrument_key=position.id,
            symbol="PF",
            label=position.alias or f"PF {position.bank or UNKNOWN_BANK_NAME}",
            category=AssetCategory.PF,
            currency="ARS",
            quantity=position.principal_ars,
            val_ars=val_ars,
            val_usd=val_usd,
            pnl_ars=interest,
            pnl_usd=pnl_usd,
            pnl_pct=pnl_pct,
            fx_meta=fx if fx.has_rate else None,
            fx_missing=not fx.has_rate,
            pf_meta=FixedDepositMeta(
                start_at=position.start_at,
                maturity_at=position.maturity_at,
                days_remaining=max(0, days_between(as_of.date(), position.maturity_at.date())),
                capital_ars=position.principal_ars,
                expected_interest_ars=position.expected_interest_ars,
                expected_total_ars=position.expected_total_ars,
                tna=position.tna,
                tea=position.tea,
            ),
        )

    # -------------------------------------------------------------------------
    # Aggregation
    # -------------------------------------------------------------------------

    def _assemble_rubro(self, rule: RubroRule, drafts: Iterable[_ProviderDraft]) -> Rubro | None:
        providers = tuple(self._assemble_provider(draft) for draft in drafts if draft.items)
        if not providers:
            return None

        totals = MoneyPair()
        pnl = MoneyPair()
        for provider in providers:
            totals += provider.totals
            pnl += provider.pnl

        return Rubro(
            id=rule.id,
            name=rule.name,
            icon=rule.icon,
            fx_policy=rule.fx_policy,
            totals=totals,
            pnl=pnl,
            providers=providers,
            fx_family=_single_family(item for provider in providers for item in provider.items),
        )

    @staticmethod
    def _assemble_provider(draft: _ProviderDraft) -> Provider:
        totals = MoneyPair()
        pnl = MoneyPair()
        for item in draft.items:
            totals += item.value
            pnl += MoneyPair(ars=item.pnl_ars or ZERO, usd=item.pnl_usd or ZERO)

        return Provider(
            id=draft.id,
            account_id=draft.account_id,
            name=draft.name,
            account_kind=draft.account_kind,
            totals=totals,
            pnl=pnl,
            items=tuple(draft.items),
            fx_family=_single_family(draft.items),
        )


def _single_family(items: Iterable[Item]) -> FxFamily | None:
    """The one FX family shared by every item, or None when mixed or missing."""
    families: set[FxFamily] = set()
    for item in items:
        if item.fx_meta is None:
            return None
        families.add(item.fx_meta.family)
    return families.pop() if len(families) == 1 else None
