# backend/argfolio/services/valuation/details.py
"""
Detail overlays for drill-down views.

Read-side projections over an already-built rubro tree. Items are never
modified; each builder returns new detail objects keyed by item id.

Instrument details (CEDEARs, crypto, FCI):
    FIFO lots from the (account, instrument) movements, each valued at the
    item's current price and rate.

    unit_cost_ars/usd use the lot's FX at trade time. When it was not
    captured the item's current rate stands in and the lot is flagged
    fx_missing.

    current value = the item's own val_ars/val_usd
    cost, P&L     = Σ over open lots

Wallet details (frascos): balances, interest earned from INTEREST
movements and daily-compounded projections to month and year end.

Fixed-deposit details (plazos): terms, days elapsed/remaining and
linearly accrued interest.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from argfolio.config import Settings, settings as default_settings
from argfolio.models import (
    AssetCategory,
    DiagnosticCode,
    FixedDepositStatus,
    MovementType,
    RubroId,
)
from argfolio.schemas.fixed_deposits import FixedDepositData
from argfolio.schemas.movements import Movement
from argfolio.schemas.validators import is_usd_like
from argfolio.services.constants import (
    FIXED_DEPOSIT_CODE_LENGTH,
    FIXED_DEPOSIT_CODE_PREFIX,
    HUNDRED,
    MONEY_QUANTUM,
    UNKNOWN_BANK_NAME,
    ZERO,
)
from argfolio.services.valuation.diagnostics import DiagnosticsCollector
from argfolio.services.valuation.fifo import FifoCalculator
from argfolio.services.valuation.types import (
    FixedDepositDetail,
    InstrumentDetail,
    InterestEntry,
    Item,
    Lot,
    LotDetail,
    Rubro,
    WalletDetail,
)
from argfolio.services.valuation.yield_accrual import compute_tea, projected_interest
from argfolio.utils.date_utils import days_between, days_left_in_month, days_left_in_year

logger = logging.getLogger(__name__)

INSTRUMENT_RUBROS = (RubroId.CEDEARS, RubroId.CRYPTO, RubroId.FCI)


def _items_of(rubros: Iterable[Rubro], rubro_id: RubroId) -> list[Item]:
    return [item for rubro in rubros if rubro.id is rubro_id for item in rubro.iter_items()]


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM)


class DetailBuilder:
    """Builds per-item detail maps from a rubro tree."""

    def __init__(
            self,
            settings: Settings | None = None,
            diagnostics: DiagnosticsCollector | None = None,
            fifo: FifoCalculator | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.diagnostics = diagnostics or DiagnosticsCollector()
        self.fifo = fifo or FifoCalculator()

    # =========================================================================
    # INSTRUMENT DETAILS
    # =========================================================================

    def build_instrument_details(
            self,
            rubros: Sequence[Rubro],
            movements: Iterable[Movement],
    ) -> dict[RubroId, dict[str, InstrumentDetail]]:
        """
        Build lot details for every CEDEAR, crypto and FCI item.

        Returns:
            {RubroId.CEDEARS: {...}, RubroId.CRYPTO: {...}, RubroId.FCI: {...}}
            each keyed by item id
        """
        by_pair: dict[tuple[str, str], list[Movement]] = defaultdict(list)
        for movement in movements:
            if movement.instrument_id is not None:
                by_pair[(movement.account_id, movement.instrument_id)].append(movement)

        details: dict[RubroId, dict[str, InstrumentDetail]] = {}
        for rubro_id in INSTRUMENT_RUBROS:
            details[rubro_id] = {
                item.id: self._instrument_detail(item, by_pair.get((item.account_id, item.instrument_key), []))
                for item in _items_of(rubros, rubro_id)
            }
        return details

    def _instrument_detail(self, item: Item, movements: list[Movement]) -> InstrumentDetail:
        fifo = self.fifo.calculate(movements)
        usd_native = self._is_usd_native(item)
        current_rate = item.fx_meta.rate if item.fx_meta is not None else None
        current_price = item.price_meta.price if item.price_meta is not None else None

        lots = tuple(
            self._lot_detail(lot, usd_native, current_price, current_rate)
            for lot in fifo.lots
        )

        mismatch = bool(movements) and (
            abs(fifo.total_quantity - item.quantity) > self.settings.lot_quantity_tolerance
        )
        if mismatch:
            self.diagnostics.emit(
                DiagnosticCode.LOT_QUANTITY_MISMATCH,
                f"{item.symbol} in {item.account_id}: lots hold {fifo.total_quantity}, "
                f"position holds {item.quantity}",
                item_id=item.id,
                lots_quantity=str(fifo.total_quantity),
                position_quantity=str(item.quantity),
            )

        cost_ars = sum((lot.cost_ars for lot in lots), ZERO)
        cost_usd = sum((lot.cost_usd for lot in lots), ZERO)
        pnl_ars = sum((lot.pnl_ars for lot in lots), ZERO)
        pnl_usd = sum((lot.pnl_usd for lot in lots), ZERO)
        native_cost, native_pnl = (cost_usd, pnl_usd) if usd_native else (cost_ars, pnl_ars)

        return InstrumentDetail(
            item_id=item.id,
            account_id=item.account_id,
            instrument_key=item.instrument_key,
            symbol=item.symbol,
            name=item.label,
            category=item.category,
            native_currency=item.currency,
            total_quantity=item.quantity,
            current_price=current_price,
            price_meta=item.price_meta,
            fx_rate=current_rate,
            current_value_ars=item.val_ars,
            current_value_usd=item.val_usd,
            cost_ars=cost_ars,
            cost_usd=cost_usd,
            pnl_ars=pnl_ars,
            pnl_usd=pnl_usd,
            pnl_pct=_money(native_pnl / native_cost * HUNDRED) if native_cost > 0 else None,
            lots=lots,
            lots_quantity=fifo.total_quantity,
            lots_quantity_mismatch=mismatch,
            warnings=tuple(fifo.warnings),
        )

    @staticmethod
    def _is_usd_native(item: Item) -> bool:
        if item.category in (AssetCategory.CRYPTO, AssetCategory.STABLE):
            return True
        return is_usd_like(item.currency)

    @staticmethod
    def _lot_detail(
            lot: Lot,
            usd_native: bool,
            current_price: Decimal | None,
            current_rate: Decimal | None,
    ) -> LotDetail:
        # Historical rate, or today's rate when the trade did not record one
        lot_rate = lot.fx_at_trade if lot.fx_at_trade is not None else current_rate

        if is_usd_like(lot.currency):
            unit_usd = lot.unit_cost_native
            unit_ars = unit_usd * lot_rate if lot_rate is not None else ZERO
        else:
            unit_ars = lot.unit_cost_native
            unit_usd = unit_ars / lot_rate if lot_rate is not None else ZERO

        value_native = lot.quantity * current_price if current_price is not None else ZERO
        if usd_native:
            value_usd = value_native
            value_ars = value_native * current_rate if current_rate is not None else ZERO
        else:
            value_ars = value_native
            value_usd = value_native / current_rate if current_rate is not None else ZERO

        cost_ars = _money(lot.quantity * unit_ars)
        cost_usd = _money(lot.quantity * unit_usd)
        value_ars = _money(value_ars)
        value_usd = _money(value_usd)
        pnl_ars = value_ars - cost_ars
        pnl_usd = value_usd - cost_usd
        native_cost, native_pnl = (cost_usd, pnl_usd) if usd_native else (cost_ars, pnl_ars)

        return LotDetail(
            lot_id=lot.id,
            trade_date=lot.trade_date,
            quantity=lot.quantity,
            unit_cost_native=lot.unit_cost_native,
            unit_cost_ars=unit_ars,
            unit_cost_usd=unit_usd,
            cost_ars=cost_ars,
            cost_usd=cost_usd,
            value_ars=value_ars,
            value_usd=value_usd,
            pnl_ars=pnl_ars,
            pnl_usd=pnl_usd,
            pnl_pct=_money(native_pnl / native_cost * HUNDRED) if native_cost > 0 else None,
            fx_at_trade=lot.fx_at_trade,
            fx_missing=lot.fx_missing,
        )

    # =========================================================================
    # WALLET DETAILS
    # =========================================================================

    def build_wallet_details(
            self,
            rubros: Sequence[Rubro],
            movements: Iterable[Movement],
            as_of: datetime,
    ) -> dict[str, WalletDetail]:
        """
        Build yield details for every frascos item.

        Interest is taken from INTEREST movements of the item's account,
        bucketed by day, month and year of as_of.
        """
        interest_by_account: dict[str, list[Movement]] = defaultdict(list)
        for movement in movements:
            if movement.type is MovementType.INTEREST:
                interest_by_account[movement.account_id].append(movement)

        today = as_of.date()
        details: dict[str, WalletDetail] = {}

        for rubro in rubros:
            if rubro.id is not RubroId.FRASCOS:
                continue
            for provider in rubro.providers:
                cash_ars = sum((i.val_ars for i in provider.items if i.currency == "ARS"), ZERO)
                cash_usd = sum((i.quantity for i in provider.items if i.currency == "USD"), ZERO)

                for item in provider.items:
                    entries = sorted(
                        (
                            InterestEntry(
                                movement_id=m.id,
                                date=m.timestamp.date(),
                                amount_ars=self._interest_amount(m),
                            )
                            for m in interest_by_account.get(item.account_id, [])
                        ),
                        key=lambda entry: (entry.date, entry.movement_id),
                        reverse=True,
                    )
                    tna = item.yield_meta.tna if item.yield_meta is not None else ZERO

                    details[item.id] = WalletDetail(
                        item_id=item.id,
                        account_id=item.account_id,
                        account_name=provider.name,
                        currency=item.currency,
                        cash_ars=cash_ars,
                        cash_usd=cash_usd,
                        yield_enabled=item.yield_meta is not None and tna > 0,
                        tna=tna,
                        tea=compute_tea(tna),
                        interest_today_ars=sum(
                            (e.amount_ars for e in entries if e.date == today), ZERO
                        ),
                        interest_month_ars=sum(
                            (e.amount_ars for e in entries
                             if (e.date.year, e.date.month) == (today.year, today.month) and e.date <= today),
                            ZERO,
                        ),
                        interest_ytd_ars=sum(
                            (e.amount_ars for e in entries if e.date.year == today.year and e.date <= today),
                            ZERO,
                        ),
                        projected_month_end_ars=projected_interest(cash_ars, tna, days_left_in_month(today)),
                        projected_year_end_ars=projected_interest(cash_ars, tna, days_left_in_year(today)),
                        recent_interest=tuple(entries[:self.settings.recent_interest_limit]),
                    )

        return details

    @staticmethod
    def _interest_amount(movement: Movement) -> Decimal:
        for candidate in (movement.total_ars, movement.net_amount, movement.quantity):
            if candidate is not None:
                return candidate
        return ZERO

    # =========================================================================
    # FIXED DEPOSIT DETAILS
    # =========================================================================

    def build_fixed_deposit_details(
            self,
            rubros: Sequence[Rubro],
            fixed_deposits: FixedDepositData | None,
            as_of: datetime,
    ) -> dict[str, FixedDepositDetail]:
        """Build details for every plazo item still held."""
        if fixed_deposits is None:
            return {}

        positions = {position.id: position for position in fixed_deposits.open_positions}
        today = as_of.date()
        details: dict[str, FixedDepositDetail] = {}

        for item in _items_of(rubros, RubroId.PLAZOS):
            position = positions.get(item.id)
            if position is None:
                continue

            maturity = position.maturity_at.date()
            elapsed = min(max(days_between(position.start_at.date(), today), 0), position.term_days)
            accrued = _money(position.expected_interest_ars * elapsed / position.term_days)

            details[item.id] = FixedDepositDetail(
                item_id=item.id,
                movement_id=position.movement_id,
                pf_code=position.pf_code or (
                    FIXED_DEPOSIT_CODE_PREFIX + position.id[:FIXED_DEPOSIT_CODE_LENGTH].upper()
                ),
                bank=position.bank or UNKNOWN_BANK_NAME,
                alias=position.alias,
                status=FixedDepositStatus.MATURED if today >= maturity else FixedDepositStatus.ACTIVE,
                capital_ars=position.principal_ars,
                tna=position.tna,
                tea=position.tea,
                term_days=position.term_days,
                start_at=position.start_at,
                maturity_at=position.maturity_at,
                days_remaining=max(0, days_between(today, maturity)),
                days_elapsed=elapsed,
                expected_interest_ars=position.expected_interest_ars,
                expected_total_ars=position.expected_total_ars,
                accrued_interest_ars=accrued,
                initial_fx=position.initial_fx,
            )

        return details
