# backend/argfolio/services/valuation/service.py
"""
Portfolio Service - Main orchestrator for the aggregated portfolio.

This is the single entry point for building a portfolio snapshot:
- build(): Rubro tree, KPIs, detail overlays, flags and diagnostics
- preview_sale(): Cost a hypothetical sale against FIFO lots
- to_response(): Pydantic view of a built portfolio

Design Principles:
- Pure: every input is passed in, nothing is fetched or persisted
- Deterministic: as_of defaults to the FX snapshot time, never the clock
- Total: missing rates and prices degrade into flags and diagnostics
- Composable: uses specialized builders and calculators for each task

Usage:
    from argfolio.services.valuation import PortfolioService

    service = PortfolioService(diagnostics_sink=my_sink)

    portfolio = service.build(
        grouped_positions={"iol": GroupedPositions(...)},
        accounts=[Account(id="iol", name="IOL", kind=AccountKind.BROKER)],
        fx_rates=fx_rates,
        movements=movements,
    )

    allocation = service.preview_sale(movements, Decimal("10"), Decimal("1500"))
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from argfolio.config import Settings, settings as default_settings
from argfolio.models import CostingMethod, DiagnosticCode, RubroId
from argfolio.schemas.accounts import Account, AccountSettings
from argfolio.schemas.exchange_rates import FxOverride, FxRates
from argfolio.schemas.fixed_deposits import FixedDepositData
from argfolio.schemas.movements import Movement
from argfolio.schemas.portfolio import PortfolioV2Response
from argfolio.schemas.positions import GroupedPositions
from argfolio.schemas.validators import ensure_utc
from argfolio.services.protocols import DiagnosticsSink
from argfolio.services.valuation.allocation import LotAllocator
from argfolio.services.valuation.details import DetailBuilder
from argfolio.services.valuation.diagnostics import DiagnosticsCollector
from argfolio.services.valuation.fifo import FifoCalculator
from argfolio.services.valuation.fixed_deposits import derive_fixed_deposits
from argfolio.services.valuation.kpis import KPICalculator
from argfolio.services.valuation.rubros import RubroBuilder
from argfolio.services.valuation.types import (
    MoneyPair,
    PortfolioFlags,
    PortfolioKPIs,
    PortfolioV2,
    Rubro,
    SaleAllocation,
)
from argfolio.utils.context import reset_build_id, set_build_id

logger = logging.getLogger(__name__)


class PortfolioService:
    """
    Main service for portfolio aggregation.

    Orchestrates the builders and calculators of one build. Each build
    gets its own DiagnosticsCollector, so a service instance can be
    shared between threads.

    Attributes:
        settings: Engine settings
        diagnostics_sink: Receives every diagnostic as it is emitted
        _fifo: Lot engine shared by details and sale previews
        _allocator: Sale costing
        _kpis: KPI and exposure calculator
    """

    def __init__(
            self,
            settings: Settings | None = None,
            diagnostics_sink: DiagnosticsSink | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.diagnostics_sink = diagnostics_sink

        self._fifo = FifoCalculator()
        self._allocator = LotAllocator()
        self._kpis = KPICalculator()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def build(
            self,
            grouped_positions: Mapping[str, GroupedPositions],
            accounts: Sequence[Account],
            fx_rates: FxRates,
            movements: Iterable[Movement] = (),
            account_settings: Mapping[str, AccountSettings] | None = None,
            fx_overrides: Mapping[str, FxOverride] | None = None,
            fixed_deposits: FixedDepositData | None = None,
            as_of: datetime | None = None,
    ) -> PortfolioV2:
        """
        Build the aggregated portfolio.

        Args:
            grouped_positions: Position rows keyed by account id
            accounts: Known accounts
            fx_rates: FX snapshot for this build
            movements: Ledger (lots, last-trade prices, interest, plazos)
            account_settings: Per-account overrides keyed by account id
            fx_overrides: Manual FX choices keyed "account_id:item_kind"
            fixed_deposits: Plazo data, derived from pf movements when None
            as_of: Valuation time, defaults to fx_rates.updated_at

        Returns:
            PortfolioV2 snapshot
        """
        token = set_build_id(uuid.uuid4().hex[:12])
        try:
            return self._build(
                grouped_positions,
                accounts,
                fx_rates,
                list(movements),
                account_settings,
                fx_overrides,
                fixed_deposits,
                ensure_utc(as_of) or fx_rates.updated_at,
            )
        finally:
            reset_build_id(token)

    def preview_sale(
            self,
            movements: Iterable[Movement],
            desired_qty: Decimal,
            price: Decimal,
            method: CostingMethod | None = None,
            manual_allocations: Mapping[str, Decimal] | None = None,
    ) -> SaleAllocation:
        """
        Cost a hypothetical sale of one instrument.

        Args:
            movements: Movements of a single (account, instrument)
            desired_qty: Quantity to sell
            price: Unit sale price, in the lots' currency
            method: Costing method, defaults to settings.default_costing_method
            manual_allocations: lot id -> quantity, for MANUAL

        Returns:
            SaleAllocation (invalid requests come back with error set)
        """
        fifo = self._fifo.calculate(movements)
        allocation = self._allocator.allocate(
            fifo.lots,
            desired_qty,
            price,
            method or self.settings.default_costing_method,
            manual_allocations,
        )
        if fifo.warnings:
            allocation = replace(allocation, warnings=[*fifo.warnings, *allocation.warnings])
        return allocation

    @staticmethod
    def to_response(portfolio: PortfolioV2) -> PortfolioV2Response:
        """Pydantic view of a built portfolio, ready for JSON serialization."""
        return PortfolioV2Response.model_validate(portfolio)

    # =========================================================================
    # BUILD STEPS
    # =========================================================================

    def _build(
            self,
            grouped_positions: Mapping[str, GroupedPositions],
            accounts: Sequence[Account],
            fx_rates: FxRates,
            movements: list[Movement],
            account_settings: Mapping[str, AccountSettings] | None,
            fx_overrides: Mapping[str, FxOverride] | None,
            fixed_deposits: FixedDepositData | None,
            as_of: datetime,
    ) -> PortfolioV2:
        diagnostics = DiagnosticsCollector(self.diagnostics_sink)

        if fixed_deposits is None:
            fixed_deposits = derive_fixed_deposits(movements, as_of, self.settings)

        rubros = RubroBuilder(self.settings, diagnostics).build(
            grouped_positions,
            accounts,
            fixed_deposits,
            fx_rates,
            account_settings=account_settings,
            fx_overrides=fx_overrides,
            movements=movements,
            as_of=as_of,
        )
        kpis = self._kpis.calculate(rubros, fx_rates)

        details = DetailBuilder(self.settings, diagnostics, self._fifo)
        instrument_details = details.build_instrument_details(rubros, movements)

        flags = self._flags(grouped_positions, rubros)
        self._check_consistency(rubros, kpis, diagnostics)

        logger.info(
            f"Portfolio built as of {as_of.isoformat()}: {len(rubros)} rubros, "
            f"total ARS {kpis.total_ars}, total USD {kpis.total_usd}, "
            f"{len(diagnostics.diagnostics)} diagnostics"
        )

        return PortfolioV2(
            as_of=as_of,
            fx=fx_rates,
            kpis=kpis,
            flags=flags,
            rubros=tuple(rubros),
            wallet_details=details.build_wallet_details(rubros, movements, as_of),
            fixed_deposit_details=details.build_fixed_deposit_details(rubros, fixed_deposits, as_of),
            cedear_details=instrument_details[RubroId.CEDEARS],
            crypto_details=instrument_details[RubroId.CRYPTO],
            fci_details=instrument_details[RubroId.FCI],
            diagnostics=tuple(diagnostics.diagnostics),
        )

    @staticmethod
    def _flags(
            grouped_positions: Mapping[str, GroupedPositions],
            rubros: Sequence[Rubro],
    ) -> PortfolioFlags:
        inferred = sum(
            1
            for group in grouped_positions.values()
            for metrics in group.metrics
            if metrics.opening_balance_inferred
        )
        items = [item for rubro in rubros for item in rubro.iter_items()]
        return PortfolioFlags(
            inferred_balance_count=inferred,
            fx_missing_count=sum(1 for item in items if item.fx_missing),
            price_missing_count=sum(
                1 for item in items if item.price_meta is not None and item.price_meta.is_missing
            ),
        )

    @staticmethod
    def _check_consistency(
            rubros: Sequence[Rubro],
            kpis: PortfolioKPIs,
            diagnostics: DiagnosticsCollector,
    ) -> None:
        """Report double counting, sums that do not add up and unvalued items."""
        seen: dict[tuple[str, str], list[RubroId]] = defaultdict(list)
        kpi_totals = MoneyPair()

        for rubro in rubros:
            rubro_sum = MoneyPair()
            for provider in rubro.providers:
                provider_sum = MoneyPair()
                for item in provider.items:
                    provider_sum += item.value
                    seen[item.dedup_key].append(rubro.id)

                    if item.fx_missing:
                        diagnostics.emit(
                            DiagnosticCode.FX_MISSING,
                            f"No FX rate for {item.symbol} in {item.account_id}",
                            item_id=item.id,
                            rubro=rubro.id.value,
                        )
                    if item.price_meta is not None and item.price_meta.is_missing:
                        diagnostics.emit(
                            DiagnosticCode.PRICE_MISSING,
                            f"No price for {item.symbol} in {item.account_id}",
                            item_id=item.id,
                            rubro=rubro.id.value,
                        )

                if provider_sum != provider.totals:
                    diagnostics.emit(
                        DiagnosticCode.TOTALS_MISMATCH,
                        f"Provider {provider.id} totals differ from its items",
                        rubro=rubro.id.value,
                        provider_id=provider.id,
                    )
                rubro_sum += provider.totals

            if rubro_sum != rubro.totals:
                diagnostics.emit(
                    DiagnosticCode.TOTALS_MISMATCH,
                    f"Rubro {rubro.id.value} totals differ from its providers",
                    rubro=rubro.id.value,
                )
            kpi_totals += rubro.totals

        if kpi_totals != MoneyPair(ars=kpis.total_ars, usd=kpis.total_usd):
            diagnostics.emit(
                DiagnosticCode.TOTALS_MISMATCH,
                "Portfolio totals differ from the rubro totals",
            )

        for key, rubro_ids in seen.items():
            if len(rubro_ids) > 1:
                account_id, instrument_key = key
                diagnostics.emit(
                    DiagnosticCode.DUPLICATE_ITEM,
                    f"{instrument_key} of {account_id} appears {len(rubro_ids)} times",
                    account_id=account_id,
                    instrument=instrument_key,
                    rubros=[rubro_id.value for rubro_id in rubro_ids],
                )
