# backend/argfolio/services/valuation/kpis.py
"""
Portfolio KPIs and currency exposure.

Totals:
    total_ars = Σ rubro.totals.ars
    total_usd = Σ rubro.totals.usd
    The USD total is the sum of each item's own resolved USD value, never
    total_ars divided by one global rate.

Exposure buckets:
    usd_hard        crypto rubro USD + USD cash in wallets/frascos   (USD)
    ars_real        ARS cash in wallets/frascos                       (ARS)
    usd_equivalent  Σ item.val_usd of every other rubro               (USD)

Percentages:
    base = usd_hard + usd_equivalent + ars_real ÷ exposure_rate
    exposure_rate = MEP sell -> Oficial sell -> 1
    pct_ars = 100 - pct_usd_hard - pct_usd_eq   (closes to 100 exactly)
    A zero base yields 0 / 0 / 100.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Sequence

from argfolio.models import FxFamily, FxSide, RubroId
from argfolio.schemas.exchange_rates import FxRates
from argfolio.services.constants import (
    EXPOSURE_RATE_LAST_RESORT,
    HUNDRED,
    PERCENT_QUANTUM,
    ZERO,
)
from argfolio.services.valuation.types import (
    ExposureBuckets,
    MoneyPair,
    PortfolioKPIs,
    Rubro,
)
from argfolio.utils.fx_conversion import ars_to_usd

logger = logging.getLogger(__name__)

# Rubros whose items are split by native currency
CASH_RUBROS = frozenset({RubroId.WALLETS, RubroId.FRASCOS})


class KPICalculator:
    """Reduces rubros into portfolio-wide totals and exposure."""

    def calculate(self, rubros: Sequence[Rubro], fx_rates: FxRates) -> PortfolioKPIs:
        """
        Calculate KPIs from already-built rubros.

        Args:
            rubros: Output of RubroBuilder.build()
            fx_rates: Snapshot used for the exposure rate

        Returns:
            PortfolioKPIs
        """
        totals = MoneyPair()
        pnl = MoneyPair()
        for rubro in rubros:
            totals += rubro.totals
            pnl += rubro.pnl

        exposure = self._exposure(rubros)
        exposure_rate = self.exposure_rate(fx_rates)
        ars_real_usd = ars_to_usd(exposure.ars_real, exposure_rate)
        base = exposure.usd_hard + exposure.usd_equivalent + ars_real_usd

        if base > 0:
            pct_usd_hard = (exposure.usd_hard / base * HUNDRED).quantize(PERCENT_QUANTUM)
            pct_usd_eq = (exposure.usd_equivalent / base * HUNDRED).quantize(PERCENT_QUANTUM)
        else:
            pct_usd_hard = ZERO.quantize(PERCENT_QUANTUM)
            pct_usd_eq = ZERO.quantize(PERCENT_QUANTUM)
        pct_ars = HUNDRED - pct_usd_hard - pct_usd_eq

        return PortfolioKPIs(
            total_ars=totals.ars,
            total_usd=totals.usd,
            pnl_unrealized_ars=pnl.ars,
            pnl_unrealized_usd=pnl.usd,
            exposure=exposure,
            exposure_rate=exposure_rate,
            total_portfolio_usd=base,
            pct_usd_hard=pct_usd_hard,
            pct_usd_eq=pct_usd_eq,
            pct_ars=pct_ars,
        )

    @staticmethod
    def exposure_rate(fx_rates: FxRates) -> Decimal:
        """MEP sell, else Oficial sell, else 1."""
        for family in (FxFamily.MEP, FxFamily.OFICIAL):
            rate = fx_rates.quote(family, FxSide.SELL)
            if rate is not None:
                return rate
        logger.warning("No MEP or Oficial sell rate, exposure split uses rate 1")
        return EXPOSURE_RATE_LAST_RESORT

    @staticmethod
    def _exposure(rubros: Sequence[Rubro]) -> ExposureBuckets:
        usd_hard = ZERO
        usd_equivalent = ZERO
        ars_real = ZERO

        for rubro in rubros:
            if rubro.id is RubroId.CRYPTO:
                usd_hard += rubro.totals.usd
            elif rubro.id in CASH_RUBROS:
                for item in rubro.iter_items():
                    if item.currency == "USD":
                        usd_hard += item.val_usd
                    else:
                        ars_real += item.val_ars
            else:
                usd_equivalent += sum((item.val_usd for item in rubro.iter_items()), ZERO)

        return ExposureBuckets(
            usd_hard=usd_hard,
            usd_equivalent=usd_equivalent,
            ars_real=ars_real,
        )
