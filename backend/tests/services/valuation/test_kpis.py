# backend/tests/services/valuation/test_kpis.py
"""
Unit tests for portfolio KPIs and currency exposure.

Test Coverage:
- Totals are sums of rubro totals (per-item USD, no global rate)
- Exposure buckets (usd_hard, usd_equivalent, ars_real)
- Exposure rate selection (MEP sell, Oficial sell, 1)
- Percentages always close to 100
"""

from decimal import Decimal

import pytest

from argfolio.models import AssetCategory
from argfolio.services.valuation.kpis import KPICalculator
from argfolio.services.valuation.rubros import RubroBuilder
from tests.conftest import group, make_fx_rates, make_metrics


@pytest.fixture
def calc() -> KPICalculator:
    return KPICalculator()


@pytest.fixture
def rubros(test_settings, accounts, fx_rates):
    """
    A small portfolio valued with the default snapshot:

        galicia  ARS cash 210000   -> 210000 ARS / 210 USD   (ars_real)
        galicia  USD cash 100      -> 105000 ARS / 100 USD   (usd_hard)
        binance  BTC 0.01 @ 50000  -> 600000 ARS / 500 USD   (usd_hard)
        iol      SPY 10 @ 22000    -> 220000 ARS / 200 USD   (usd_equivalent)
    """
    grouped = {
        "galicia": group(
            "galicia",
            make_metrics("ARS", AssetCategory.CASH_ARS, "210000"),
            make_metrics("USD", AssetCategory.CASH_USD, "100"),
        ),
        "binance": group(
            "binance",
            make_metrics("BTC", AssetCategory.CRYPTO, "0.01", current_price="50000", native_currency="USD"),
        ),
        "iol": group(
            "iol",
            make_metrics("SPY", AssetCategory.CEDEAR, "10", current_price="22000"),
        ),
    }
    return RubroBuilder(test_settings).build(grouped, accounts, None, fx_rates)


# =============================================================================
# TOTALS
# =============================================================================

class TestTotals:
    """Tests for portfolio totals."""

    def test_totals_sum_rubros(self, calc, rubros, fx_rates):
        kpis = calc.calculate(rubros, fx_rates)

        assert kpis.total_ars == Decimal("1135000.00")
        assert kpis.total_usd == Decimal("1010.00")
        assert kpis.total_ars == sum((rubro.totals.ars for rubro in rubros), Decimal("0"))
        assert kpis.total_usd == sum((rubro.totals.usd for rubro in rubros), Decimal("0"))

    def test_unrealized_pnl_ignores_items_without_pnl(self, calc, rubros, fx_rates):
        """Cash and positions without a cost basis add nothing."""
        kpis = calc.calculate(rubros, fx_rates)

        assert kpis.pnl_unrealized_ars == Decimal("0")
        assert kpis.pnl_unrealized_usd == Decimal("0")


# =============================================================================
# EXPOSURE
# =============================================================================

class TestExposure:
    """Tests for the exposure split."""

    def test_buckets(self, calc, rubros, fx_rates):
        exposure = calc.calculate(rubros, fx_rates).exposure

        assert exposure.usd_hard == Decimal("600.00")
        assert exposure.usd_equivalent == Decimal("200.00")
        assert exposure.ars_real == Decimal("210000.00")

    def test_percentages(self, calc, rubros, fx_rates):
        """base = 600 + 200 + 210000 / 1120 (MEP sell) = 987.5"""
        kpis = calc.calculate(rubros, fx_rates)

        assert kpis.exposure_rate == Decimal("1120")
        assert kpis.total_portfolio_usd == Decimal("987.5")
        assert kpis.pct_usd_hard == Decimal("60.7595")
        assert kpis.pct_usd_eq == Decimal("20.2532")
        assert kpis.pct_ars == Decimal("18.9873")

    def test_percentages_close_to_100(self, calc, rubros, fx_rates):
        kpis = calc.calculate(rubros, fx_rates)

        assert kpis.pct_usd_hard + kpis.pct_usd_eq + kpis.pct_ars == Decimal("100")

    def test_empty_portfolio_is_all_ars(self, calc, fx_rates):
        """A zero base splits 0 / 0 / 100."""
        kpis = calc.calculate([], fx_rates)

        assert kpis.total_ars == Decimal("0")
        assert kpis.pct_usd_hard == Decimal("0")
        assert kpis.pct_usd_eq == Decimal("0")
        assert kpis.pct_ars == Decimal("100")

    def test_frascos_cash_counts_as_cash(self, calc, test_settings, accounts, fx_rates, frasco_settings):
        grouped = {"mp": group("mp", make_metrics("ARS", AssetCategory.CASH_ARS, "112000"))}
        rubros = RubroBuilder(test_settings).build(
            grouped, accounts, None, fx_rates, account_settings=frasco_settings,
        )

        kpis = calc.calculate(rubros, fx_rates)

        assert kpis.exposure.ars_real == Decimal("112000.00")
        assert kpis.pct_ars == Decimal("100")


# =============================================================================
# EXPOSURE RATE
# =============================================================================

class TestExposureRate:
    """Tests for the rate used to bring ARS cash into the split."""

    def test_prefers_mep_sell(self):
        assert KPICalculator.exposure_rate(make_fx_rates()) == Decimal("1120")

    def test_falls_back_to_oficial_sell(self):
        assert KPICalculator.exposure_rate(make_fx_rates(mep=("1100", None))) == Decimal("1050")

    def test_last_resort_is_one(self):
        rates = make_fx_rates(mep=(None, None), oficial=("1000", None))

        assert KPICalculator.exposure_rate(rates) == Decimal("1")
