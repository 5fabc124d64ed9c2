# backend/tests/services/valuation/test_service.py
"""
Integration tests for PortfolioService.

Test Coverage:
- End-to-end build: rubros, KPIs, detail overlays
- Fixed deposits derived from the ledger
- Flags and diagnostics (sink forwarding, failing sinks)
- Determinism and build ID scoping
- Sale previews
- Response serialization
"""

from datetime import datetime
from decimal import Decimal

import pytest

from argfolio.models import (
    AssetCategory,
    CostingMethod,
    DiagnosticCode,
    MovementAssetClass,
    MovementType,
    RubroId,
)
from argfolio.schemas.fixed_deposits import FixedDepositData
from argfolio.schemas.movements import Movement
from argfolio.schemas.portfolio import PortfolioV2Response
from argfolio.services.valuation import PortfolioService
from argfolio.utils.context import get_build_id
from tests.conftest import SNAPSHOT_TIME, group, make_fx_rates, make_metrics, make_movement


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def service(test_settings) -> PortfolioService:
    return PortfolioService(test_settings)


@pytest.fixture
def grouped():
    """Bank cash, a CEDEAR at the broker and a remunerated wallet."""
    return {
        "galicia": group("galicia", make_metrics("ARS", AssetCategory.CASH_ARS, "210000")),
        "iol": group("iol", make_metrics("SPY", AssetCategory.CEDEAR, "10", current_price="22400")),
        "mp": group("mp", make_metrics("ARS", AssetCategory.CASH_ARS, "100000")),
    }


@pytest.fixture
def movements():
    """SPY purchases plus one 30-day plazo fijo at Galicia."""
    return [
        make_movement("b1", quantity="6", unit_price="20000", day=1, fx_at_trade=Decimal("1000")),
        make_movement("b2", quantity="4", unit_price="21000", day=2),
        make_movement(
            "pf1",
            type=MovementType.BUY,
            quantity=None,
            unit_price=None,
            day=1,
            month=6,
            account_id="galicia",
            instrument_id=None,
            asset_class=MovementAssetClass.PF,
            principal_ars=Decimal("100000"),
            tna=Decimal("36.5"),
            term_days=30,
            bank="Galicia",
        ),
    ]


@pytest.fixture
def build(service, grouped, accounts, fx_rates, movements, frasco_settings):
    def _build(**overrides):
        kwargs = dict(
            grouped_positions=grouped,
            accounts=accounts,
            fx_rates=fx_rates,
            movements=movements,
            account_settings=frasco_settings,
        )
        kwargs.update(overrides)
        return service.build(**kwargs)
    return _build


# =============================================================================
# BUILD
# =============================================================================

class TestBuild:
    """Tests for the assembled snapshot."""

    def test_rubros_in_display_order(self, build):
        portfolio = build()

        assert [rubro.id for rubro in portfolio.rubros] == [
            RubroId.WALLETS, RubroId.FRASCOS, RubroId.PLAZOS, RubroId.CEDEARS,
        ]

    def test_as_of_defaults_to_fx_snapshot(self, build):
        assert build().as_of == SNAPSHOT_TIME

    def test_kpis_match_rubros(self, build):
        """210000 + 100000 + 103000 + 224000 ARS."""
        portfolio = build()

        assert portfolio.kpis.total_ars == Decimal("637000.00")
        assert portfolio.kpis.total_ars == sum((r.totals.ars for r in portfolio.rubros), Decimal("0"))
        assert portfolio.kpis.total_usd == sum((r.totals.usd for r in portfolio.rubros), Decimal("0"))

    def test_fixed_deposits_are_derived_from_movements(self, build):
        portfolio = build()

        plazos = portfolio.get_rubro(RubroId.PLAZOS)
        assert [item.id for item in plazos.iter_items()] == ["pf1"]
        assert portfolio.fixed_deposit_details["pf1"].accrued_interest_ars == Decimal("1400.00")

    def test_explicit_fixed_deposits_skip_derivation(self, build):
        portfolio = build(fixed_deposits=FixedDepositData())

        assert portfolio.get_rubro(RubroId.PLAZOS) is None
        assert portfolio.fixed_deposit_details == {}

    def test_detail_overlays(self, build):
        portfolio = build()

        assert set(portfolio.cedear_details) == {"iol-SPY"}
        assert set(portfolio.wallet_details) == {"mp-ARS"}
        assert portfolio.crypto_details == {}
        assert portfolio.fci_details == {}

    def test_consistent_build_has_no_diagnostics(self, build):
        assert build().diagnostics == ()

    def test_builds_are_deterministic(self, build):
        """Same inputs, same snapshot."""
        assert build() == build()

    def test_mixed_timezone_ledger(self, service, accounts, fx_rates):
        """Naive timestamps are read as UTC, so the latest trade still prices the FCI."""
        grouped = {"iol": group("iol", make_metrics("FIMA", AssetCategory.FCI, "20"))}
        movements = [
            make_movement("f1", instrument_id="FIMA", asset_class=MovementAssetClass.FCI, unit_price="50"),
            Movement(
                id="f2",
                timestamp=datetime(2024, 2, 1, 12, 0),
                type=MovementType.BUY,
                asset_class=MovementAssetClass.FCI,
                instrument_id="FIMA",
                account_id="iol",
                quantity=Decimal("10"),
                unit_price=Decimal("60"),
            ),
        ]

        portfolio = service.build(
            grouped, accounts, fx_rates, movements=movements, as_of=datetime(2024, 6, 15, 15, 0),
        )

        assert portfolio.fci_details["iol-FIMA"].current_value_ars == Decimal("1200.00")
        assert portfolio.fci_details["iol-FIMA"].lots_quantity == Decimal("20")

    def test_empty_portfolio(self, service, accounts, fx_rates):
        portfolio = service.build({}, accounts, fx_rates)

        assert portfolio.rubros == ()
        assert portfolio.kpis.total_ars == Decimal("0")
        assert portfolio.kpis.pct_ars == Decimal("100")


# =============================================================================
# FLAGS AND DIAGNOSTICS
# =============================================================================

class TestFlagsAndDiagnostics:
    """Tests for data-quality reporting."""

    def test_inferred_balances_are_counted(self, service, accounts, fx_rates):
        grouped = {"galicia": group(
            "galicia",
            make_metrics("ARS", AssetCategory.CASH_ARS, "1000", opening_balance_inferred=True),
        )}

        flags = service.build(grouped, accounts, fx_rates).flags

        assert flags.inferred_balance_count == 1
        assert flags.has_inferred_balances is True

    def test_missing_fx_is_flagged(self, service, accounts):
        rates = make_fx_rates(oficial=(None, None), mep=(None, None), ccl=(None, None), cripto=(None, None))
        grouped = {"galicia": group("galicia", make_metrics("USD", AssetCategory.CASH_USD, "100"))}

        portfolio = service.build(grouped, accounts, rates)

        assert portfolio.flags.fx_missing_count == 1
        assert [d.code for d in portfolio.diagnostics] == [DiagnosticCode.FX_MISSING]

    def test_missing_price_is_flagged(self, service, accounts, fx_rates):
        """An FCI with no quote, trade or cost stays listed, unpriced."""
        grouped = {"iol": group("iol", make_metrics("FIMA", AssetCategory.FCI, "50"))}

        portfolio = service.build(grouped, accounts, fx_rates)

        assert portfolio.flags.price_missing_count == 1
        assert DiagnosticCode.PRICE_MISSING in {d.code for d in portfolio.diagnostics}

    def test_sink_receives_every_diagnostic(self, test_settings, accounts, fx_rates):
        received = []
        service = PortfolioService(test_settings, diagnostics_sink=received.append)
        grouped = {"galicia": group("galicia", make_metrics("XYZ", AssetCategory.OTHER, "5", current_price="10"))}

        portfolio = service.build(grouped, accounts, fx_rates)

        assert [d.code for d in received] == [DiagnosticCode.UNCLASSIFIED_POSITION]
        assert tuple(received) == portfolio.diagnostics

    def test_failing_sink_does_not_break_the_build(self, test_settings, accounts, fx_rates):
        def explode(diagnostic):
            raise RuntimeError("sink down")

        service = PortfolioService(test_settings, diagnostics_sink=explode)
        grouped = {"galicia": group("galicia", make_metrics("XYZ", AssetCategory.OTHER, "5", current_price="10"))}

        portfolio = service.build(grouped, accounts, fx_rates)

        assert len(portfolio.diagnostics) == 1

    def test_diagnostics_do_not_leak_between_builds(self, test_settings, accounts, fx_rates):
        service = PortfolioService(test_settings)
        bad = {"galicia": group("galicia", make_metrics("XYZ", AssetCategory.OTHER, "5", current_price="10"))}

        service.build(bad, accounts, fx_rates)
        portfolio = service.build({}, accounts, fx_rates)

        assert portfolio.diagnostics == ()


# =============================================================================
# BUILD ID
# =============================================================================

class TestBuildId:
    """Tests for per-build log tracing."""

    def test_build_id_is_set_during_build(self, test_settings, accounts, fx_rates):
        seen = []
        service = PortfolioService(test_settings, diagnostics_sink=lambda d: seen.append(get_build_id()))
        grouped = {"galicia": group("galicia", make_metrics("XYZ", AssetCategory.OTHER, "5", current_price="10"))}

        service.build(grouped, accounts, fx_rates)

        assert len(seen) == 1
        assert seen[0] is not None

    def test_build_id_is_reset_afterwards(self, build):
        build()

        assert get_build_id() is None


# =============================================================================
# SALE PREVIEW
# =============================================================================

class TestPreviewSale:
    """Tests for hypothetical sales."""

    @pytest.fixture
    def history(self):
        return [
            make_movement("b1", quantity="10", unit_price="100", day=1),
            make_movement("b2", quantity="10", unit_price="80", day=2),
        ]

    def test_default_method_is_fifo(self, service, history):
        result = service.preview_sale(history, Decimal("15"), Decimal("150"))

        assert result.method is CostingMethod.FIFO
        assert result.total_cost_native == Decimal("1400")

    def test_explicit_method(self, service, history):
        result = service.preview_sale(history, Decimal("15"), Decimal("150"), CostingMethod.CHEAPEST)

        assert result.total_cost_native == Decimal("1300")

    def test_ledger_warnings_come_first(self, service, history):
        """An oversold history warns before the allocation's own warnings."""
        oversell = make_movement("s1", type=MovementType.SELL, quantity="25", day=3)

        result = service.preview_sale([*history, oversell], Decimal("1"), Decimal("100"))

        assert result.warnings
        assert "s1" in result.warnings[0]

    def test_allocation_result_is_not_modified(self, service, history, monkeypatch):
        """Ledger warnings go on a new result, the allocator's own is left as built."""
        produced = []
        allocate = service._allocator.allocate

        def recording_allocate(*args, **kwargs):
            produced.append(allocate(*args, **kwargs))
            return produced[-1]

        monkeypatch.setattr(service._allocator, "allocate", recording_allocate)
        oversell = make_movement("s1", type=MovementType.SELL, quantity="25", day=3)

        result = service.preview_sale([*history, oversell], Decimal("1"), Decimal("100"))

        assert result is not produced[0]
        assert not any("s1" in warning for warning in produced[0].warnings)
        own = produced[0].warnings
        assert result.warnings[len(result.warnings) - len(own):] == own

    def test_manual_without_selection_is_pending(self, service, history):
        result = service.preview_sale(history, Decimal("5"), Decimal("100"), CostingMethod.MANUAL)

        assert result.pending is True


# =============================================================================
# RESPONSE
# =============================================================================

class TestResponse:
    """Tests for the Pydantic view."""

    def test_to_response(self, build):
        portfolio = build()

        response = PortfolioService.to_response(portfolio)

        assert isinstance(response, PortfolioV2Response)
        assert response.kpis.total_ars == portfolio.kpis.total_ars
        assert [rubro.id for rubro in response.rubros] == [rubro.id for rubro in portfolio.rubros]
        assert response.cedear_details["iol-SPY"].lots[0].lot_id == "b1"
        assert response.flags.has_inferred_balances is False

    def test_response_serializes_to_json(self, build):
        data = PortfolioService.to_response(build()).model_dump(mode="json")

        assert data["rubros"][0]["id"] == "wallets"
        assert data["wallet_details"]["mp-ARS"]["tea"] == "44.03"
