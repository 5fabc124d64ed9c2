# backend/tests/services/valuation/test_yield_accrual.py
"""
Unit tests for remunerated-cash yield math.

Test Coverage:
- TNA to TEA with daily compounding
- Compounded projections
- Daily accrual movements (catch-up, compounding modes, no-ops)
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from argfolio.models import AccountKind, Compounding, MovementAssetClass, MovementType
from argfolio.schemas.accounts import Account, CashYieldConfig
from argfolio.services.valuation.yield_accrual import (
    compute_tea,
    compute_yield_metrics,
    daily_rate,
    generate_accrual_movements,
    projected_interest,
)

TODAY = date(2024, 6, 15)


def _wallet(
        tna: str = "36.5",
        enabled: bool = True,
        last_accrued: date | None = None,
        compounding: Compounding = Compounding.DAILY,
) -> Account:
    return Account(
        id="mp",
        name="Mercado Pago",
        kind=AccountKind.WALLET,
        cash_yield=CashYieldConfig(
            enabled=enabled,
            tna=Decimal(tna),
            compounding=compounding,
            last_accrued_date=last_accrued,
        ),
    )


# =============================================================================
# RATES
# =============================================================================

class TestRates:
    """Tests for rate conversions."""

    def test_daily_rate(self):
        assert daily_rate(Decimal("36.5")) == Decimal("0.001")

    def test_tea_compounds_daily(self):
        assert compute_tea(Decimal("36.5")) == Decimal("44.03")

    @pytest.mark.parametrize("tna", [Decimal("0"), Decimal("-1")])
    def test_tea_of_non_positive_rate(self, tna):
        assert compute_tea(tna) == Decimal("0")

    def test_tea_exceeds_tna(self):
        assert compute_tea(Decimal("40")) > Decimal("40")


# =============================================================================
# PROJECTIONS
# =============================================================================

class TestProjections:
    """Tests for forward-looking interest."""

    def test_one_day(self):
        assert projected_interest(Decimal("100000"), Decimal("36.5"), 1) == Decimal("100.00")

    def test_thirty_days_compound(self):
        """30 days of 0.1% compounded is slightly more than 30 × 100."""
        assert projected_interest(Decimal("100000"), Decimal("36.5"), 30) == Decimal("3043.91")

    @pytest.mark.parametrize("balance, tna, days", [
        (Decimal("0"), Decimal("36.5"), 30),
        (Decimal("100000"), Decimal("0"), 30),
        (Decimal("100000"), Decimal("36.5"), 0),
        (Decimal("-500"), Decimal("36.5"), 30),
    ])
    def test_nothing_to_project(self, balance, tna, days):
        assert projected_interest(balance, tna, days) == Decimal("0")

    def test_yield_metrics(self):
        metrics = compute_yield_metrics(Decimal("100000"), Decimal("36.5"))

        assert metrics.tea == Decimal("44.03")
        assert metrics.interest_tomorrow == Decimal("100.00")
        assert metrics.projected_30d == Decimal("3043.91")
        assert Decimal("44000") < metrics.projected_1y < Decimal("44100")


# =============================================================================
# DAILY ACCRUAL
# =============================================================================

class TestAccrual:
    """Tests for INTEREST movement generation."""

    def test_catches_up_to_yesterday(self):
        """Last accrued on the 12th: the 13th and 14th are owed."""
        result = generate_accrual_movements(_wallet(last_accrued=date(2024, 6, 12)), Decimal("100000"), TODAY)

        assert [m.id for m in result.movements] == ["accrual-mp-2024-06-13", "accrual-mp-2024-06-14"]
        assert result.last_accrued_date == date(2024, 6, 14)

    def test_movement_shape(self):
        movement = generate_accrual_movements(_wallet(), Decimal("100000"), TODAY).movements[0]

        assert movement.type is MovementType.INTEREST
        assert movement.asset_class is MovementAssetClass.WALLET
        assert movement.account_id == "mp"
        assert movement.trade_currency == "ARS"
        assert movement.total_ars == Decimal("100.00")
        assert movement.auto_generated is True
        assert movement.timestamp == datetime(2024, 6, 14, 23, 59, 59, tzinfo=timezone.utc)

    def test_first_run_accrues_yesterday_only(self):
        result = generate_accrual_movements(_wallet(), Decimal("100000"), TODAY)

        assert len(result.movements) == 1
        assert result.last_accrued_date == date(2024, 6, 14)

    def test_daily_compounding_grows_the_balance(self):
        result = generate_accrual_movements(_wallet(last_accrued=date(2024, 6, 12)), Decimal("100000"), TODAY)

        assert [m.quantity for m in result.movements] == [Decimal("100.00"), Decimal("100.10")]

    def test_simple_compounding_keeps_the_balance(self):
        account = _wallet(last_accrued=date(2024, 6, 12), compounding=Compounding.SIMPLE)

        result = generate_accrual_movements(account, Decimal("100000"), TODAY)

        assert [m.quantity for m in result.movements] == [Decimal("100.00"), Decimal("100.00")]

    def test_up_to_date_account(self):
        """Nothing is owed when yesterday was already accrued."""
        result = generate_accrual_movements(_wallet(last_accrued=date(2024, 6, 14)), Decimal("100000"), TODAY)

        assert result.movements == []
        assert result.last_accrued_date == date(2024, 6, 14)

    @pytest.mark.parametrize("account, balance", [
        (_wallet(enabled=False), Decimal("100000")),
        (_wallet(tna="0"), Decimal("100000")),
        (_wallet(), Decimal("0")),
        (Account(id="bank", kind=AccountKind.BANK), Decimal("100000")),
    ])
    def test_no_accrual(self, account, balance):
        result = generate_accrual_movements(account, balance, TODAY)

        assert result.movements == []

    def test_sub_cent_interest_is_skipped(self):
        """Days whose interest rounds to zero produce no movement."""
        result = generate_accrual_movements(_wallet(), Decimal("1"), TODAY)

        assert result.movements == []
        assert result.last_accrued_date == date(2024, 6, 14)
