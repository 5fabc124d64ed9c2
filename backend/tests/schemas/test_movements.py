# backend/tests/schemas/test_movements.py
"""
Tests for movement schemas.

This module tests:
- Currency and TNA validation
- Fee handling (percent, fixed, foreign-currency)
- Net amount for costs and proceeds
- Trade-time FX selection
- Naive timestamps taken as UTC
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from argfolio.models import FeeMode, FxFamily, FxSide, MovementAssetClass, MovementType
from argfolio.schemas.fixed_deposits import FixedDepositPosition
from argfolio.schemas.movements import FeeSpec, Movement, TradeFxSnapshot
from tests.conftest import make_movement


# =============================================================================
# VALIDATION TESTS
# =============================================================================

class TestMovementValidation:
    """Tests for Movement field validation."""

    def test_trade_currency_is_normalized(self):
        """Should uppercase and trim the trade currency."""
        movement = make_movement("m1", trade_currency=" usdt ")

        assert movement.trade_currency == "USDT"

    def test_invalid_currency(self):
        """Should reject symbols outside [A-Z0-9]."""
        with pytest.raises(ValidationError):
            make_movement("m1", trade_currency="U$S")

    def test_negative_tna(self):
        with pytest.raises(ValidationError):
            make_movement("m1", tna=Decimal("-1"))

    def test_implausible_tna(self):
        """Should reject rates that look like a units mistake."""
        with pytest.raises(ValidationError):
            make_movement("m1", tna=Decimal("35000"))

    def test_movements_are_immutable(self):
        movement = make_movement("m1")

        with pytest.raises(ValidationError):
            movement.quantity = Decimal("1")

    @pytest.mark.parametrize("movement_type, additive, subtractive", [
        (MovementType.BUY, True, False),
        (MovementType.TRANSFER_IN, True, False),
        (MovementType.SELL, False, True),
        (MovementType.WITHDRAW, False, True),
        (MovementType.INTEREST, False, False),
        (MovementType.BUY_USD, False, False),
    ])
    def test_inventory_direction(self, movement_type, additive, subtractive):
        movement = make_movement("m1", type=movement_type)

        assert movement.is_additive is additive
        assert movement.is_subtractive is subtractive


# =============================================================================
# AMOUNT TESTS
# =============================================================================

class TestMovementAmounts:
    """Tests for gross, fee and net amounts."""

    def test_gross_is_quantity_times_price(self):
        assert make_movement("m1").gross_trade_amount == Decimal("1000")

    def test_declared_gross_wins(self):
        movement = make_movement("m1", gross_amount=Decimal("990"))

        assert movement.gross_trade_amount == Decimal("990")

    def test_gross_without_price(self):
        """Should be 0 when quantity or price is unknown."""
        assert make_movement("m1", unit_price=None).gross_trade_amount == Decimal("0")

    def test_percent_fee_adds_to_cost(self):
        movement = make_movement("m1", fee=FeeSpec(mode=FeeMode.PERCENT, amount=Decimal("0.5")))

        assert movement.fee_amount == Decimal("5")
        assert movement.net_trade_amount == Decimal("1005")

    def test_fee_reduces_proceeds(self):
        movement = make_movement(
            "m1", type=MovementType.SELL, fee=FeeSpec(mode=FeeMode.FIXED, amount=Decimal("12")),
        )

        assert movement.net_trade_amount == Decimal("988")

    def test_fee_in_other_currency_is_ignored(self):
        """Should not net a USD fee against an ARS trade."""
        movement = make_movement("m1", fee=FeeSpec(mode=FeeMode.FIXED, amount=Decimal("2"), currency="usd"))

        assert movement.fee_amount == Decimal("0")
        assert movement.net_trade_amount == Decimal("1000")

    def test_declared_net_wins(self):
        movement = make_movement(
            "m1",
            net_amount=Decimal("1010"),
            fee=FeeSpec(mode=FeeMode.FIXED, amount=Decimal("5")),
        )

        assert movement.net_trade_amount == Decimal("1010")


# =============================================================================
# TRADE FX TESTS
# =============================================================================

class TestEffectiveFxRate:
    """Tests for the FX rate recorded at trade time."""

    def test_snapshot_wins_over_flat_field(self):
        movement = make_movement(
            "m1",
            fx=TradeFxSnapshot(kind=FxFamily.MEP, rate=Decimal("1100"), side=FxSide.SELL),
            fx_at_trade=Decimal("900"),
        )

        assert movement.effective_fx_rate == Decimal("1100")

    def test_flat_field(self):
        assert make_movement("m1", fx_at_trade=Decimal("900")).effective_fx_rate == Decimal("900")

    def test_zero_snapshot_falls_through(self):
        """Should skip a non-positive snapshot rate."""
        movement = make_movement(
            "m1",
            fx=TradeFxSnapshot(kind=FxFamily.MEP, rate=Decimal("0"), side=FxSide.SELL),
            fx_at_trade=Decimal("900"),
        )

        assert movement.effective_fx_rate == Decimal("900")

    def test_no_rate(self):
        assert make_movement("m1").effective_fx_rate is None


# =============================================================================
# TIMESTAMP TESTS
# =============================================================================

class TestTimestampNormalization:
    """Tests for naive vs. aware datetimes."""

    def test_naive_timestamp_becomes_utc(self):
        movement = Movement(
            id="m1",
            timestamp=datetime(2024, 2, 1, 12, 0),
            type=MovementType.BUY,
            asset_class=MovementAssetClass.CEDEAR,
            account_id="iol",
        )

        assert movement.timestamp == datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)

    def test_aware_timestamp_is_kept(self):
        movement = make_movement("m1")

        assert movement.timestamp.tzinfo is timezone.utc

    def test_mixed_ledger_sorts(self):
        """Naive and aware timestamps in one ledger can be compared."""
        naive = Movement(
            id="m2",
            timestamp=datetime(2024, 1, 2, 9, 0),
            type=MovementType.BUY,
            asset_class=MovementAssetClass.CEDEAR,
            account_id="iol",
        )
        aware = make_movement("m1", day=1)

        ordered = sorted([naive, aware], key=lambda m: m.timestamp)

        assert [m.id for m in ordered] == ["m1", "m2"]

    def test_trade_fx_snapshot_timestamp(self):
        snapshot = TradeFxSnapshot(
            kind=FxFamily.MEP, rate=Decimal("1100"), side=FxSide.SELL, timestamp=datetime(2024, 1, 1),
        )

        assert snapshot.timestamp.tzinfo is timezone.utc

    def test_fixed_deposit_dates(self):
        position = FixedDepositPosition(
            id="pf1",
            movement_id="pf1",
            account_id="galicia",
            principal_ars=Decimal("100000"),
            term_days=30,
            start_at=datetime(2024, 6, 1),
            maturity_at=datetime(2024, 7, 1),
            expected_total_ars=Decimal("103000"),
        )

        assert position.start_at.tzinfo is timezone.utc
        assert position.maturity_at.tzinfo is timezone.utc
