# backend/tests/schemas/test_accounts.py
"""
Tests for account and position schemas.

This module tests:
- Account identifier validation
- Cash yield configuration
- Per-account settings normalization
- Position row identity
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from argfolio.models import AccountKind, AssetCategory, RubroId
from argfolio.schemas.accounts import Account, AccountSettings, CashYieldConfig
from tests.conftest import make_account, make_metrics


# =============================================================================
# ACCOUNT TESTS
# =============================================================================

class TestAccount:
    """Tests for Account."""

    def test_defaults(self):
        account = Account(id="x")

        assert account.kind is AccountKind.OTHER
        assert account.default_currency == "ARS"
        assert account.yield_enabled is False

    def test_id_is_trimmed(self):
        assert Account(id="  iol ").id == "iol"

    @pytest.mark.parametrize("bad_id", ["", "   ", "iol:usd"])
    def test_invalid_id(self, bad_id):
        """Should reject blank ids and ids that would break override keys."""
        with pytest.raises(ValidationError):
            Account(id=bad_id)

    def test_kind_helpers(self):
        assert make_account("iol", AccountKind.BROKER).is_broker
        assert make_account("bn", AccountKind.EXCHANGE).is_exchange

    def test_yield_enabled(self):
        assert make_account("mp", AccountKind.WALLET, tna="36.5").yield_enabled is True


# =============================================================================
# CASH YIELD TESTS
# =============================================================================

class TestCashYieldConfig:
    """Tests for CashYieldConfig."""

    def test_disabled_by_default(self):
        config = CashYieldConfig()

        assert config.enabled is False
        assert config.tna == Decimal("0")

    def test_negative_tna(self):
        with pytest.raises(ValidationError):
            CashYieldConfig(enabled=True, tna=Decimal("-3"))


# =============================================================================
# ACCOUNT SETTINGS TESTS
# =============================================================================

class TestAccountSettings:
    """Tests for AccountSettings."""

    def test_blank_display_name_is_none(self):
        assert AccountSettings(display_name_override="   ").display_name_override is None

    def test_display_name_is_trimmed(self):
        assert AccountSettings(display_name_override=" Mi MP ").display_name_override == "Mi MP"

    def test_rubro_override_from_string(self):
        assert AccountSettings(rubro_override="frascos").rubro_override is RubroId.FRASCOS

    def test_negative_tna_override(self):
        with pytest.raises(ValidationError):
            AccountSettings(tna_override=Decimal("-1"))


# =============================================================================
# POSITION ROW TESTS
# =============================================================================

class TestAssetRowMetrics:
    """Tests for position rows."""

    def test_instrument_key_prefers_instrument_id(self):
        assert make_metrics("SPY", AssetCategory.CEDEAR, "1", instrument_id="cedear-spy").instrument_key == "cedear-spy"

    def test_instrument_key_falls_back_to_symbol(self):
        assert make_metrics("SPY", AssetCategory.CEDEAR, "1", instrument_id=None).instrument_key == "SPY"

    def test_native_currency_is_normalized(self):
        assert make_metrics("BTC", AssetCategory.CRYPTO, "1", native_currency="usd").native_currency == "USD"
