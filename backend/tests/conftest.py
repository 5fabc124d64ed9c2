# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Test settings (ARGFOLIO_ENVIRONMENT=test)
- FX snapshot fixtures
- Sample data factories (movements, accounts, position rows)
"""

import os

os.environ.setdefault("ARGFOLIO_ENVIRONMENT", "test")

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from argfolio.config import Settings
from argfolio.models import (
    AccountKind,
    AssetCategory,
    MovementAssetClass,
    MovementType,
)
from argfolio.schemas.accounts import Account, AccountSettings, CashYieldConfig
from argfolio.schemas.exchange_rates import FxPair, FxRates
from argfolio.schemas.movements import Movement
from argfolio.schemas.positions import AssetRowMetrics, GroupedPositions
from argfolio.utils.context import clear_build_id


# Snapshot time shared by every default fixture
SNAPSHOT_TIME = datetime(2024, 6, 15, 15, 0, tzinfo=timezone.utc)


# =============================================================================
# FACTORIES
# =============================================================================

def make_movement(
        id: str,
        type: MovementType = MovementType.BUY,
        quantity: str | Decimal | None = "10",
        unit_price: str | Decimal | None = "100",
        day: int = 1,
        month: int = 1,
        account_id: str = "iol",
        instrument_id: str | None = "SPY",
        asset_class: MovementAssetClass = MovementAssetClass.CEDEAR,
        trade_currency: str = "ARS",
        **extra,
) -> Movement:
    """Build a movement dated 2024-month-day at noon UTC."""
    return Movement(
        id=id,
        timestamp=datetime(2024, month, day, 12, 0, tzinfo=timezone.utc),
        type=type,
        asset_class=asset_class,
        instrument_id=instrument_id,
        account_id=account_id,
        quantity=Decimal(quantity) if quantity is not None else None,
        unit_price=Decimal(unit_price) if unit_price is not None else None,
        trade_currency=trade_currency,
        **extra,
    )


def make_account(
        id: str,
        kind: AccountKind = AccountKind.BANK,
        name: str | None = None,
        tna: str | None = None,
) -> Account:
    """Build an account; a tna enables daily-compounded cash yield."""
    cash_yield = None
    if tna is not None:
        cash_yield = CashYieldConfig(enabled=True, tna=Decimal(tna))
    return Account(
        id=id,
        name=name if name is not None else id.upper(),
        kind=kind,
        cash_yield=cash_yield,
    )


def make_metrics(
        symbol: str,
        category: AssetCategory,
        quantity: str,
        current_price: str | None = None,
        avg_cost: str | None = None,
        native_currency: str = "ARS",
        **extra,
) -> AssetRowMetrics:
    """Build a position row; instrument_id defaults to the symbol."""
    extra.setdefault("instrument_id", symbol)
    return AssetRowMetrics(
        symbol=symbol,
        category=category,
        quantity=Decimal(quantity),
        current_price=Decimal(current_price) if current_price is not None else None,
        avg_cost=Decimal(avg_cost) if avg_cost is not None else None,
        native_currency=native_currency,
        **extra,
    )


def make_fx_rates(
        oficial: tuple[str | None, str | None] = ("1000", "1050"),
        mep: tuple[str | None, str | None] = ("1100", "1120"),
        ccl: tuple[str | None, str | None] = ("1150", "1170"),
        cripto: tuple[str | None, str | None] = ("1180", "1200"),
        updated_at: datetime = SNAPSHOT_TIME,
) -> FxRates:
    """Build an FX snapshot from (buy, sell) string pairs."""

    def pair(values: tuple[str | None, str | None]) -> FxPair:
        buy, sell = values
        return FxPair(
            buy=Decimal(buy) if buy is not None else None,
            sell=Decimal(sell) if sell is not None else None,
        )

    return FxRates(
        oficial=pair(oficial),
        mep=pair(mep),
        ccl=pair(ccl),
        cripto=pair(cripto),
        updated_at=updated_at,
    )


def group(account_id: str, *metrics: AssetRowMetrics, name: str = "") -> GroupedPositions:
    """Wrap position rows of one account."""
    return GroupedPositions(account_id=account_id, account_name=name, metrics=list(metrics))


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def _reset_build_id():
    """Never leak a build ID between tests."""
    clear_build_id()
    yield
    clear_build_id()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults, isolated from the environment's .env."""
    return Settings(environment="test")


@pytest.fixture
def fx_rates() -> FxRates:
    """
    Default FX snapshot.

    Oficial 1000/1050, MEP 1100/1120, CCL 1150/1170, Cripto 1180/1200
    (buy/sell, ARS per USD).
    """
    return make_fx_rates()


@pytest.fixture
def accounts() -> list[Account]:
    """A bank, a broker, an exchange and a remunerated wallet."""
    return [
        make_account("galicia", AccountKind.BANK, name="Galicia"),
        make_account("iol", AccountKind.BROKER, name="IOL"),
        make_account("binance", AccountKind.EXCHANGE, name="Binance"),
        make_account("mp", AccountKind.WALLET, name="Mercado Pago", tna="36.5"),
    ]


@pytest.fixture
def frasco_settings() -> dict[str, AccountSettings]:
    """Mercado Pago forced into the frascos rubro."""
    return {"mp": AccountSettings(rubro_override="frascos")}
