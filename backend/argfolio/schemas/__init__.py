# backend/argfolio/schemas/__init__.py
"""
Pydantic schemas for engine inputs and outputs.

Inputs:
    accounts.py         Account, AccountSettings, CashYieldConfig
    exchange_rates.py   FxPair, FxRates, FxOverride
    fixed_deposits.py   FixedDepositPosition, FixedDepositData
    movements.py        Movement, FeeSpec, TradeFxSnapshot
    positions.py        AssetRowMetrics, GroupedPositions

Outputs:
    portfolio.py        PortfolioV2Response and nested response models
"""

from argfolio.schemas.accounts import Account, AccountSettings, CashYieldConfig
from argfolio.schemas.exchange_rates import (
    FxOverride,
    FxPair,
    FxRates,
    build_fx_override_key,
)
from argfolio.schemas.fixed_deposits import FixedDepositData, FixedDepositPosition
from argfolio.schemas.movements import FeeSpec, Movement, TradeFxSnapshot
from argfolio.schemas.portfolio import PortfolioV2Response
from argfolio.schemas.positions import AssetRowMetrics, GroupedPositions

__all__ = [
    "Account",
    "AccountSettings",
    "AssetRowMetrics",
    "CashYieldConfig",
    "FeeSpec",
    "FixedDepositData",
    "FixedDepositPosition",
    "FxOverride",
    "FxPair",
    "FxRates",
    "GroupedPositions",
    "Movement",
    "PortfolioV2Response",
    "TradeFxSnapshot",
    "build_fx_override_key",
]
