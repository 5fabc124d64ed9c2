# backend/argfolio/services/valuation/fx_resolver.py
"""
FX family/side resolution.

Family selection (no override):
    Cash (CASH_ARS, CASH_USD) follows the account:
        EXCHANGE -> Cripto, BROKER -> MEP, anything else -> Oficial
    Everything else follows the asset category:
        CEDEAR -> MEP, CRYPTO/STABLE -> Cripto, FCI/PF/OTHER -> Oficial

Side selection:
    USD -> ARS uses the SELL quote, ARS -> USD uses the BUY quote. The
    asymmetry mirrors the spread a holder faces and must not be averaged.

Rate fallback chain (first positive quote wins):
    (family, side) -> (family, other side) -> (Oficial, side)
    -> (Oficial, other side) -> None

Manual override (keyed "account_id:item_kind" by the caller):
    Replaces the automatic choice only if its own quote is positive;
    otherwise the automatic result is used.
"""

from __future__ import annotations

import logging

from argfolio.models import (
    AccountKind,
    AssetCategory,
    ConversionDirection,
    FxFamily,
    FxSide,
    FxSource,
)
from argfolio.schemas.accounts import Account
from argfolio.schemas.exchange_rates import FxOverride, FxRates
from argfolio.services.valuation.types import FxResolution

logger = logging.getLogger(__name__)


# Family used for cash balances, by account kind
CASH_FAMILY_BY_ACCOUNT_KIND: dict[AccountKind, FxFamily] = {
    AccountKind.EXCHANGE: FxFamily.CRIPTO,
    AccountKind.BROKER: FxFamily.MEP,
    AccountKind.WALLET: FxFamily.OFICIAL,
    AccountKind.BANK: FxFamily.OFICIAL,
    AccountKind.OTHER: FxFamily.OFICIAL,
}

# Family used for non-cash assets, by category
FAMILY_BY_CATEGORY: dict[AssetCategory, FxFamily] = {
    AssetCategory.CEDEAR: FxFamily.MEP,
    AssetCategory.CRYPTO: FxFamily.CRIPTO,
    AssetCategory.STABLE: FxFamily.CRIPTO,
    AssetCategory.FCI: FxFamily.OFICIAL,
    AssetCategory.PF: FxFamily.OFICIAL,
    AssetCategory.OTHER: FxFamily.OFICIAL,
}

SIDE_BY_DIRECTION: dict[ConversionDirection, FxSide] = {
    ConversionDirection.USD_TO_ARS: FxSide.SELL,
    ConversionDirection.ARS_TO_USD: FxSide.BUY,
}

GENERAL_DEFAULT_FAMILY = FxFamily.OFICIAL


class FxResolver:
    """
    Resolves the FX rate to use for one conversion.

    Pure over the FxRates snapshot it is created with.
    """

    def __init__(self, fx_rates: FxRates) -> None:
        self.fx_rates = fx_rates

    def resolve(
            self,
            account: Account | None,
            category: AssetCategory,
            direction: ConversionDirection,
            override: FxOverride | None = None,
    ) -> FxResolution:
        """
        Resolve family, side and rate.

        Args:
            account: Holding account (None for unknown accounts)
            category: Asset category of the position
            direction: Which way the amount is converted
            override: Manual choice for this (account, item kind), if any

        Returns:
            FxResolution; rate is None when no positive quote exists
        """
        if override is not None:
            rate = self.fx_rates.quote(override.family, override.side)
            if rate is not None:
                return FxResolution(
                    family=override.family,
                    side=override.side,
                    rate=rate,
                    source=FxSource.OVERRIDE,
                )
            logger.debug(
                f"Override {override.family.value}/{override.side.value} has no rate, "
                f"using automatic resolution"
            )

        family = self.default_family(account, category)
        side = SIDE_BY_DIRECTION[direction]
        return self._with_fallback(family, side)

    @staticmethod
    def default_family(account: Account | None, category: AssetCategory) -> FxFamily:
        """Automatic family for a position."""
        if category.is_cash:
            kind = account.kind if account is not None else AccountKind.OTHER
            return CASH_FAMILY_BY_ACCOUNT_KIND[kind]
        # Uncategorized tokens at an exchange are grouped under Crypto
        if category is AssetCategory.OTHER and account is not None and account.kind is AccountKind.EXCHANGE:
            return FxFamily.CRIPTO
        return FAMILY_BY_CATEGORY[category]

    def _with_fallback(self, family: FxFamily, side: FxSide) -> FxResolution:
        chain = [
            (family, side),
            (family, side.opposite),
            (GENERAL_DEFAULT_FAMILY, side),
            (GENERAL_DEFAULT_FAMILY, side.opposite),
        ]
        for index, (candidate_family, candidate_side) in enumerate(chain):
            rate = self.fx_rates.quote(candidate_family, candidate_side)
            if rate is not None:
                if index > 0:
                    logger.debug(
                        f"No {family.value} {side.value} rate, fell back to "
                        f"{candidate_family.value} {candidate_side.value}"
                    )
                return FxResolution(
                    family=candidate_family,
                    side=candidate_side,
                    rate=rate,
                    fell_back=index > 0,
                )

        logger.debug(f"No {family.value} rate available on either side, nor a general default")
        return FxResolution(family=family, side=side, rate=None)
