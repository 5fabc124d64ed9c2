# backend/argfolio/services/valuation/fifo.py
"""
FIFO lot calculator.

Replays the movements of ONE (account, instrument) pair and returns the
lots that remain open.

Cost calculation (additive movements: BUY, DEPOSIT, TRANSFER_IN):
    unit_cost_native = net_trade_amount ÷ quantity   (fees included)

Consumption (subtractive movements: SELL, WITHDRAW, TRANSFER_OUT):
    Oldest lot first. A sale that spans several lots consumes them in
    date order; a lot that reaches zero is removed.

Overselling (selling more than is open) is a data-consistency problem in
the ledger. The engine clamps at zero and records a warning instead of
raising, so one bad movement cannot abort a portfolio build.

Usage:
    result = FifoCalculator().calculate(movements)
    result.lots            # open lots, oldest first
    result.total_quantity  # == sum(lot.quantity)
"""

from __future__ import annotations

import dataclasses
import logging
from collections import deque
from decimal import Decimal
from typing import Iterable

from argfolio.schemas.movements import Movement
from argfolio.services.valuation.types import FifoResult, Lot

logger = logging.getLogger(__name__)


class FifoCalculator:
    """
    Builds open inventory lots with strict FIFO consumption.

    Stateless: every call replays the full history it is given.
    """

    def calculate(self, movements: Iterable[Movement]) -> FifoResult:
        """
        Build open lots from movements of one (account, instrument) pair.

        Args:
            movements: Movements in any order. Sorting is stable, so
                       movements sharing a timestamp keep their input order.

        Returns:
            FifoResult with lots sorted by acquisition date ascending
        """
        ordered = sorted(movements, key=lambda m: m.timestamp)
        open_lots: deque[Lot] = deque()
        warnings: list[str] = []

        for movement in ordered:
            quantity = movement.quantity
            if quantity is None or quantity <= 0:
                if movement.is_additive or movement.is_subtractive:
                    logger.debug(f"Movement {movement.id} has no positive quantity, skipping")
                continue

            if movement.is_additive:
                open_lots.append(self._open_lot(movement, quantity))
            elif movement.is_subtractive:
                unmatched = self._consume(open_lots, quantity)
                if unmatched > 0:
                    message = (
                        f"Movement {movement.id} sells {quantity} but only "
                        f"{quantity - unmatched} were open; {unmatched} ignored"
                    )
                    logger.warning(message)
                    warnings.append(message)

        lots = list(open_lots)
        total_quantity = sum((lot.quantity for lot in lots), Decimal("0"))
        total_cost = sum((lot.total_cost_native for lot in lots), Decimal("0"))

        return FifoResult(
            lots=lots,
            total_quantity=total_quantity,
            total_cost_native=total_cost,
            warnings=warnings,
        )

    @staticmethod
    def _open_lot(movement: Movement, quantity: Decimal) -> Lot:
        """Create the lot opened by an additive movement."""
        fx_rate = movement.effective_fx_rate
        return Lot(
            id=movement.id,
            trade_date=movement.timestamp,
            quantity=quantity,
            original_quantity=quantity,
            unit_cost_native=movement.net_trade_amount / quantity,
            currency=movement.trade_currency,
            fx_at_trade=fx_rate,
            fx_missing=fx_rate is None,
        )

    @staticmethod
    def _consume(open_lots: deque[Lot], quantity: Decimal) -> Decimal:
        """
        Consume quantity from the oldest lots (mutates the deque).

        Returns:
            Quantity that could not be matched against any open lot
        """
        remaining = quantity
        while remaining > 0 and open_lots:
            oldest = open_lots[0]
            if oldest.quantity <= remaining:
                remaining -= oldest.quantity
                open_lots.popleft()
            else:
                open_lots[0] = dataclasses.replace(oldest, quantity=oldest.quantity - remaining)
                remaining = Decimal("0")
        return remaining
