# backend/argfolio/services/valuation/allocation.py
"""
Sale costing against open lots.

Supported methods:
- FIFO: lots in the order given (FifoCalculator returns them oldest first)
- LIFO: lots in reverse order
- CHEAPEST: lowest unit cost first (ties broken by trade date)
- AVERAGE: PPP, the sale is spread proportionally over every open lot,
  so its cost equals quantity × weighted average unit cost
- MANUAL: the caller picks quantities per lot

Realized P&L:
    proceeds = quantity_sold × price
    realized_pnl = proceeds - cost
    realized_pnl_pct = realized_pnl ÷ cost × 100  (None when cost is 0)

Invalid requests are returned as SaleAllocation.error, never raised, so
the aggregation pass stays total. A manual sale with no selection yet is
reported as pending, which is distinct from an invalid selection.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping, Sequence

from argfolio.models import CostingMethod
from argfolio.services.constants import HUNDRED, ZERO
from argfolio.services.exceptions import (
    AllocationError,
    EmptyManualSelectionError,
    InvalidSaleQuantityError,
    LotNotFoundError,
    LotOverAllocationError,
    ManualAllocationMismatchError,
)
from argfolio.services.valuation.types import AllocationEntry, Lot, SaleAllocation

logger = logging.getLogger(__name__)


class LotAllocator:
    """Selects which lots a sale consumes and computes its realized P&L."""

    def allocate(
            self,
            lots: Sequence[Lot],
            desired_qty: Decimal,
            price: Decimal,
            method: CostingMethod,
            manual_allocations: Mapping[str, Decimal] | None = None,
    ) -> SaleAllocation:
        """
        Cost a sale.

        Args:
            lots: Open lots, oldest first
            desired_qty: Units to sell. For MANUAL, 0 means "whatever the
                         selection adds up to"
            price: Sale price per unit, native currency
            method: Costing method
            manual_allocations: lot_id -> quantity (MANUAL only)

        Returns:
            SaleAllocation; check .ok (or call .raise_for_error()) before
            recording the sale
        """
        if desired_qty < 0:
            return self._failed(method, InvalidSaleQuantityError(desired_qty))

        if method is CostingMethod.MANUAL:
            return self._allocate_manual(lots, desired_qty, price, manual_allocations)

        warnings: list[str] = []
        available = sum((lot.quantity for lot in lots), ZERO)
        quantity = desired_qty
        if quantity > available:
            message = f"Requested {desired_qty} units but only {available} are open; clamping"
            logger.warning(message)
            warnings.append(message)
            quantity = available

        if quantity == 0:
            return SaleAllocation(method=method, warnings=warnings)

        if method is CostingMethod.AVERAGE:
            entries = self._take_proportionally(lots, quantity, available)
        else:
            entries = self._take_in_order(self._order_lots(lots, method), quantity)

        return self._summarize(method, entries, price, warnings)

    # -------------------------------------------------------------------------
    # Ordering strategies
    # -------------------------------------------------------------------------

    @staticmethod
    def _order_lots(lots: Sequence[Lot], method: CostingMethod) -> list[Lot]:
        if method is CostingMethod.LIFO:
            return list(reversed(lots))
        if method is CostingMethod.CHEAPEST:
            return sorted(lots, key=lambda lot: (lot.unit_cost_native, lot.trade_date))
        return list(lots)

    @staticmethod
    def _take_in_order(lots: list[Lot], quantity: Decimal) -> list[AllocationEntry]:
        entries: list[AllocationEntry] = []
        remaining = quantity
        for lot in lots:
            if remaining <= 0:
                break
            take = min(lot.quantity, remaining)
            if take <= 0:
                continue
            entries.append(AllocationEntry(
                lot_id=lot.id,
                quantity=take,
                unit_cost_native=lot.unit_cost_native,
                cost_native=take * lot.unit_cost_native,
            ))
            remaining -= take
        return entries

    @staticmethod
    def _take_proportionally(
            lots: Sequence[Lot],
            quantity: Decimal,
            available: Decimal,
    ) -> list[AllocationEntry]:
        """PPP: each lot gives up the same fraction of its units."""
        open_lots = [lot for lot in lots if lot.quantity > 0]
        entries: list[AllocationEntry] = []
        remaining = quantity

        for index, lot in enumerate(open_lots):
            if index == len(open_lots) - 1:
                # Last lot absorbs the division remainder so quantities sum exactly
                take = min(remaining, lot.quantity)
            else:
                take = min(quantity * lot.quantity / available, lot.quantity)
            if take <= 0:
                continue
            entries.append(AllocationEntry(
                lot_id=lot.id,
                quantity=take,
                unit_cost_native=lot.unit_cost_native,
                cost_native=take * lot.unit_cost_native,
            ))
            remaining -= take

        return entries

    # -------------------------------------------------------------------------
    # Manual selection
    # -------------------------------------------------------------------------

    def _allocate_manual(
            self,
            lots: Sequence[Lot],
            desired_qty: Decimal,
            price: Decimal,
            manual_allocations: Mapping[str, Decimal] | None,
    ) -> SaleAllocation:
        method = CostingMethod.MANUAL

        if not manual_allocations:
            return SaleAllocation(method=method, pending=True)

        lots_by_id = {lot.id: lot for lot in lots}
        entries: list[AllocationEntry] = []

        for lot_id, quantity in manual_allocations.items():
            if quantity < 0:
                return self._failed(method, InvalidSaleQuantityError(quantity, lot_id=lot_id))
            lot = lots_by_id.get(lot_id)
            if lot is None:
                return self._failed(method, LotNotFoundError(lot_id))
            if quantity > lot.quantity:
                return self._failed(
                    method,
                    LotOverAllocationError(lot_id, requested=quantity, available=lot.quantity),
                )
            if quantity == 0:
                continue
            entries.append(AllocationEntry(
                lot_id=lot_id,
                quantity=quantity,
                unit_cost_native=lot.unit_cost_native,
                cost_native=quantity * lot.unit_cost_native,
            ))

        selected = sum((entry.quantity for entry in entries), ZERO)
        if selected == 0:
            if desired_qty > 0:
                return self._failed(method, EmptyManualSelectionError(desired_qty))
            return SaleAllocation(method=method, pending=True)
        if desired_qty > 0 and selected != desired_qty:
            return self._failed(method, ManualAllocationMismatchError(desired_qty, selected))

        return self._summarize(method, entries, price, [])

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _summarize(
            method: CostingMethod,
            entries: list[AllocationEntry],
            price: Decimal,
            warnings: list[str],
    ) -> SaleAllocation:
        total_qty = sum((entry.quantity for entry in entries), ZERO)
        total_cost = sum((entry.cost_native for entry in entries), ZERO)
        proceeds = total_qty * price
        pnl = proceeds - total_cost

        return SaleAllocation(
            method=method,
            allocations=entries,
            total_qty_sold=total_qty,
            total_cost_native=total_cost,
            total_proceeds_native=proceeds,
            realized_pnl_native=pnl,
            realized_pnl_pct=(pnl / total_cost * HUNDRED) if total_cost > 0 else None,
            warnings=warnings,
        )

    @staticmethod
    def _failed(method: CostingMethod, error: AllocationError) -> SaleAllocation:
        logger.debug(f"Rejected {method.value} allocation: {error}")
        return SaleAllocation(method=method, error=error)
