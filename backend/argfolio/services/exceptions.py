# backend/argfolio/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO transport
knowledge. The aggregation pass itself never raises for data gaps (missing
prices or FX rates degrade to flagged zero values); these types cover
invalid caller input and explicit "I need a rate" requests.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   └── AllocationError
    │       ├── InvalidSaleQuantityError
    │       ├── LotNotFoundError
    │       ├── LotOverAllocationError
    │       ├── EmptyManualSelectionError
    │       └── ManualAllocationMismatchError
    └── FXRateError
        ├── FXRateNotFoundError
        └── FXConversionError

Allocation errors are usually RETURNED inside SaleAllocation.error rather
than raised, so a caller's validation layer can inspect them before
committing a sale. SaleAllocation.raise_for_error() raises them on demand.
"""

from decimal import Decimal


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when programmatic input validation fails.

    Schema-level validation of inputs is handled by Pydantic; this covers
    checks that need engine state (e.g. which lots are open).

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class AllocationError(ValidationError):
    """Base class for invalid sale allocation requests."""


class InvalidSaleQuantityError(AllocationError):
    """
    Raised when a sale quantity is negative.

    Attributes:
        quantity: The offending quantity
        lot_id: The lot it was requested against (manual selections only)
    """

    def __init__(self, quantity: Decimal, lot_id: str | None = None) -> None:
        self.quantity = quantity
        self.lot_id = lot_id
        target = f" for lot {lot_id}" if lot_id else ""
        super().__init__(
            f"Sale quantity cannot be negative{target}: {quantity}",
            field="quantity",
        )


class LotNotFoundError(AllocationError):
    """Raised when a manual selection references a lot that is not open."""

    def __init__(self, lot_id: str) -> None:
        self.lot_id = lot_id
        super().__init__(f"Lot {lot_id} is not open", field="lot_id")


class LotOverAllocationError(AllocationError):
    """
    Raised when a manual selection takes more than a lot holds.

    Attributes:
        lot_id: Lot identifier
        requested: Quantity requested from the lot
        available: Quantity the lot still holds
    """

    def __init__(self, lot_id: str, requested: Decimal, available: Decimal) -> None:
        self.lot_id = lot_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Lot {lot_id}: requested {requested}, only {available} available",
            field="quantity",
        )


class EmptyManualSelectionError(AllocationError):
    """Raised when a manual selection adds up to zero for a nonzero sale."""

    def __init__(self, desired_quantity: Decimal) -> None:
        self.desired_quantity = desired_quantity
        super().__init__(
            f"Manual selection is empty but {desired_quantity} units were requested",
            field="manual_allocations",
        )


class ManualAllocationMismatchError(AllocationError):
    """Raised when a manual selection does not add up to the requested quantity."""

    def __init__(self, desired_quantity: Decimal, selected_quantity: Decimal) -> None:
        self.desired_quantity = desired_quantity
        self.selected_quantity = selected_quantity
        super().__init__(
            f"Manual selection totals {selected_quantity}, expected {desired_quantity}",
            field="manual_allocations",
        )


# =============================================================================
# FX RATE ERRORS
# =============================================================================


class FXRateError(ServiceError):
    """Base exception for FX rate related errors."""


class FXRateNotFoundError(FXRateError):
    """
    Raised when a positive rate is required but the snapshot has none.

    Attributes:
        family: FX family requested (e.g. "MEP")
        side: Quote side requested ("buy" or "sell")
    """

    def __init__(self, family: str, side: str) -> None:
        self.family = family
        self.side = side
        super().__init__(f"No positive {family} {side} rate available")


class FXConversionError(FXRateError):
    """
    Raised when a conversion cannot be performed.

    Attributes:
        reason: Why the conversion failed
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"FX conversion failed: {reason}")


__all__ = [
    "ServiceError",
    "ValidationError",
    "AllocationError",
    "InvalidSaleQuantityError",
    "LotNotFoundError",
    "LotOverAllocationError",
    "EmptyManualSelectionError",
    "ManualAllocationMismatchError",
    "FXRateError",
    "FXRateNotFoundError",
    "FXConversionError",
]
