# backend/argfolio/services/__init__.py
"""
Service layer for portfolio aggregation.

Services:
- Have NO knowledge of I/O (no HTTP, no database, no clock)
- Raise domain-specific exceptions
- Receive every input as an argument
- Are easily testable via dependency injection

Usage:
    from argfolio.services import InMemoryFxOverrideStore
    from argfolio.services import AllocationError, FXRateNotFoundError

Architecture:
    services/
    ├── __init__.py          # This file - main exports
    ├── exceptions.py        # Domain exceptions
    ├── constants.py         # Business constants
    ├── protocols.py         # DiagnosticsSink, FxOverrideStore
    ├── fx_overrides.py      # In-memory FX override store
    └── valuation/           # Aggregation engine (PortfolioService)
"""

from argfolio.services.exceptions import (
    AllocationError,
    EmptyManualSelectionError,
    FXConversionError,
    FXRateError,
    FXRateNotFoundError,
    InvalidSaleQuantityError,
    LotNotFoundError,
    LotOverAllocationError,
    ManualAllocationMismatchError,
    ServiceError,
    ValidationError,
)
from argfolio.services.fx_overrides import InMemoryFxOverrideStore
from argfolio.services.protocols import DiagnosticsSink, FxOverrideStore

__all__ = [
    # Services
    "InMemoryFxOverrideStore",
    # Protocols
    "DiagnosticsSink",
    "FxOverrideStore",
    # Exceptions
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
