# backend/argfolio/services/valuation/__init__.py
"""
Portfolio Aggregation Package.

This package turns positions, movements and an FX snapshot into the
aggregated portfolio:
- Rubro -> provider -> item tree (build)
- KPIs and currency exposure
- Detail overlays (lots, wallet yield, plazos)
- Sale previews against open lots (preview_sale)

Usage:
    from argfolio.services.valuation import PortfolioService

    service = PortfolioService()

    portfolio = service.build(
        grouped_positions=grouped,
        accounts=accounts,
        fx_rates=fx_rates,
        movements=movements,
    )

    allocation = service.preview_sale(
        movements, Decimal("5"), Decimal("1200"), method=CostingMethod.LIFO
    )

Architecture:
    valuation/
    ├── __init__.py          # This file - package exports
    ├── types.py             # Internal data classes
    ├── fifo.py              # FIFO lot engine
    ├── allocation.py        # Sale costing (FIFO/LIFO/PPP/cheapest/manual)
    ├── fx_resolver.py       # FX family/side selection with fallback
    ├── rubros.py            # Item / provider / rubro builder
    ├── kpis.py              # Totals and exposure
    ├── details.py           # Detail overlays
    ├── yield_accrual.py     # Remunerated-account interest
    ├── fixed_deposits.py    # Plazo fijo derivation
    ├── diagnostics.py       # Diagnostics collector
    └── service.py           # PortfolioService (orchestrator)

Data Flow:
    Movements → FifoCalculator → Lots → LotAllocator → SaleAllocation
    Positions + FxRates → RubroBuilder → Rubros
    Rubros → KPICalculator → PortfolioKPIs
    Rubros + Movements → DetailBuilder → detail maps
    All Above → PortfolioV2
"""

# Calculators (for testing / direct usage)
from argfolio.services.valuation.allocation import LotAllocator
from argfolio.services.valuation.details import DetailBuilder
from argfolio.services.valuation.diagnostics import DiagnosticsCollector
from argfolio.services.valuation.fifo import FifoCalculator
from argfolio.services.valuation.fixed_deposits import derive_fixed_deposits
from argfolio.services.valuation.fx_resolver import FxResolver
from argfolio.services.valuation.kpis import KPICalculator
from argfolio.services.valuation.rubros import RUBRO_RULES, RubroBuilder
# Main service
from argfolio.services.valuation.service import PortfolioService
# Internal types
from argfolio.services.valuation.types import (
    Diagnostic,
    FifoResult,
    FxResolution,
    InstrumentDetail,
    Item,
    Lot,
    PortfolioKPIs,
    PortfolioV2,
    Provider,
    Rubro,
    SaleAllocation,
)
from argfolio.services.valuation.yield_accrual import (
    compute_tea,
    compute_yield_metrics,
    generate_accrual_movements,
)

__all__ = [
    # Main service
    "PortfolioService",

    # Data types
    "Diagnostic",
    "FifoResult",
    "FxResolution",
    "InstrumentDetail",
    "Item",
    "Lot",
    "PortfolioKPIs",
    "PortfolioV2",
    "Provider",
    "Rubro",
    "SaleAllocation",

    # Calculators
    "DetailBuilder",
    "DiagnosticsCollector",
    "FifoCalculator",
    "FxResolver",
    "KPICalculator",
    "LotAllocator",
    "RUBRO_RULES",
    "RubroBuilder",

    # Functions
    "compute_tea",
    "compute_yield_metrics",
    "derive_fixed_deposits",
    "generate_accrual_movements",
]
