# backend/argfolio/__init__.py
"""
Argfolio - multi-currency portfolio aggregation for Argentine investors.

Turns per-account positions, a movement ledger and an FX snapshot into a
rubro -> provider -> item tree with KPIs, currency exposure and detail
overlays. See argfolio.services.valuation for the entry point.
"""

__version__ = "0.1.0"
