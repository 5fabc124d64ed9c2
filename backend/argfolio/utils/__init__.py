# backend/argfolio/utils/__init__.py
"""
Utility modules for the portfolio engine.

This package contains cross-cutting utilities used throughout the engine:
- logging: Logging configuration and setup with build ID support
- context: Build context management (build IDs)
- date_utils: Calendar-day helpers
- fx_conversion: ARS/USD arithmetic with rate guards

Usage:
    from argfolio.utils import setup_logging
    from argfolio.utils import get_build_id
    from argfolio.utils.date_utils import days_between
"""

from argfolio.utils.context import (
    get_build_id,
    set_build_id,
    reset_build_id,
    clear_build_id,
)
from argfolio.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_build_id",
    "set_build_id",
    "reset_build_id",
    "clear_build_id",
]
