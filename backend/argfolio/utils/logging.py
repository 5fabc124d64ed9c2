# backend/argfolio/utils/logging.py
"""
Logging configuration for applications embedding the portfolio engine.

The engine itself only ever calls ``logging.getLogger(__name__)``; this module
is for the host process that wants readable or machine-parseable output.

Every record passing through the configured handler is stamped with the ID of
the build that produced it, so all lines from one ``PortfolioService.build()``
call can be grouped together.

Usage:
    from argfolio.utils import setup_logging

    setup_logging()                                  # from ARGFOLIO_LOG_* env
    setup_logging(level="DEBUG", log_format="json")

What the engine logs at each level:
    DEBUG   - FX fallbacks, skipped rows, individual diagnostics
    INFO    - One summary line per build (rubros, totals)
    WARNING - Oversold ledgers, clamped sales, inconsistent totals
    ERROR   - A diagnostics sink raised
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from argfolio.config import settings
from argfolio.utils.context import get_build_id

# =============================================================================
# CONSTANTS
# =============================================================================

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(build_id)s | %(name)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_BUILD_ID = "no-build-id"

# Attributes every LogRecord carries; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "build_id"}


# =============================================================================
# FILTER & FORMATTER
# =============================================================================

class BuildIdFilter(logging.Filter):
    """Stamps ``record.build_id`` so format strings can use ``%(build_id)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.build_id = get_build_id() or NO_BUILD_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    Keys: timestamp (record creation time, UTC), level, logger, build_id,
    message, plus ``exception`` when exc_info is set and ``extra`` holding
    whatever the caller passed via ``extra=``. Values JSON cannot encode
    (Decimals, dataclasses) are written with ``str()``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "build_id": getattr(record, "build_id", NO_BUILD_ID),
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


# =============================================================================
# SETUP
# =============================================================================

def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """
    Replace the root logger's handlers with a single stdout handler.

    Args:
        level: Level name; defaults to ``settings.log_level``.
        log_format: ``"json"`` or ``"text"``; defaults to ``settings.log_format``.

    Raises:
        ValueError: Unknown level name.
    """
    level_name = level or settings.log_level
    numeric_level = _get_log_level(level_name)
    format_type = (log_format or settings.log_format).lower()

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(_build_handler(format_type))

    logging.getLogger(__name__).debug(
        f"Logging configured: level={level_name}, format={format_type}"
    )


def _build_handler(format_type: str) -> logging.Handler:
    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(BuildIdFilter())
    return handler


def _get_log_level(level_name: str) -> int:
    """Map a level name (case-insensitive) to its numeric value."""
    known = logging.getLevelNamesMapping()
    key = level_name.upper().strip()
    if key not in known:
        raise ValueError(
            f"Invalid log level: '{level_name}'. Valid levels are: {', '.join(sorted(known))}"
        )
    return known[key]
