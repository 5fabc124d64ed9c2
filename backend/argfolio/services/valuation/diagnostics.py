# backend/argfolio/services/valuation/diagnostics.py
"""
Diagnostics plumbing for portfolio builds.

Builders report anomalies (classification conflicts, unclassified rows,
totals that do not reconcile, missing rates) as Diagnostic records. The
collector keeps them for PortfolioV2.diagnostics and forwards each one to
the caller's sink.
"""

from __future__ import annotations

import logging
from typing import Any

from argfolio.models import DiagnosticCode
from argfolio.services.protocols import DiagnosticsSink
from argfolio.services.valuation.types import Diagnostic

logger = logging.getLogger(__name__)


def log_diagnostic(diagnostic: Diagnostic) -> None:
    """Default sink: log at DEBUG."""
    logger.debug(
        f"[{diagnostic.code.value}] {diagnostic.message}",
        extra={"diagnostic": diagnostic.context},
    )


class DiagnosticsCollector:
    """Collects diagnostics of one build and forwards them to a sink."""

    def __init__(self, sink: DiagnosticsSink | None = None) -> None:
        self.sink = sink or log_diagnostic
        self.diagnostics: list[Diagnostic] = []

    def __call__(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        try:
            self.sink(diagnostic)
        except Exception:
            logger.exception(f"Diagnostics sink failed on {diagnostic.code.value}")

    def emit(self, code: DiagnosticCode, message: str, **context: Any) -> None:
        """Build and record a Diagnostic."""
        self(Diagnostic(code=code, message=message, context=context))
