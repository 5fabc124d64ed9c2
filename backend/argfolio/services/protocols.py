# backend/argfolio/services/protocols.py
"""
Protocol interfaces for engine collaborators.

Using typing.Protocol enables structural subtyping:
- Existing classes satisfy protocols without modification
- Test doubles work without explicit inheritance
- Clear documentation of required interfaces
"""

from __future__ import annotations

from typing import Callable, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from argfolio.schemas.exchange_rates import FxOverride
    from argfolio.services.valuation.types import Diagnostic


class DiagnosticsSink(Protocol):
    """
    Receives structured anomaly reports from a portfolio build.

    Invoked unconditionally; displaying or discarding them is up to the
    caller. Exceptions raised by a sink are logged and never change the
    build result.
    """

    def __call__(self, diagnostic: Diagnostic) -> None:
        ...


class FxOverrideStore(Protocol):
    """
    Key-value store of manual FX overrides keyed "account_id:item_kind".

    The engine never reads a store directly: callers pass snapshot()
    as the fx_overrides argument of PortfolioService.build().
    """

    def get(self, key: str) -> FxOverride | None:
        ...

    def set(self, key: str, override: FxOverride | None) -> None:
        ...

    def subscribe(
        self,
        callback: Callable[[dict[str, FxOverride]], None],
    ) -> Callable[[], None]:
        ...

    def snapshot(self) -> dict[str, FxOverride]:
        ...
