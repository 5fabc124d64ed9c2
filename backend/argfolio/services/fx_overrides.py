# backend/argfolio/services/fx_overrides.py
"""
In-memory FX override store.

Holds the user's manual FX choices keyed "account_id:item_kind" and
notifies subscribers on every change. Persistence (local storage, a
database) is the embedding application's concern; it can seed the store
with load() and persist from a subscriber.

Usage:
    store = InMemoryFxOverrideStore()
    unsubscribe = store.subscribe(lambda overrides: save(overrides))
    store.set(build_fx_override_key("iol", ItemKind.CASH_USD),
              FxOverride(family=FxFamily.MEP, side=FxSide.BUY))
    portfolio = PortfolioService().build(..., fx_overrides=store.snapshot())
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping

from argfolio.schemas.exchange_rates import FxOverride

logger = logging.getLogger(__name__)

OverridesCallback = Callable[[dict[str, FxOverride]], None]


class InMemoryFxOverrideStore:
    """FxOverrideStore backed by a dict."""

    def __init__(self, initial: Mapping[str, FxOverride] | None = None) -> None:
        self._overrides: dict[str, FxOverride] = dict(initial or {})
        self._subscribers: list[OverridesCallback] = []

    def get(self, key: str) -> FxOverride | None:
        return self._overrides.get(key)

    def set(self, key: str, override: FxOverride | None) -> None:
        """Set an override, or clear it when override is None."""
        if override is None:
            if self._overrides.pop(key, None) is None:
                return
        elif self._overrides.get(key) == override:
            return
        else:
            self._overrides[key] = override
        self._notify()

    def load(self, overrides: Mapping[str, FxOverride]) -> None:
        """Replace every override at once (e.g. from persisted state)."""
        self._overrides = dict(overrides)
        self._notify()

    def snapshot(self) -> dict[str, FxOverride]:
        """Copy of the current overrides, safe to hand to a build."""
        return dict(self._overrides)

    def subscribe(self, callback: OverridesCallback) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Function that removes the listener
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("FX override subscriber failed")
