# backend/argfolio/utils/context.py
"""
Build context management for the portfolio engine.

Each call to PortfolioService.build() runs under its own build ID so that
every log line emitted while the portfolio is being assembled can be
traced back to a single build, even when several builds overlap.

Uses Python's contextvars, which keeps the value local to the current
thread or async task.

Usage:
    from argfolio.utils.context import get_build_id, set_build_id

    set_build_id("abc-123")
    build_id = get_build_id()  # Returns "abc-123"
"""

from contextvars import ContextVar, Token

# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

# Build ID for log tracing
_build_id_var: ContextVar[str | None] = ContextVar("build_id", default=None)


# =============================================================================
# BUILD ID
# =============================================================================

def get_build_id() -> str | None:
    """
    Get the current build ID.

    Returns:
        The build ID for the running build, or None outside a build.
    """
    return _build_id_var.get()


def set_build_id(build_id: str) -> Token:
    """
    Set the build ID for the current context.

    Args:
        build_id: Unique identifier for this build

    Returns:
        Token that restores the previous value via reset_build_id()
    """
    return _build_id_var.set(build_id)


def reset_build_id(token: Token) -> None:
    """Restore the build ID that was active before set_build_id()."""
    _build_id_var.reset(token)


def clear_build_id() -> None:
    """Clear the build ID."""
    _build_id_var.set(None)
