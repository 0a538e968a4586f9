"""Common exception base classes.

Every exception raised on purpose by flowgraph derives from AppError so that
callers can catch library failures with a single handler.
"""

from __future__ import annotations

# =============================================================================
# Common base classes
# =============================================================================


class AppError(Exception):
    """Base exception for all flowgraph errors."""


__all__ = [
    "AppError",
]
