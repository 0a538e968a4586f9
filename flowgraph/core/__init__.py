"""Core configuration and utilities.

This package contains core functionality including:
- Configuration management (config.py)
- Logging setup (logging.py)
- Base exception class (exceptions.py)
"""

from flowgraph.core.config import settings
from flowgraph.core.exceptions import AppError

__all__ = [
    "AppError",
    "settings",
]
