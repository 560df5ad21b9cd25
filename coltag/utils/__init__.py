"""
coltag Utilities

Common utilities used across coltag modules.
"""

from .logging import setup_logging, get_logger

__all__ = [
    "setup_logging",
    "get_logger",
]
