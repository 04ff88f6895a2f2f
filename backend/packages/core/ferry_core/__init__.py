"""
Ferry Core Package.

This package contains the import and translation business logic,
configuration, and shared schemas of Ferry.
"""

__version__ = "0.1.0"

from .logging_config import get_logger, init_logging

__all__ = ["init_logging", "get_logger"]
