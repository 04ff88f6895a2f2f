"""
Ferry Database Package.

SQLAlchemy models and session management for the content store.
"""

__version__ = "0.1.0"

from .models import Base

__all__ = ["Base"]
