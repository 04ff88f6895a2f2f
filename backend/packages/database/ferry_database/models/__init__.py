"""
Database models package.

This module exports all SQLAlchemy models for the Ferry store.
"""

from .base import AuditMixin, Base, TimestampMixin
from .content_object import ContentObject, ObjectStatus
from .junction import ObjectRelation, Tree
from .object_type import ObjectType
from .stream import Stream
from .translation import Translation

__all__ = [
    "Base",
    "TimestampMixin",
    "AuditMixin",
    "ObjectType",
    "ContentObject",
    "ObjectStatus",
    "Translation",
    "Stream",
    # Link tables
    "Tree",
    "ObjectRelation",
]
