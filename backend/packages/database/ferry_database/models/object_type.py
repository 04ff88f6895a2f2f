"""
Object type model definition.

This module defines the ObjectType model which registers the content
types known to the store together with their field schema.
"""

from typing import Any

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class ObjectType(Base, TimestampMixin):
    """
    Content type registry entry.

    Attributes:
        id: Object type identifier.
        name: Plural type name used as discriminator (e.g. "documents").
        singular: Singular type name (e.g. "document").
        schema: Field schema; ``translatable`` lists the fields eligible for
            machine translation, ``properties`` describes extra fields.
    """

    __tablename__ = "object_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    singular: Mapped[str | None] = mapped_column(String(50))
    schema: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    @property
    def translatable(self) -> list[str]:
        return list((self.schema or {}).get("translatable") or [])
