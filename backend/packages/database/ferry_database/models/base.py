"""
Declarative base and shared column mixins.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all Ferry models."""


class TimestampMixin:
    """Creation and modification timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class AuditMixin:
    """
    Audit stamps.

    Holds the actor that created and last modified a row. The actor is
    passed explicitly by the service writing the row.
    """

    created_by: Mapped[str | None] = mapped_column(String(100))
    modified_by: Mapped[str | None] = mapped_column(String(100))

    def stamp(self, actor: str) -> None:
        """Record ``actor`` as modifier, and as creator on first save."""
        if not self.created_by:
            self.created_by = actor
        self.modified_by = actor
