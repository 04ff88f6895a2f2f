"""
Content object model definition.

This module defines the ContentObject model, the single table holding
every typed content entity of the store.
"""

from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, TimestampMixin


class ObjectStatus(str, Enum):
    """Publication status enumeration."""

    DRAFT = "draft"
    ON = "on"
    OFF = "off"


class ContentObject(Base, TimestampMixin, AuditMixin):
    """
    Typed content entity.

    ``uname`` is the natural key and is unique across all types. Fields that
    are not mapped to a column are kept in ``properties``.

    Attributes:
        id: Surrogate identifier, strictly increasing.
        type: Object type name (discriminator).
        uname: Unique human-readable name.
        status: Publication status (draft/on/off).
        title: Object title.
        description: Short description.
        body: Main content (HTML).
        lang: Language code of the content.
        deleted: Soft-deletion flag.
        extra: Free-form structured data.
        properties: Type specific properties.
    """

    __tablename__ = "objects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(
        String(50), ForeignKey("object_types.name"), nullable=False, index=True
    )
    uname: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(10), default=ObjectStatus.DRAFT.value, nullable=False)
    title: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    body: Mapped[str | None] = mapped_column(Text)
    lang: Mapped[str | None] = mapped_column(String(64), index=True)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    extra: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    properties: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    # Relationships
    translations = relationship(
        "Translation", back_populates="object", cascade="all, delete-orphan"
    )

    def get_field(self, name: str) -> Any:
        """Return a column value, falling back to ``properties``."""
        if name in self.__table__.columns:
            return getattr(self, name)
        return (self.properties or {}).get(name)
