"""
Translation model definition.

This module defines the Translation model for storing localized
versions of content object fields.
"""

from typing import Any

from sqlalchemy import JSON, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, TimestampMixin


class Translation(Base, TimestampMixin, AuditMixin):
    """
    Translated object content.

    One row per object and language.

    Attributes:
        id: Translation identifier.
        object_id: Translated object reference.
        lang: Language code (e.g. "it", "en").
        status: Publication status (draft/on/off).
        translated_fields: Field name to localized value; structured fields
            keep their nested shape.
    """

    __tablename__ = "translations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    object_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("objects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lang: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(10), default="draft", nullable=False)
    translated_fields: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    # Relationships
    object = relationship("ContentObject", back_populates="translations")

    # Constraints
    __table_args__ = (
        UniqueConstraint("object_id", "lang", name="uq_translation_object_lang"),
    )
