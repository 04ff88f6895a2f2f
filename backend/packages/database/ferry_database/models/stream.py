"""
Stream model definition.

This module defines the Stream model, the file attached to a media object.
"""

import hashlib

from sqlalchemy import ForeignKey, Integer, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, TimestampMixin


class Stream(Base, TimestampMixin, AuditMixin):
    """
    File content of a media object.

    Attributes:
        id: Stream identifier.
        object_id: Owning media object.
        file_name: Original file name.
        mime_type: Content MIME type.
        file_size: Size of ``contents`` in bytes.
        hash_md5: MD5 digest of ``contents``.
        contents: Raw file bytes.
    """

    __tablename__ = "streams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    object_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("objects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), default="application/octet-stream", nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hash_md5: Mapped[str | None] = mapped_column(String(32))
    contents: Mapped[bytes | None] = mapped_column(LargeBinary)

    # Relationships
    object = relationship("ContentObject")

    def set_contents(self, contents: bytes | str) -> None:
        """Store ``contents`` with its size and digest."""
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        self.contents = contents
        self.file_size = len(contents)
        self.hash_md5 = hashlib.md5(contents).hexdigest()
