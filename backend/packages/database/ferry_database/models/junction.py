"""
Link tables between content objects.

Tree holds folder placement, ObjectRelation holds named relations.
"""

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Tree(Base, TimestampMixin):
    """Parent link of an object inside a folder."""

    __tablename__ = "trees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    object_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("objects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("objects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (UniqueConstraint("object_id", "parent_id", name="uq_tree_object_parent"),)


class ObjectRelation(Base, TimestampMixin):
    """Named, ordered relation from a left object to a right object."""

    __tablename__ = "object_relations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    left_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("objects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    relation: Mapped[str] = mapped_column(String(100), nullable=False)
    right_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("objects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    priority: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    __table_args__ = (
        UniqueConstraint("left_id", "relation", "right_id", name="uq_object_relation"),
    )
