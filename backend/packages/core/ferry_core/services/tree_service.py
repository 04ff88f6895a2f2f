"""
Tree service.

Places content objects inside folders.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ferry_core import get_logger
from ferry_core.exceptions import NotFoundError, PersistenceError
from ferry_database.models import ContentObject, Tree

from .repository import TypeRegistry

logger = get_logger(__name__)

FOLDERS_TYPE = "folders"


class TreeService:
    """Folder placement of content objects."""

    def __init__(self, session: Session, registry: TypeRegistry | None = None) -> None:
        self.session = session
        self.registry = registry or TypeRegistry(session)

    def get_folder(self, folder: str | int) -> ContentObject:
        """
        Resolve a folder by uname or id.

        Raises:
            NotFoundError: If no folder matches.
        """
        folders = self.registry.repository(FOLDERS_TYPE)
        criteria = {"id": folder} if str(folder).isdigit() else {"uname": folder}
        entity = folders.find(criteria)
        if entity is None:
            raise NotFoundError(f'Folder "{folder}" not found')
        return entity

    def set_parent(self, entity: ContentObject, folder: str | int) -> Tree:
        """
        Make ``folder`` the parent of ``entity``.

        Existing parent links of the entity are replaced by the new one,
        appended after the folder's current children.

        Args:
            entity: Saved content object.
            folder: Folder uname or id.

        Returns:
            The new tree link.

        Raises:
            NotFoundError: If the folder does not exist.
            PersistenceError: If the link cannot be written.
        """
        parent = self.get_folder(folder)
        try:
            self.session.execute(delete(Tree).where(Tree.object_id == entity.id))
            last_position = self.session.execute(
                select(func.max(Tree.position)).where(Tree.parent_id == parent.id)
            ).scalar()
            link = Tree(
                object_id=entity.id,
                parent_id=parent.id,
                position=(last_position or 0) + 1,
            )
            self.session.add(link)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f'Unable to place "{entity.uname}" in folder "{folder}": {e}') from e

        logger.debug("Parent set", extra={"object_id": entity.id, "parent_id": parent.id})
        return link

    def parents(self, entity: ContentObject) -> list[ContentObject]:
        """Return the folders containing ``entity``."""
        stmt = (
            select(ContentObject)
            .join(Tree, Tree.parent_id == ContentObject.id)
            .where(Tree.object_id == entity.id)
            .order_by(Tree.position)
        )
        result = self.session.execute(stmt)
        return list(result.scalars().all())
