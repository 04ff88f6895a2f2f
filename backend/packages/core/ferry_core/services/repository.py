"""
Object repositories.

Typed access to content objects and translations, plus the registry that
resolves an object type name to its repository.
"""

import re
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ferry_core import get_logger
from ferry_core.exceptions import InvalidArgumentError, NotFoundError, PersistenceError
from ferry_database.models import ContentObject, ObjectStatus, ObjectType, Translation

logger = get_logger(__name__)

# Columns an import record may write directly
PATCHABLE_COLUMNS = frozenset({"uname", "status", "title", "description", "body", "lang", "extra"})
# Never written from a record; anything else goes to ``properties``
PROTECTED_FIELDS = frozenset(
    {"id", "type", "deleted", "created_at", "updated_at", "created_by", "modified_by", "properties"}
)

_SLUG_RE = re.compile(r"[^a-z0-9]+")
_STATUSES = frozenset(status.value for status in ObjectStatus)


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", text.lower()).strip("-")[:200]


def generate_uname(entity: ContentObject) -> str:
    """Build a unique name from the title, or the type when untitled."""
    base = slugify(entity.title or "") or slugify(entity.type or "") or "object"
    return f"{base}-{uuid.uuid4().hex[:8]}"


class ObjectRepository:
    """
    Repository of content objects.

    Bound to one object type, or to every type when ``object_type`` is None.
    Writes commit one entity at a time.
    """

    def __init__(self, session: Session, object_type: str | None = None) -> None:
        self.session = session
        self.object_type = object_type

    def _select(self, criteria: Mapping[str, Any]):  # type: ignore[no-untyped-def]
        stmt = select(ContentObject)
        if self.object_type is not None:
            stmt = stmt.where(ContentObject.type == self.object_type)
        for key, value in criteria.items():
            if key not in ContentObject.__table__.columns:
                raise InvalidArgumentError(f'Unknown object field "{key}"')
            if key == "id":
                value = self._coerce_id(value)
            stmt = stmt.where(ContentObject.__table__.columns[key] == value)
        return stmt

    @staticmethod
    def _coerce_id(value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f'Invalid object id "{value}"') from e

    def exists(self, criteria: Mapping[str, Any]) -> bool:
        return self.find(criteria) is not None

    def find(self, criteria: Mapping[str, Any]) -> ContentObject | None:
        """Return the first object matching every criterion, or None."""
        result = self.session.execute(self._select(criteria).limit(1))
        return result.scalar_one_or_none()

    def find_imported(self, extra_key: str, extra_value: Any) -> list[ContentObject]:
        """
        Return the objects imported with ``extra.identifier.<extra_key>`` equal to ``extra_value``.

        Deleted objects are left out.
        """
        identifier = ContentObject.extra[("identifier", extra_key)].as_string()
        stmt = self._select({}).where(
            ContentObject.deleted.is_(False),
            ContentObject.extra.is_not(None),
            identifier == str(extra_value),
        )
        return list(self.session.execute(stmt.order_by(ContentObject.id)).scalars().all())

    def get(self, object_id: int | str) -> ContentObject:
        """
        Load an object by id.

        Raises:
            NotFoundError: If no object of this repository has that id.
        """
        entity = self.find({"id": object_id})
        if entity is None:
            raise NotFoundError(f'Object "{object_id}" not found')
        return entity

    def new_empty_entity(self) -> ContentObject:
        return ContentObject(
            type=self.object_type,
            status=ObjectStatus.DRAFT.value,
            deleted=False,
            properties={},
        )

    def patch_entity(self, entity: ContentObject, fields: Mapping[Any, Any]) -> ContentObject:
        """
        Merge record fields into ``entity``.

        Known columns are set directly, protected fields are ignored and
        every other field is stored in ``properties``.
        """
        properties = dict(entity.properties or {})
        for key, value in fields.items():
            name = str(key)
            if name in PROTECTED_FIELDS:
                continue
            if name in PATCHABLE_COLUMNS:
                setattr(entity, name, value)
            else:
                properties[name] = value
        # Reassign so the JSON column is flagged as modified
        entity.properties = properties
        return entity

    def validate(self, entity: ContentObject) -> None:
        if entity.status not in _STATUSES:
            raise PersistenceError(f'Invalid status "{entity.status}"')
        if not entity.uname:
            entity.uname = generate_uname(entity)
        if entity.uname.isdigit() or len(entity.uname) > 255:
            raise PersistenceError(f'Invalid uname "{entity.uname}"')

    def save_or_fail(self, entity: ContentObject, actor: str) -> ContentObject:
        """
        Validate and commit ``entity``.

        Args:
            entity: Object to save.
            actor: Identity stamped on created_by / modified_by.

        Returns:
            The saved object.

        Raises:
            PersistenceError: If validation fails or the store rejects the row.
        """
        try:
            self.validate(entity)
            entity.stamp(actor)
            self.session.add(entity)
            self.session.commit()
        except PersistenceError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f'Unable to save object "{entity.uname}": {e}') from e
        logger.debug("Object saved", extra={"id": entity.id, "type": entity.type})
        return entity

    def discard(self, entity: ContentObject) -> None:
        """Drop pending changes of ``entity`` without writing them."""
        if entity in self.session:
            self.session.expunge(entity)


class TranslationRepository:
    """Repository of object translations, keyed by (object_id, lang)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find(self, object_id: int, lang: str) -> Translation | None:
        stmt = select(Translation).where(
            Translation.object_id == object_id,
            Translation.lang == lang,
        )
        result = self.session.execute(stmt)
        return result.scalar_one_or_none()

    def new_empty_entity(self, object_id: int) -> Translation:
        return Translation(object_id=object_id, status=ObjectStatus.DRAFT.value)

    def save_or_fail(self, entity: Translation, actor: str) -> Translation:
        """
        Validate and commit ``entity``.

        Raises:
            PersistenceError: If validation fails or the store rejects the row.
        """
        try:
            if not entity.lang:
                raise PersistenceError("Translation language is required")
            if entity.status not in _STATUSES:
                raise PersistenceError(f'Invalid status "{entity.status}"')
            entity.stamp(actor)
            self.session.add(entity)
            self.session.commit()
        except PersistenceError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f"Unable to save translation: {e}") from e
        return entity

    def discard(self, entity: Translation) -> None:
        if entity in self.session:
            self.session.expunge(entity)


class TypeRegistry:
    """Object type name to repository map, loaded lazily from the store."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._types: dict[str, ObjectType] = {}
        self._repositories: dict[str, ObjectRepository] = {}
        self.objects = ObjectRepository(session)

    def get_type(self, name: str) -> ObjectType:
        """
        Return the registered object type.

        Raises:
            NotFoundError: If the type is not registered.
        """
        if name not in self._types:
            result = self.session.execute(select(ObjectType).where(ObjectType.name == name))
            object_type = result.scalar_one_or_none()
            if object_type is None:
                raise NotFoundError(f'Object type "{name}" not found')
            self._types[name] = object_type
        return self._types[name]

    def repository(self, name: str) -> ObjectRepository:
        """
        Return the repository of object type ``name``.

        Raises:
            NotFoundError: If the type is not registered.
        """
        if name not in self._repositories:
            self.get_type(name)
            self._repositories[name] = ObjectRepository(self.session, name)
        return self._repositories[name]
