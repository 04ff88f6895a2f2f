"""
Import service.

Reads source records and upserts them as content objects or translations.
Each record is processed on its own: a failing record is counted and the
run moves on to the next one.
"""

import json
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ferry_core import get_logger
from ferry_core.exceptions import ConflictError, NotFoundError, PersistenceError
from ferry_core.html import clean_html
from ferry_core.schemas import ImportMode, ImportOptions, ImportRun
from ferry_database.models import ContentObject, ObjectRelation, Stream, Translation
from ferry_sources import RecordStream, read_items

from .mapping import transform
from .repository import TranslationRepository, TypeRegistry
from .tree_service import TreeService

logger = get_logger(__name__)

TRANSLATION_PREFIX = "translation_"
# Fields of a translation record that are not translated content
TRANSLATION_KEYS = frozenset({"id", "object_uname", "lang", "translated_fields"})


class ImportService:
    """
    Import objects or translations from a CSV or XML source.

    Counters are collected in ``self.result`` and are valid for this
    instance only.
    """

    def __init__(
        self,
        session: Session,
        options: ImportOptions,
        registry: TypeRegistry | None = None,
    ) -> None:
        self.session = session
        self.options = options
        self.registry = registry or TypeRegistry(session)
        self.translations = TranslationRepository(session)
        self.tree = TreeService(session, self.registry)
        self.result = ImportRun()

    def run(self) -> ImportRun:
        """
        Import every record of the source.

        Returns:
            Run counters.

        Raises:
            InvalidArgumentError: If the source format is unknown.
            SourceUnavailableError: If the source cannot be opened.
            SourceFormatError: If a CSV row does not match the header.
        """
        logger.info(
            "Import started",
            extra={
                "source": self.options.filename,
                "type": self.options.type,
                "dry_run": self.options.dry_run,
            },
        )
        if self.options.mode is ImportMode.TRANSLATIONS:
            self.save_translations()
        else:
            self.save_objects()

        logger.info(
            "Import finished",
            extra={
                "processed": self.result.processed,
                "saved": self.result.saved,
                "skipped": self.result.skipped,
                "errors": self.result.errors,
            },
        )
        return self.result

    def read_records(self) -> RecordStream:
        return read_items(
            self.options.source_format.value,
            self.options.filename,
            assoc=self.options.assoc,
            element=self.options.element,
            dialect=self.options.dialect,
        )

    def _record_failed(self, error: Exception) -> None:
        message = str(error)
        logger.warning("Record import failed", extra={"error": message})
        self.result.record_error(message)

    def save_objects(self) -> None:
        """Save every source record as an object of the configured type."""
        with self.read_records() as records:
            for record in records:
                try:
                    self.save_object(transform(record, self.options.mapping))
                except Exception as e:
                    self._record_failed(e)
                finally:
                    self.result.processed += 1

    @staticmethod
    def _identity(fields: Mapping[Any, Any]) -> dict[str, Any] | None:
        # uname wins over id when both are present
        uname = fields.get("uname")
        if uname:
            return {"uname": uname}
        object_id = fields.get("id")
        if object_id:
            return {"id": object_id}
        return None

    def save_object(self, fields: Mapping[Any, Any]) -> ContentObject:
        """
        Create or update one object.

        The object is matched by ``uname`` or, without one, by ``id``.

        Args:
            fields: Object fields.

        Returns:
            The saved object, or the merged unsaved one in dry-run mode.

        Raises:
            NotFoundError: If the object type or the parent folder is missing.
            ConflictError: If the matched object has another type.
            PersistenceError: If the store rejects the object.
        """
        object_type = self.options.type
        repository = self.registry.repository(object_type)

        entity = None
        identity = self._identity(fields)
        if identity is not None:
            existing = self.registry.objects.find(identity)
            if existing is not None:
                if existing.type != object_type:
                    key = next(iter(identity.values()))
                    raise ConflictError(
                        f'Object "{key}" already present with another type '
                        f'"{existing.type}" (requested "{object_type}")'
                    )
                entity = repository.get(existing.id)
        if entity is None:
            entity = repository.new_empty_entity()

        if self.options.clean_html:
            fields = {
                key: clean_html(value)
                if key in self.options.clean_html and isinstance(value, str)
                else value
                for key, value in fields.items()
            }
        repository.patch_entity(entity, fields)
        # Mapped fields must not change the type
        entity.type = object_type

        if self.options.dry_run:
            repository.discard(entity)
            self.result.skipped += 1
            return entity

        repository.save_or_fail(entity, self.options.actor)
        if self.options.parent:
            self.tree.set_parent(entity, self.options.parent)
        self.result.saved += 1
        return entity

    def set_related(
        self,
        relation: str,
        entity: ContentObject,
        related: list[ContentObject],
    ) -> list[int] | bool:
        """
        Replace the objects related to ``entity`` through ``relation``.

        Args:
            relation: Relation name.
            entity: Left side object.
            related: Right side objects, in priority order.

        Returns:
            Ids of the related objects, or False when ``related`` is empty.

        Raises:
            PersistenceError: If the relations cannot be written.
        """
        if not related:
            return False
        try:
            self.session.execute(
                delete(ObjectRelation).where(
                    ObjectRelation.left_id == entity.id,
                    ObjectRelation.relation == relation,
                )
            )
            for priority, item in enumerate(related, start=1):
                self.session.add(
                    ObjectRelation(
                        left_id=entity.id,
                        relation=relation,
                        right_id=item.id,
                        priority=priority,
                    )
                )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f'Unable to set relation "{relation}": {e}') from e
        return [item.id for item in related]

    def save_media(
        self,
        media_type: str,
        media_data: Mapping[Any, Any],
        stream_data: Mapping[str, Any],
    ) -> ContentObject | Stream:
        """
        Create a media object and the stream holding its file.

        Args:
            media_type: Media object type (e.g. ``images``).
            media_data: Media object fields.
            stream_data: ``file_name``, ``mime_type`` and ``contents`` (bytes,
                text or a readable binary stream).

        Returns:
            The saved stream, or the unsaved media object in dry-run mode.

        Raises:
            NotFoundError: If the media type is not registered.
            PersistenceError: If the store rejects the media or its stream.
        """
        repository = self.registry.repository(media_type)
        media = repository.new_empty_entity()
        repository.patch_entity(media, media_data)
        media.type = media_type
        if self.options.dry_run:
            repository.discard(media)
            self.result.skipped += 1
            return media

        repository.save_or_fail(media, self.options.actor)

        stream = Stream(
            object_id=media.id,
            file_name=str(stream_data.get("file_name") or media.uname),
            mime_type=str(stream_data.get("mime_type") or "application/octet-stream"),
        )
        contents = stream_data.get("contents")
        if hasattr(contents, "read"):
            contents = contents.read()
        stream.set_contents(contents or b"")
        stream.stamp(self.options.actor)
        try:
            self.session.add(stream)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f'Unable to save stream "{stream.file_name}": {e}') from e
        logger.debug("Media saved", extra={"id": media.id, "file_name": stream.file_name})
        return stream

    def find_imported(self, object_type: str, extra_key: str, extra_value: Any) -> list[ContentObject]:
        """
        Return the objects of ``object_type`` already imported with an identifier.

        Sources that carry their own ids store them under
        ``extra.identifier.<key>``; this finds them again on later runs.

        Raises:
            NotFoundError: If the type is not registered.
        """
        return self.registry.repository(object_type).find_imported(extra_key, extra_value)

    def save_translations(self) -> None:
        """Save every source record, unmapped, as an object translation."""
        with self.read_records() as records:
            for record in records:
                try:
                    self.save_translation(record)
                except Exception as e:
                    self._record_failed(e)
                finally:
                    self.result.processed += 1

    def save_translation(self, fields: Mapping[Any, Any]) -> Translation:
        """
        Create or update the translation of an object.

        The object is referenced by ``object_uname``; the translation is
        matched by object and ``lang``.

        Args:
            fields: Translation fields.

        Returns:
            The saved translation, or the merged unsaved one in dry-run mode.

        Raises:
            NotFoundError: If the referenced object does not exist.
            PersistenceError: If the store rejects the translation.
        """
        uname = str(fields.get("object_uname") or "")
        target = self.registry.objects.find({"uname": uname}) if uname else None
        if target is None:
            raise NotFoundError(f'Object "{uname}" not found')

        lang = fields.get("lang")
        translation = self.translations.find(target.id, lang) if lang else None
        if translation is None:
            translation = self.translations.new_empty_entity(target.id)
        translation.translated_fields = self.translated_fields(fields)
        translation.status = self.options.status
        translation.lang = lang

        if self.options.dry_run:
            self.translations.discard(translation)
            self.result.skipped += 1
            return translation

        self.translations.save_or_fail(translation, self.options.actor)
        self.result.saved += 1
        return translation

    @staticmethod
    def translated_fields(source: Mapping[Any, Any]) -> dict[str, Any]:
        """
        Extract translated fields from a translation record.

        A non-empty ``translated_fields`` value (JSON text, or an already
        decoded structure) is returned as is. Otherwise every field but
        ``id``, ``object_uname`` and ``lang`` is used, ``translation_<name>``
        fields under ``<name>``.

        Raises:
            ValueError: If ``translated_fields`` is not valid JSON.
        """
        encoded = source.get("translated_fields")
        if encoded:
            if isinstance(encoded, str):
                return json.loads(encoded)
            return dict(encoded)

        fields: dict[str, Any] = {}
        for key, value in source.items():
            name = str(key)
            if name in TRANSLATION_KEYS:
                continue
            if name.startswith(TRANSLATION_PREFIX):
                name = name[len(TRANSLATION_PREFIX) :]
            fields[name] = value
        return fields
