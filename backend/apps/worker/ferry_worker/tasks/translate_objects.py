"""Batch object translation task.

Translates the translatable fields of every object written in a source
language that has no translation in the target language yet, and stores
the result as a new translation row.
"""

import json
from collections.abc import Callable
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ferry_core import get_logger
from ferry_core.config import FerrySettings
from ferry_core.exceptions import InvalidArgumentError, UserAbortError
from ferry_core.schemas import TranslationBatchRun
from ferry_core.services import (
    CursorPaginator,
    SchemaService,
    TranslationRepository,
    TypeRegistry,
    paginate,
)
from ferry_core.services.translation_providers import TranslationProvider, resolve_translator
from ferry_database.models import ContentObject, Translation

logger = get_logger(__name__)

CONFIRM_PROMPT = "Do you want to continue [Y/n]?"


class ObjectsTranslator:
    """
    Translate objects from one language to another.

    Runs in three steps: ``setup`` picks the translator engine, ``confirm``
    asks before writing anything, ``process_objects`` drains the objects
    still missing a translation.

    Language arguments are the internal codes (keys of ``langs_map``); the
    engine receives the mapped target code.
    """

    def __init__(
        self,
        session: Session,
        settings: FerrySettings,
        *,
        dry_run: bool | None = None,
        status: str | None = None,
        limit: int | None = None,
        object_type: str | None = None,
        provider: TranslationProvider | None = None,
    ) -> None:
        config = settings.translate_objects
        self.session = session
        self.settings = settings
        self.langs_map = dict(config.langs_map)
        self.dry_run = config.dry_run if dry_run is None else dry_run
        self.status = status or config.status
        self.page_size = config.page_size
        self.provider = provider
        self.registry = TypeRegistry(session)
        self.schema = SchemaService(session, self.registry)
        self.translations = TranslationRepository(session)
        self.result = TranslationBatchRun(limit=limit, object_type=object_type)

    def setup(self, engine: str) -> TranslationProvider:
        """
        Resolve the translator engine.

        Raises:
            NotFoundError: If the engine is not configured.
        """
        if self.provider is None:
            self.provider = resolve_translator(self.settings, engine)
        return self.provider

    def confirm(self, ask: Callable[[str, str], str]) -> None:
        """
        Ask for confirmation; only an answer of ``Y`` continues.

        Args:
            ask: Prompt function receiving the question and default answer.

        Raises:
            UserAbortError: If the answer is anything but ``Y``.
        """
        if ask(CONFIRM_PROMPT, "n") != "Y":
            raise UserAbortError("Bye")

    def header(self, source: str, target: str) -> str:
        limit = self.result.limit
        object_type = self.result.object_type
        return "Translating objects from {} to {} [dry-run {} / {} / {}]".format(
            source,
            target,
            "yes" if self.dry_run else "no",
            f"limit {limit}" if limit else "unlimited",
            f"type {object_type}" if object_type else "all types",
        )

    def engine_lang(self, lang: str) -> str:
        """
        Map an internal language code to the engine code.

        Raises:
            InvalidArgumentError: If the language is not configured.
        """
        if lang not in self.langs_map:
            choices = ", ".join(self.langs_map)
            raise InvalidArgumentError(f'Language "{lang}" is not one of: {choices}')
        return self.langs_map[lang]

    def run(self, source: str, target: str) -> TranslationBatchRun:
        """Translate every pending object and return the counters."""
        self.process_objects(source, target)
        logger.info(
            "Objects translation finished",
            extra={"ok": self.result.ok, "error": self.result.error},
        )
        return self.result

    def process_objects(self, source: str, target: str) -> None:
        """
        Translate pending objects until exhausted or the limit is reached.

        Raises:
            InvalidArgumentError: If a language is not configured.
            NotFoundError: If the object type filter is not registered.
        """
        self.engine_lang(source)
        self.engine_lang(target)
        objects = self.objects_iterator(source, target)
        try:
            for obj in objects:
                if self.result.limit_reached:
                    break
                self.process_object(obj, source, target)
        finally:
            objects.close()

    def process_object(self, obj: ContentObject, source: str, target: str) -> None:
        """Translate one object; failures are counted, not raised."""
        try:
            logger.debug("Translating object", extra={"object_id": obj.id})
            if not self.dry_run:
                self.translate(obj, source, target)
            self.result.ok += 1
        except Exception as e:
            message = f"Error translating object {obj.id}: {e}"
            logger.warning(message)
            self.result.errors_details.append(message)
            self.result.error += 1

    def objects_iterator(self, source: str, target: str) -> CursorPaginator:
        """
        Iterate objects in ``source`` language without a ``target`` translation.

        Deleted objects are excluded; objects come in ascending id order.
        """
        translated = (
            select(Translation.id)
            .where(Translation.object_id == ContentObject.id, Translation.lang == target)
            .exists()
        )
        query = select(ContentObject).where(
            ContentObject.deleted.is_(False),
            ContentObject.lang == source,
            ~translated,
        )
        if self.result.object_type:
            self.registry.get_type(self.result.object_type)
            query = query.where(ContentObject.type == self.result.object_type)
        return paginate(self.session, query, ContentObject.id, self.page_size)

    def translate(self, obj: ContentObject, source: str, target: str) -> Translation | None:
        """
        Translate the translatable fields of ``obj`` and save them.

        Plain values are sent in one batch, structured values in another as
        JSON text.

        Returns:
            The new translation, or None when there was nothing to translate.
        """
        entity = self.registry.repository(obj.type).get(obj.id)
        fields = self.schema.translatable_fields(obj.type)
        if not fields:
            return None

        plain_fields: list[str] = []
        plain_values: list[str] = []
        json_fields: list[str] = []
        json_values: list[str] = []
        for field in fields:
            value = entity.get_field(field)
            if not value:
                continue
            if isinstance(value, (dict, list)):
                json_fields.append(field)
                json_values.append(json.dumps(value))
            else:
                plain_fields.append(field)
                plain_values.append(str(value))
        if not plain_fields and not json_fields:
            return None

        translated_fields: dict[str, Any] = {}
        for field, text in zip(plain_fields, self.multi_translation(plain_values, source, target)):
            translated_fields[field] = text
        for field, text in zip(json_fields, self.multi_translation(json_values, source, target)):
            translated_fields[field] = json.loads(text)

        translation = self.translations.new_empty_entity(entity.id)
        translation.lang = target
        translation.status = self.status
        translation.translated_fields = translated_fields
        return self.translations.save_or_fail(translation, self.settings.actor)

    def multi_translation(self, texts: list[str], source: str, target: str) -> list[str]:
        """
        Translate ``texts`` in one engine call, keeping their order.

        Raises:
            ValueError: If the engine returns a different number of texts.
        """
        if not texts:
            return []
        if self.provider is None:
            raise RuntimeError("Translator engine not set up")
        results = self.provider.translate_batch(texts, source, self.engine_lang(target))
        if len(results) != len(texts):
            raise ValueError(f"Translator returned {len(results)} texts, expected {len(texts)}")
        return results

    def single_translation(self, text: str, source: str, target: str) -> str:
        return self.multi_translation([text], source, target)[0]

    def results(self) -> str:
        return self.result.summary()
