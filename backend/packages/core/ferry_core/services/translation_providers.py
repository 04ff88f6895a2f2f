"""
Translation provider abstraction.

Supports Google Translate (free), DeepL, OpenAI and MTranServer as
translation engines. Engines are configured by name in
``FerrySettings.translators``; each entry selects a provider and its
options (api_key, model, base_url, timeout).
"""

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx

from ferry_core import get_logger
from ferry_core.config import TranslatorConfig
from ferry_core.exceptions import InvalidArgumentError, NotFoundError

if TYPE_CHECKING:
    from ferry_core.config import FerrySettings

logger = get_logger(__name__)

# Google Translate has a ~5000 character limit per request
_CHUNK_SIZE = 4500
_SEPARATOR = " ||| "
_NUMBERED_LINE_RE = re.compile(r"^\[(\d+)\]\s?(.*)$")


class TranslationProvider(ABC):
    """Base class for translation providers."""

    @abstractmethod
    def translate(self, text: str, source: str, target: str) -> str:
        """Translate a single text string."""

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        """
        Translate a list of texts.

        Results are positional: item ``i`` is the translation of
        ``texts[i]``. Default: translate one by one.
        """
        return [self.translate(t, source, target) for t in texts]


class FallbackProvider(TranslationProvider):
    """Provider wrapper that falls back to another provider on failures."""

    def __init__(self, primary: TranslationProvider, fallback: TranslationProvider) -> None:
        self.primary = primary
        self.fallback = fallback

    def translate(self, text: str, source: str, target: str) -> str:
        try:
            return self.primary.translate(text, source, target)
        except Exception:
            logger.exception("Primary translation provider failed; using fallback")
            return self.fallback.translate(text, source, target)

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        try:
            return self.primary.translate_batch(texts, source, target)
        except Exception:
            logger.exception("Primary batch translation failed; using fallback")
            return self.fallback.translate_batch(texts, source, target)


def _chunks(texts: list[str], size: int = _CHUNK_SIZE) -> list[list[int]]:
    """Group text positions so each joined group stays under ``size``."""
    groups: list[list[int]] = []
    current: list[int] = []
    length = 0
    for i, text in enumerate(texts):
        needed = len(text) + len(_SEPARATOR)
        if current and length + needed > size:
            groups.append(current)
            current, length = [], 0
        current.append(i)
        length += needed
    if current:
        groups.append(current)
    return groups


def _split_text(text: str, size: int = _CHUNK_SIZE) -> tuple[list[str], list[str]]:
    """
    Split ``text`` into pieces of at most ``size`` characters.

    Cuts fall on the last newline or space before the limit when there is
    one. Returns the pieces and the separators dropped between them, so
    ``pieces[0] + seps[0] + pieces[1] + ...`` rebuilds the text.
    """
    pieces: list[str] = []
    separators: list[str] = []
    rest = text
    while len(rest) > size:
        cut = rest.rfind("\n", 0, size)
        if cut <= 0:
            cut = rest.rfind(" ", 0, size)
        if cut <= 0:
            pieces.append(rest[:size])
            separators.append("")
            rest = rest[size:]
            continue
        pieces.append(rest[:cut])
        separators.append(rest[cut])
        rest = rest[cut + 1 :]
    pieces.append(rest)
    return pieces, separators


class GoogleFreeProvider(TranslationProvider):
    """Free Google Translate via deep-translator."""

    @staticmethod
    def _translate_text(translator: Any, text: str) -> str:
        # Long texts go out in pieces under the request limit
        pieces, separators = _split_text(text)
        translated = [
            translator.translate(piece) if piece.strip() else piece for piece in pieces
        ]
        result = translated[0]
        for separator, piece in zip(separators, translated[1:]):
            result += separator + piece
        return result

    def translate(self, text: str, source: str, target: str) -> str:
        from deep_translator import GoogleTranslator

        if not text or not text.strip():
            return text
        translator = GoogleTranslator(source=source, target=target)
        return self._translate_text(translator, text)

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        """
        Join short texts with a ``|||`` separator to save requests.

        When the engine does not keep the separators, the texts of that
        group are sent again one by one.
        """
        from deep_translator import GoogleTranslator

        if not texts:
            return []

        translator = GoogleTranslator(source=source, target=target)
        results: list[str] = [""] * len(texts)
        for group in _chunks(texts):
            if len(group) > 1:
                combined = _SEPARATOR.join(texts[i] for i in group)
                parts: list[str] = translator.translate(combined).split("|||")
                if len(parts) == len(group):
                    for index, part in zip(group, parts):
                        results[index] = part.strip()
                    continue
                logger.warning(
                    "Batch separators lost, translating one by one",
                    extra={"expected": len(group), "received": len(parts)},
                )
            for index in group:
                text = texts[index]
                results[index] = self._translate_text(translator, text) if text.strip() else text
        return results


class DeepLProvider(TranslationProvider):
    """DeepL translation provider."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key
        self._translator: Any = None

    def _client(self) -> Any:
        import deepl

        if self._translator is None:
            self._translator = deepl.Translator(self.api_key)
        return self._translator

    @staticmethod
    def _source_lang(lang: str) -> str | None:
        # Source languages take no regional variant
        if lang == "auto":
            return None
        return lang.split("-")[0].upper()

    @staticmethod
    def _target_lang(lang: str) -> str:
        if lang.lower() == "en":
            return "EN-US"
        if lang.lower() == "pt":
            return "PT-PT"
        return lang.upper()

    def translate(self, text: str, source: str, target: str) -> str:
        if not text or not text.strip():
            return text
        return self.translate_batch([text], source, target)[0]

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        if not texts:
            return []

        results = self._client().translate_text(
            texts,
            source_lang=self._source_lang(source),
            target_lang=self._target_lang(target),
        )
        if isinstance(results, list):
            return [str(r) for r in results]
        return [str(results)]


class OpenAIProvider(TranslationProvider):
    """OpenAI chat completion translation provider."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", base_url: str | None = None) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url or None

    def _complete(self, instructions: str, content: str) -> str:
        from openai import OpenAI

        client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        response = client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": instructions},
                {"role": "user", "content": content},
            ],
            temperature=0.3,
        )
        return response.choices[0].message.content or ""

    def translate(self, text: str, source: str, target: str) -> str:
        if not text or not text.strip():
            return text
        return self._complete(
            f"You are a translator. Translate the following text from {source} to {target}. "
            "Keep any HTML markup unchanged. Output only the translation, nothing else.",
            text,
        )

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        if not texts:
            return []

        numbered = "\n".join(f"[{i + 1}] {t}" for i, t in enumerate(texts))
        raw = self._complete(
            f"You are a translator. Translate each numbered line from {source} to {target}. "
            "Keep the [N] numbering format and any HTML markup. "
            "Output only the translations, one per line.",
            numbered,
        )

        results: list[str | None] = [None] * len(texts)
        for line in raw.strip().splitlines():
            match = _NUMBERED_LINE_RE.match(line.strip())
            if not match:
                continue
            index = int(match.group(1)) - 1
            if 0 <= index < len(texts):
                results[index] = match.group(2).strip()

        # Lines the model dropped are translated on their own
        return [
            result if result is not None else self.translate(text, source, target)
            for text, result in zip(texts, results)
        ]


class MTranProvider(TranslationProvider):
    """
    HTTP translation service provider (MTranServer compatible).

    Batch responses may carry the translations under ``translation`` or
    ``translations``, as plain strings or objects with a ``text`` field.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        model: str = "",
        timeout: float = 20.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _post(self, path: str, payload: dict[str, Any]) -> Any:
        if self.model:
            payload["model"] = self.model
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(f"{self.base_url}{path}", json=payload, headers=self._headers())
            response.raise_for_status()
            return response.json()

    @staticmethod
    def _extract_single(data: Any) -> str | None:
        if isinstance(data, str):
            return data
        if isinstance(data, dict):
            for key in ("translation", "translated_text", "text", "result"):
                value = data.get(key)
                if isinstance(value, str):
                    return value
        return None

    def _extract_batch(self, data: Any, expected_count: int) -> list[str]:
        items: Any = data
        if isinstance(data, dict):
            items = next(
                (
                    data[key]
                    for key in ("translation", "translations", "results")
                    if isinstance(data.get(key), list)
                ),
                None,
            )
        if not isinstance(items, list):
            raise ValueError("Translation service response has no translation list")

        parsed = [self._extract_single(item) for item in items]
        if len(parsed) != expected_count or any(p is None for p in parsed):
            raise ValueError(
                f"Translation service returned {len(parsed)} items, expected {expected_count}"
            )
        return [p for p in parsed if p is not None]

    def translate(self, text: str, source: str, target: str) -> str:
        if not text or not text.strip():
            return text

        data = self._post("/translate", {"text": text, "from": source, "to": target})
        translated = self._extract_single(data)
        if translated is None:
            raise ValueError("Translation service response does not contain translated text")
        return translated

    def translate_batch(self, texts: list[str], source: str, target: str) -> list[str]:
        if not texts:
            return []

        data = self._post("/translate/batch", {"texts": texts, "from": source, "to": target})
        return self._extract_batch(data, len(texts))


def create_translation_provider(config: TranslatorConfig) -> TranslationProvider:
    """
    Create a translation provider from an engine configuration.

    Options:
        - api_key: API key, required by deepl and openai
        - model: Model name for openai/mtran (default: "gpt-4o-mini" for openai)
        - base_url: Service URL, required by mtran
        - timeout: Request timeout in seconds for mtran
        - fallback: "google" to fall back to Google Translate on failures

    Raises:
        InvalidArgumentError: If a required option is missing.
    """
    options = config.options
    api_key = str(options.get("api_key") or "")
    model = options.get("model")
    base_url = options.get("base_url")

    provider: TranslationProvider
    if config.provider == "google":
        logger.info("Using Google translation provider")
        return GoogleFreeProvider()

    if config.provider == "deepl":
        if not api_key:
            raise InvalidArgumentError(f"Translator {config.name or 'deepl'} requires an api_key")
        logger.info("Using DeepL translation provider")
        provider = DeepLProvider(api_key)
    elif config.provider == "openai":
        if not api_key:
            raise InvalidArgumentError(f"Translator {config.name or 'openai'} requires an api_key")
        openai_model = model if isinstance(model, str) and model else "gpt-4o-mini"
        logger.info("Using OpenAI translation provider", extra={"model": openai_model})
        provider = OpenAIProvider(api_key, openai_model, base_url)
    else:
        if not base_url:
            raise InvalidArgumentError(f"Translator {config.name or 'mtran'} requires a base_url")
        logger.info("Using MTran translation provider", extra={"base_url": base_url})
        provider = MTranProvider(
            base_url=str(base_url),
            api_key=api_key,
            model=model if isinstance(model, str) else "",
            timeout=float(options.get("timeout", 20.0)),
        )

    if options.get("fallback") == "google":
        return FallbackProvider(primary=provider, fallback=GoogleFreeProvider())
    return provider


def resolve_translator(settings: "FerrySettings", engine: str) -> TranslationProvider:
    """
    Create the provider of the engine named ``engine``.

    Raises:
        NotFoundError: If the engine is not configured.
        InvalidArgumentError: If its configuration is incomplete.
    """
    config = settings.translators.get(engine)
    if config is None:
        raise NotFoundError(f"Translator {engine} not found")
    if not config.name:
        config = config.model_copy(update={"name": engine})
    return create_translation_provider(config)
