"""
Ferry configuration.

This module provides runtime settings loaded from environment variables
(prefixed with FERRY_) and an optional .env file at the repository root.
Nested sections use ``__`` as delimiter, e.g. ``FERRY_IMPORT_DEFAULTS__STATUS``;
``FERRY_TRANSLATORS`` takes a JSON object.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ferry_sources import CsvDialect

# Find .env file in project root
_env_file = Path(__file__).parent.parent.parent.parent.parent / ".env"

DEFAULT_LANGS_MAP: dict[str, str] = {
    "en": "en-US",
    "it": "it",
    "de": "de",
    "es": "es",
    "fr": "fr",
    "pt": "pt-PT",
}


class ImportDefaults(BaseModel):
    """Defaults applied by the import command."""

    status: Literal["draft", "on", "off"] = "on"
    csv: CsvDialect = Field(default_factory=CsvDialect)


class TranslateObjectsConfig(BaseModel):
    """Batch object translation settings."""

    langs_map: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_LANGS_MAP))
    status: Literal["draft", "on", "off"] = "draft"
    dry_run: bool = False
    page_size: int = Field(default=500, gt=0)


class TranslatorConfig(BaseModel):
    """
    Translator engine configuration.

    ``provider`` selects the implementation, ``options`` holds its
    credentials and tuning (api_key, model, base_url, timeout).
    """

    provider: Literal["google", "deepl", "openai", "mtran"] = "google"
    name: str = ""
    options: dict[str, Any] = Field(default_factory=dict)


class FerrySettings(BaseSettings):
    """
    Ferry settings from environment variables.

    All settings are prefixed with FERRY_ in environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="FERRY_",
        env_nested_delimiter="__",
        env_file=str(_env_file) if _env_file.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = "sqlite:///ferry.db"
    database_echo: bool = False
    log_level: str = "INFO"

    # Identity stamped on created_by / modified_by
    actor: str = "admin"

    import_defaults: ImportDefaults = Field(default_factory=ImportDefaults)
    translate_objects: TranslateObjectsConfig = Field(default_factory=TranslateObjectsConfig)
    translators: dict[str, TranslatorConfig] = Field(default_factory=dict)
