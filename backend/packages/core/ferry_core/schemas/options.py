"""
Import option schemas.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from ferry_sources import CsvDialect, SourceFormat


class ImportMode(str, Enum):
    """What an import run writes."""

    OBJECTS = "objects"
    TRANSLATIONS = "translations"

    @classmethod
    def for_type(cls, type_name: str) -> "ImportMode":
        return cls.TRANSLATIONS if type_name == "translations" else cls.OBJECTS


class ImportOptions(BaseModel):
    """
    Options of one import run.

    Attributes:
        filename: Source descriptor (path, ``-``, URL or mount location).
        type: Target object type, or ``translations``.
        parent: Folder uname or id new objects are placed in.
        dry_run: Resolve and merge without writing.
        source_format: ``csv`` or ``xml``.
        element: XML tag name of the records.
        assoc: CSV header row provides the field names.
        mapping: Source field to destination path, applied to object records.
        clean_html: Fields whose HTML is stripped of attributes but href, id and src.
        status: Status given to imported translations.
        actor: Identity stamped on written rows.
    """

    filename: str
    type: str
    parent: str | None = None
    dry_run: bool = False
    source_format: SourceFormat = SourceFormat.CSV
    element: str = "post"
    assoc: bool = True
    dialect: CsvDialect = Field(default_factory=CsvDialect)
    mapping: dict[str, str] = Field(default_factory=dict)
    clean_html: list[str] = Field(default_factory=list)
    status: Literal["draft", "on", "off"] = "on"
    actor: str = "admin"

    @property
    def mode(self) -> ImportMode:
        return ImportMode.for_type(self.type)
