"""Source reader factory keyed on the source format."""

from enum import Enum

from ferry_core.exceptions import InvalidArgumentError

from .base import SourceReader
from .csv_reader import CsvDialect, CsvReader
from .records import RecordStream
from .xml_reader import XmlReader


class SourceFormat(str, Enum):
    CSV = "csv"
    XML = "xml"


def create_reader(
    source_type: str,
    *,
    assoc: bool = True,
    element: str = "post",
    dialect: CsvDialect | None = None,
) -> SourceReader:
    """
    Create the reader for ``source_type``.

    Raises:
        InvalidArgumentError: If the source type is unknown.
    """
    try:
        source_format = SourceFormat(source_type)
    except ValueError as e:
        raise InvalidArgumentError(f'Invalid source type "{source_type}"') from e

    if source_format is SourceFormat.CSV:
        return CsvReader(dialect, assoc)
    return XmlReader(element)


def read_items(
    source_type: str,
    path: str,
    *,
    assoc: bool = True,
    element: str = "post",
    dialect: CsvDialect | None = None,
) -> RecordStream:
    """
    Read records from a CSV or XML source.

    The source type is validated before any I/O.

    Args:
        source_type: ``csv`` or ``xml``.
        path: Source descriptor (see ``open_source``).
        assoc: CSV only, use the first row as column names.
        element: XML only, tag name of the record elements.
        dialect: CSV only, delimiter/enclosure/escape characters.

    Returns:
        Lazy record stream.

    Raises:
        InvalidArgumentError: If the source type is unknown.
    """
    reader = create_reader(source_type, assoc=assoc, element=element, dialect=dialect)
    return reader.read(path)
