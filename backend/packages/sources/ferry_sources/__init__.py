"""
Ferry sources package.

Streaming CSV and XML readers over local files, standard input, URLs
and registered filesystem mounts.
"""

from .base import SourceReader
from .csv_reader import CsvDialect, CsvReader, read_csv
from .reader import SourceFormat, create_reader, read_items
from .records import RecordStream, SourceRecord
from .streams import (
    SourceStream,
    open_source,
    register_mount,
    register_stream_handler,
    unregister_mount,
)
from .xml_reader import XmlReader, element_to_value, read_xml

__version__ = "0.1.0"

__all__ = [
    "CsvDialect",
    "CsvReader",
    "RecordStream",
    "SourceFormat",
    "SourceReader",
    "SourceRecord",
    "SourceStream",
    "XmlReader",
    "create_reader",
    "element_to_value",
    "open_source",
    "read_csv",
    "read_items",
    "read_xml",
    "register_mount",
    "register_stream_handler",
    "unregister_mount",
]
