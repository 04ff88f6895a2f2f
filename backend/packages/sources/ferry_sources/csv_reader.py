"""
CSV source reader.

Reads CSV sources row by row while holding a shared lock on local files.
"""

import csv
import fcntl
import io
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel, Field

from ferry_core.exceptions import SourceFormatError

from .base import SourceReader
from .records import RecordStream, SourceRecord
from .streams import SourceStream, open_source


class CsvDialect(BaseModel):
    """
    CSV dialect options.

    An ``escape`` equal to ``enclosure`` (or empty) means quotes are escaped
    by doubling them.
    """

    delimiter: str = Field(default=",", min_length=1, max_length=1)
    enclosure: str = Field(default='"', min_length=1, max_length=1)
    escape: str = Field(default='"', max_length=1)

    def reader_options(self) -> dict[str, Any]:
        escapechar = None if self.escape in ("", self.enclosure) else self.escape
        return {
            "delimiter": self.delimiter,
            "quotechar": self.enclosure,
            "escapechar": escapechar,
            "doublequote": True,
        }


@contextmanager
def _shared_lock(source: SourceStream) -> Generator[None, None, None]:
    """Hold a shared lock on local files for the duration of the read."""
    if not source.local:
        yield
        return
    fd = source.stream.fileno()
    fcntl.flock(fd, fcntl.LOCK_SH)
    try:
        yield
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)


class CsvReader(SourceReader):
    """
    Progressively read a CSV source, line by line.

    With ``assoc`` the first row is the header and rows are yielded as
    column name to value maps; otherwise every row, header included, is
    yielded indexed by column position.
    """

    def __init__(self, dialect: CsvDialect | None = None, assoc: bool = True) -> None:
        self.dialect = dialect or CsvDialect()
        self.assoc = assoc

    def read(self, path: str) -> RecordStream:
        return RecordStream(self._rows(path))

    def _rows(self, path: str) -> Iterator[SourceRecord]:
        with open_source(path) as source:
            text = io.TextIOWrapper(source.stream, encoding="utf-8-sig", newline="")
            try:
                with _shared_lock(source):
                    yield from self._decode(csv.reader(text, **self.dialect.reader_options()), path)
            finally:
                # Leave the byte stream to the source release hook.
                text.detach()

    def _decode(self, reader: Any, path: str) -> Iterator[SourceRecord]:
        rows = self._checked(reader, path)
        if not self.assoc:
            for row in rows:
                if row:
                    yield dict(enumerate(row))
            return

        header = next(rows, None)
        if header is None:
            return
        for row in rows:
            if not row:
                continue
            if len(row) != len(header):
                raise SourceFormatError(
                    f"Row at line {reader.line_num} of {path} has {len(row)} columns, "
                    f"header has {len(header)}"
                )
            yield dict(zip(header, row))

    @staticmethod
    def _checked(reader: Any, path: str) -> Iterator[list[str]]:
        """Yield parsed rows; undecodable bytes and malformed quoting are format errors."""
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except (UnicodeDecodeError, csv.Error) as e:
                raise SourceFormatError(
                    f"Cannot decode {path} after line {reader.line_num}: {e}"
                ) from e
            yield row


def read_csv(path: str, dialect: CsvDialect | None = None, assoc: bool = True) -> RecordStream:
    """
    Read a CSV source.

    Args:
        path: Source descriptor (see ``open_source``).
        dialect: Delimiter, enclosure and escape characters.
        assoc: Use the first row as column names.

    Returns:
        Lazy record stream.
    """
    return CsvReader(dialect, assoc).read(path)
