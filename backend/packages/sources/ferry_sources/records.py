"""
Record stream abstraction.

A RecordStream is a lazy, forward-only sequence of source records with an
explicit has_next/next contract and a close hook.
"""

from collections.abc import Iterator
from typing import Any

SourceRecord = dict[Any, Any]

_MISSING = object()


class RecordStream(Iterator[SourceRecord]):
    """
    Forward-only stream of source records.

    Wraps a record generator. The generator owns the underlying source and
    releases it in its own ``finally`` block, which runs on exhaustion, on
    error, or when ``close()`` is called.
    """

    def __init__(self, records: Iterator[SourceRecord]) -> None:
        self._records = records
        self._buffered: Any = _MISSING
        self._done = False

    def has_next(self) -> bool:
        """Return whether another record is available, reading ahead one."""
        if self._buffered is not _MISSING:
            return True
        if self._done:
            return False
        try:
            self._buffered = next(self._records)
        except StopIteration:
            self._done = True
            return False
        except BaseException:
            self.close()
            raise
        return True

    def next(self) -> SourceRecord:
        """
        Return the next record.

        Raises:
            StopIteration: When the stream is exhausted.
        """
        if not self.has_next():
            raise StopIteration
        record = self._buffered
        self._buffered = _MISSING
        return record

    __next__ = next

    def __iter__(self) -> "RecordStream":
        return self

    def close(self) -> None:
        """Stop reading and release the source."""
        self._done = True
        self._buffered = _MISSING
        close = getattr(self._records, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "RecordStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:  # type: ignore[no-untyped-def]
        self.close()
        return False
