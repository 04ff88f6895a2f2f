"""Source reader interface."""

from abc import ABC, abstractmethod

from .records import RecordStream


class SourceReader(ABC):
    """Reads one source format into a stream of records."""

    @abstractmethod
    def read(self, path: str) -> RecordStream:
        """
        Open ``path`` and return a lazy record stream.

        The source is opened on first access and released when the stream
        is exhausted, fails or is closed.
        """
