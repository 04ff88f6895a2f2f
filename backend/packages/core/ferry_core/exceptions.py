"""
Ferry exception hierarchy.

Record level errors (conflict, not found, persistence) are caught by the
import loops and counted; run level errors stop the command.
"""


class FerryError(Exception):
    """Base exception for all Ferry failures."""


class InvalidArgumentError(FerryError):
    """Raised for invalid arguments or option combinations."""


class NotFoundError(FerryError):
    """Raised when a referenced object, folder, type or translator is missing."""


class SourceUnavailableError(NotFoundError):
    """Raised when a source file or stream cannot be opened or read."""


class SourceFormatError(FerryError):
    """Raised when a source row cannot be decoded into a record."""


class ConflictError(FerryError):
    """Raised when a natural key already exists under another type."""


class PersistenceError(FerryError):
    """Raised when the store rejects a save."""


class UserAbortError(FerryError):
    """Raised when an interactive confirmation is declined."""
