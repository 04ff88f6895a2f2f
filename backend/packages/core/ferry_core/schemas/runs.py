"""
Run schemas.

In-memory counters accumulated across one command invocation.
"""

from pydantic import BaseModel, Field


class ImportRun(BaseModel):
    """
    Import run counters.

    ``processed`` grows once per input record whatever the outcome, so at
    the end of a run ``processed == saved + skipped + errors``.
    """

    processed: int = 0
    saved: int = 0
    skipped: int = 0
    errors: int = 0
    errors_details: list[str] = Field(default_factory=list)

    def record_error(self, message: str) -> None:
        self.errors += 1
        self.errors_details.append(message)

    def summary(self) -> str:
        return (
            f"Processed: {self.processed}, Saved: {self.saved}, "
            f"Skipped: {self.skipped}, Errors: {self.errors}"
        )


class TranslationBatchRun(BaseModel):
    """Batch object translation counters."""

    ok: int = 0
    error: int = 0
    limit: int | None = None
    object_type: str | None = None
    errors_details: list[str] = Field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.ok + self.error

    @property
    def limit_reached(self) -> bool:
        return self.limit is not None and self.processed >= self.limit

    def summary(self) -> str:
        return f"Processed {self.processed} objects ({self.error} errors)"
