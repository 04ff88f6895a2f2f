"""
Pydantic schemas for command options and run results.
"""

from .options import ImportMode, ImportOptions
from .runs import ImportRun, TranslationBatchRun

__all__ = [
    # Options
    "ImportMode",
    "ImportOptions",
    # Runs
    "ImportRun",
    "TranslationBatchRun",
]
