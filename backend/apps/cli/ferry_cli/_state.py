"""
Shared state passed to commands through the Typer context.
"""

from ferry_core.config import FerrySettings


class CLIState:
    """Settings loaded once by the main callback."""

    def __init__(self, settings: FerrySettings):
        self.settings = settings
