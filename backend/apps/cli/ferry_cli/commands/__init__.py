"""
Command implementations registered on the ``ferry`` application.
"""

from .db import init_db
from .importer import import_command
from .translate import translate_file_command, translate_objects_command

__all__ = [
    "init_db",
    "import_command",
    "translate_objects_command",
    "translate_file_command",
]
