"""
Service layer.

Import, translation and store access services.
"""

from .import_service import ImportService
from .mapping import insert_path, transform
from .pagination import CursorPaginator, paginate
from .repository import ObjectRepository, TranslationRepository, TypeRegistry
from .schema_service import SchemaService
from .tree_service import TreeService

__all__ = [
    "ImportService",
    "TreeService",
    "SchemaService",
    # Store access
    "ObjectRepository",
    "TranslationRepository",
    "TypeRegistry",
    "CursorPaginator",
    "paginate",
    # Mapping
    "insert_path",
    "transform",
]
