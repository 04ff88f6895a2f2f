"""
Schema service.

Reads object type field metadata.
"""

from sqlalchemy.orm import Session

from .repository import TypeRegistry


class SchemaService:
    """Translatable field lookup, cached per object type."""

    def __init__(self, session: Session, registry: TypeRegistry | None = None) -> None:
        self.registry = registry or TypeRegistry(session)
        self._translatable: dict[str, list[str]] = {}

    def translatable_fields(self, object_type: str) -> list[str]:
        """
        Return the fields of ``object_type`` flagged as translatable.

        Raises:
            NotFoundError: If the type is not registered.
        """
        if object_type not in self._translatable:
            self._translatable[object_type] = self.registry.get_type(object_type).translatable
        return self._translatable[object_type]
