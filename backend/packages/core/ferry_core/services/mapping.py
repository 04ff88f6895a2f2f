"""
Field mapping.

Renames source fields to destination paths, building nested structures
for dotted paths.
"""

from collections.abc import Mapping
from typing import Any

from ferry_core.exceptions import InvalidArgumentError


def insert_path(data: dict[str, Any], path: str, value: Any) -> dict[str, Any]:
    """
    Insert ``value`` at a dotted ``path`` in ``data``.

    Intermediate dictionaries are created as needed.

    Raises:
        InvalidArgumentError: If an intermediate key holds a non-mapping value.
    """
    keys = path.split(".")
    node = data
    for key in keys[:-1]:
        child = node.setdefault(key, {})
        if not isinstance(child, dict):
            raise InvalidArgumentError(f'Cannot insert "{path}": "{key}" is not a structure')
        node = child
    node[keys[-1]] = value
    return data


def transform(record: Mapping[Any, Any], mapping: Mapping[Any, str]) -> dict[Any, Any]:
    """
    Map a source record to destination fields.

    With an empty mapping the record is returned unchanged. Otherwise only
    mapped fields are kept; mapped keys missing from the record are skipped.

    Args:
        record: Source record.
        mapping: Source key to destination path (``a.b.c`` for nested fields).

    Returns:
        Destination record.
    """
    if not mapping:
        return dict(record)

    data: dict[Any, Any] = {}
    for source_key, destination in mapping.items():
        # Position indexed rows are mapped with numeric string keys
        if source_key not in record and str(source_key).isdigit():
            source_key = int(source_key)
        if source_key not in record:
            continue
        insert_path(data, destination, record[source_key])
    return data
