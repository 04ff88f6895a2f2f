"""
XML source reader.

Streams every element with a given tag name and converts it to a record
without loading the whole document.
"""

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from typing import Any

from ferry_core.exceptions import SourceUnavailableError

from .base import SourceReader
from .records import RecordStream, SourceRecord
from .streams import open_source

ATTRIBUTES_KEY = "@attributes"
TEXT_KEY = "@text"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def element_to_value(node: ET.Element) -> Any:
    """
    Convert an element to plain data.

    Text-only elements become strings, empty elements become ``""``.
    Children are keyed by tag name and repeated tags collapse into a list.
    Attributes go under ``@attributes``; text mixed with children or
    attributes goes under ``@text``.
    """
    children = list(node)
    if not children and not node.attrib:
        return node.text or ""

    data: dict[str, Any] = {}
    if node.attrib:
        data[ATTRIBUTES_KEY] = {_local_name(k): v for k, v in node.attrib.items()}
    text = (node.text or "").strip()
    if text:
        data[TEXT_KEY] = text

    repeated: set[str] = set()
    for child in children:
        key = _local_name(child.tag)
        value = element_to_value(child)
        if key not in data:
            data[key] = value
        elif key in repeated:
            data[key].append(value)
        else:
            data[key] = [data[key], value]
            repeated.add(key)
    return data


class XmlReader(SourceReader):
    """Progressively read every ``element`` node of an XML source."""

    def __init__(self, element: str = "post") -> None:
        self.element = element

    def read(self, path: str) -> RecordStream:
        return RecordStream(self._records(path))

    def _records(self, path: str) -> Iterator[SourceRecord]:
        try:
            with open_source(path) as source:
                target: ET.Element | None = None
                # Open elements, root first
                stack: list[ET.Element] = []
                for event, node in ET.iterparse(source.stream, events=("start", "end")):
                    if event == "start":
                        if target is None and _local_name(node.tag) == self.element:
                            target = node
                        stack.append(node)
                        continue
                    stack.pop()
                    if target is not None and node is not target:
                        continue
                    value = element_to_value(node) if node is target else None
                    node.clear()
                    # Detach finished elements so the tree does not grow with the document
                    if stack:
                        stack[-1].remove(node)
                    if value is not None:
                        target = None
                        yield value if isinstance(value, dict) else {self.element: value}
        except (OSError, ET.ParseError) as e:
            raise SourceUnavailableError(f"Cannot open file: {path}") from e


def read_xml(path: str, element: str = "post") -> RecordStream:
    """
    Read an XML source.

    Args:
        path: Source descriptor (see ``open_source``).
        element: Tag name of the record elements.

    Returns:
        Lazy record stream.
    """
    return XmlReader(element).read(path)
