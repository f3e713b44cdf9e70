"""Decode the payload markup into a GenericNode tree.

The OmniFocus serializer writes the same logical field either as bare text
(``<name>Call Mom</name>``) or as an element carrying attributes around the
text (``<name lang="en">Call Mom</name>``). Every downstream field read goes
through extract_text() so both shapes read the same way.
"""

from collections.abc import Mapping
from typing import Any
from xml.etree.ElementTree import Element, ParseError

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import fromstring

from focusflow.importer.errors import MarkupCorruptError
from focusflow.importer.models import GenericNode, SlotValue

TEXT_KEY = "#text"
MAX_DOCUMENT_DEPTH = 256


def _local_name(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _direct_text(element: Element) -> str | None:
    text = (element.text or "").strip()
    return text or None


def _convert(element: Element, depth: int) -> SlotValue:
    if depth > MAX_DOCUMENT_DEPTH:
        raise MarkupCorruptError(
            f"Markup nested deeper than {MAX_DOCUMENT_DEPTH} elements"
        )

    attributes = {_local_name(k): v for k, v in element.attrib.items()}
    if not attributes and len(element) == 0:
        return (element.text or "").strip()

    node = GenericNode(
        tag=_local_name(element.tag),
        attributes=attributes,
        text=_direct_text(element),
    )
    for child in element:
        name = _local_name(child.tag)
        value = _convert(child, depth + 1)
        existing = node.children.get(name)
        if existing is None:
            node.children[name] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            node.children[name] = [existing, value]
    return node


def parse_document(payload: bytes | str) -> GenericNode:
    """Parse markup text into its root GenericNode.

    Raises MarkupCorruptError for empty, malformed or unsafe markup.
    """
    if not payload or not payload.strip():
        raise MarkupCorruptError("Payload is empty")
    try:
        root = fromstring(payload)
    except ParseError as e:
        raise MarkupCorruptError(f"Invalid markup: {e}") from e
    except DefusedXmlException as e:
        raise MarkupCorruptError(f"Unsafe markup rejected: {e}") from e
    except UnicodeDecodeError as e:
        raise MarkupCorruptError(f"Payload is not valid text: {e}") from e

    try:
        converted = _convert(root, 0)
    except RecursionError as e:
        raise MarkupCorruptError("Markup nested too deeply to decode") from e
    if isinstance(converted, str):
        # A bare root element still gets a node so callers can rely on the shape.
        return GenericNode(tag=_local_name(root.tag), text=converted or None)
    return converted


def as_list(value: Any) -> list:
    """Normalize an absent, single or repeated slot to a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def extract_text(value: Any) -> str | None:
    """Read a field written either as bare text or as a text-carrying object.

    Returns the string, the nested text slot, or None. Never raises.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, GenericNode):
        return value.text
    if isinstance(value, Mapping):
        text = value.get(TEXT_KEY)
        return text if isinstance(text, str) else None
    return None


def collect_text(value: Any, depth: int = 0) -> str | None:
    """Like extract_text(), but falls back to descendant text.

    Rich-text notes nest their words several levels down
    (``<note><text><p><run><lit>``). Paragraphs are joined by newlines and
    the trimmed runs inside one by single spaces.

    Raises MarkupCorruptError past MAX_DOCUMENT_DEPTH levels.
    """
    if depth > MAX_DOCUMENT_DEPTH:
        raise MarkupCorruptError(
            f"Text nested deeper than {MAX_DOCUMENT_DEPTH} elements"
        )
    text = extract_text(value)
    if text or not isinstance(value, GenericNode):
        return text

    parts: list[str] = []
    for name, slot in value.children.items():
        pieces: list[str] = []
        for item in as_list(slot):
            piece = collect_text(item, depth + 1)
            if piece:
                pieces.append(piece)
        if pieces:
            parts.append(("\n" if name == "p" else " ").join(pieces))
    return "\n".join(parts) if parts else None
