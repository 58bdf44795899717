"""Serialization of simplified values back to markup.

This is the structural inverse of simplification: element structure,
attributes, text and document order are reproduced, while exact whitespace
and the distinction between attributes-only flattening and child elements
are not.
"""

from typing import Any, List, Optional
from xml.sax.saxutils import escape

from xml_flow.shared import (
    ATTRS_KEY,
    MARKUP_KEY,
    NAME_KEY,
    RESERVED_KEYS,
    SCRIPT_KEY,
    SCRIPT_TAG,
    TEXT_KEY,
    SerializationError,
)

_ATTRIBUTE_ENTITIES = {'"': "&quot;"}
_FORBIDDEN_NAME_CHARACTERS = frozenset('<>/"\'=')


def to_xml(value: Any) -> str:
    """Render a simplified value as markup text.

    A node without ``$name`` renders only its content.

    Examples:
        >>> to_xml({"$name": "tag", "$attrs": {"id": 3}})
        '<tag id="3"></tag>'
        >>> to_xml({"$name": "tag", "$markup": ["text", {"$name": "j", "$text": "stuff"}]})
        '<tag>text<j>stuff</j></tag>'

    Raises:
        SerializationError: If an element or attribute name cannot be written
            or a node without ``$name`` carries attributes
    """
    parts: List[str] = []
    if isinstance(value, dict):
        _write_node(value, value.get(NAME_KEY), parts)
    elif isinstance(value, (list, tuple)):
        for item in value:
            parts.append(to_xml(item))
    else:
        parts.append(escape(_to_text(value)))
    return "".join(parts)


to_markup_text = to_xml


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _validate_name(name: Any, kind: str) -> str:
    if not isinstance(name, str) or not name:
        raise SerializationError(f"{kind} name must be a non-empty string")
    if any(ch.isspace() for ch in name):
        raise SerializationError(f"Invalid {kind} name {name!r}: whitespace not allowed")
    if _FORBIDDEN_NAME_CHARACTERS.intersection(name):
        raise SerializationError(
            f"Invalid {kind} name {name!r}: characters <>/\"'= not allowed"
        )
    return name


def _write_node(node: dict, name: Optional[str], parts: List[str]) -> None:
    if name is None and node.get(ATTRS_KEY):
        raise SerializationError("Attributes require an element name: node has no $name")
    if name is not None:
        _validate_name(name, "element")
        parts.append(f"<{name}")
        attrs = node.get(ATTRS_KEY) or {}
        for attr_name, attr_value in attrs.items():
            _validate_name(attr_name, "attribute")
            parts.append(
                f' {attr_name}="{escape(_to_text(attr_value), _ATTRIBUTE_ENTITIES)}"'
            )
        parts.append(">")

    text = node.get(TEXT_KEY)
    if isinstance(text, (list, tuple)):
        parts.extend(escape(_to_text(run)) for run in text)
    elif text is not None:
        parts.append(escape(_to_text(text)))

    if node.get(SCRIPT_KEY) is not None:
        # Script bodies are raw
        parts.append(f"<{SCRIPT_TAG}>{_to_text(node[SCRIPT_KEY])}</{SCRIPT_TAG}>")

    for item in node.get(MARKUP_KEY) or ():
        if isinstance(item, dict):
            _write_node(item, item.get(NAME_KEY), parts)
        else:
            parts.append(escape(_to_text(item)))

    for key, content in node.items():
        if key in RESERVED_KEYS:
            continue
        _write_content(key, content, parts)

    if name is not None:
        parts.append(f"</{name}>")


def _write_content(key: str, content: Any, parts: List[str]) -> None:
    if isinstance(content, (list, tuple)):
        for item in content:
            _write_content(key, item, parts)
    elif isinstance(content, dict):
        _write_node(content, key, parts)
    else:
        _validate_name(key, "element")
        parts.append(f"<{key}>{escape(_to_text(content))}</{key}>")
