"""The value shape language produced by simplification.

A value is either a plain string (``SCALAR``) or a dictionary. Dictionaries
use reserved ``$``-prefixed keys next to content keys named after child
tags. Lists only ever appear inside a node: as the value of a content key
that occurred more than once, as a multi-run ``$text``, or as ``$markup``.
"""

from enum import Enum, auto
from typing import Any, Dict, Union

NAME_KEY = "$name"
ATTRS_KEY = "$attrs"
TEXT_KEY = "$text"
SCRIPT_KEY = "$script"
MARKUP_KEY = "$markup"

RESERVED_KEYS = frozenset({NAME_KEY, ATTRS_KEY, TEXT_KEY, SCRIPT_KEY, MARKUP_KEY})

SCRIPT_TAG = "script"

Node = Dict[str, Any]
Value = Union[str, Node]


class ValueShape(Enum):
    """Variant tags for simplified values."""

    SCALAR = auto()       # Plain text
    FLAT_NODE = auto()    # Attributes, $text/$script and content keys
    MARKUP_NODE = auto()  # Document order kept under $markup


def shape_of(value: Value) -> ValueShape:
    """Classify a simplified value.

    Raises:
        TypeError: If ``value`` is neither a string nor a dictionary
    """
    if isinstance(value, str):
        return ValueShape.SCALAR
    if isinstance(value, dict):
        if MARKUP_KEY in value:
            return ValueShape.MARKUP_NODE
        return ValueShape.FLAT_NODE
    raise TypeError(f"Not a simplified value: {type(value).__name__}")


def is_script_tag(name: str) -> bool:
    """Check whether ``name`` is a script-bearing container."""
    return name.lower() == SCRIPT_TAG


def name_value(name: str, value: Value) -> Node:
    """Give a value its own ``$name`` when position no longer implies it.

    Strings become ``{"$name": name, "$text": value}`` (``$script`` for
    script tags, and no text key at all for an empty string). Nodes are
    copied with ``$name`` as their first key; the original is not touched.
    """
    if isinstance(value, str):
        named: Node = {NAME_KEY: name}
        if value:
            named[SCRIPT_KEY if is_script_tag(name) else TEXT_KEY] = value
        return named

    named = {NAME_KEY: name}
    named.update(value)
    return named
