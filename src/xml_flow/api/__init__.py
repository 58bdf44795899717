"""Public API for xml-flow.

Key Components:
    XmlFlow: Emitter converting one markup source into simplified values
    create_flow: Create a flow over a source
    collect: Convert a source and return the values emitted for one tag
    SelectorDispatcher: Registry of ``tag:<name>``, ``end`` and ``error`` listeners
    to_xml: Render a simplified value as markup
    LxmlAdapter: Optional conversion to and from lxml.etree
"""

from .adapters import LxmlAdapter
from .dispatch import (
    END_EVENT,
    ERROR_EVENT,
    TAG_PREFIX,
    Listener,
    SelectorDispatcher,
    tag_selector,
)
from .flow import InputType, XmlFlow, collect, create_flow
from .serializer import to_markup_text, to_xml

__all__ = [
    "END_EVENT",
    "ERROR_EVENT",
    "TAG_PREFIX",
    "InputType",
    "Listener",
    "LxmlAdapter",
    "SelectorDispatcher",
    "XmlFlow",
    "collect",
    "create_flow",
    "tag_selector",
    "to_markup_text",
    "to_xml",
]
