"""xml-flow: streaming XML to JSON-shaped values.

Converts a stream of XML parse events into compact, convention-driven
values (plain strings, dictionaries and lists) one element at a time,
without building the whole document tree, and renders such values back
to markup.

Progressive API Disclosure:
- Level 1: Simple functions - collect(), to_xml()
- Level 2: Flows - create_flow() / XmlFlow with tag:<name> listeners
- Level 3: Building blocks - FlowTreeBuilder, ContentSimplifier, ExpatTokenizer
"""

__version__ = "0.1.0"
__author__ = "xml-flow developers"

from .api import (
    LxmlAdapter,
    SelectorDispatcher,
    XmlFlow,
    collect,
    create_flow,
    to_markup_text,
    to_xml,
)
from .shared import (
    ALWAYS,
    NEVER,
    SELECTIVE,
    ConfigError,
    ConfigValidationError,
    FlowOptions,
    FlowStatistics,
    PreserveMarkup,
    SerializationError,
    StructureError,
    TokenizerError,
    Value,
    ValueShape,
    XmlFlowError,
    shape_of,
)
from .tokenization import ExpatTokenizer, TokenEvent, TokenEventType
from .tree import ContentSimplifier, FlowTreeBuilder

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "collect",
    "to_xml",
    "to_markup_text",

    # Level 2: Flows and options
    "create_flow",
    "XmlFlow",
    "FlowOptions",
    "PreserveMarkup",
    "ALWAYS",
    "NEVER",
    "SELECTIVE",
    "FlowStatistics",

    # Level 3: Building blocks
    "ContentSimplifier",
    "ExpatTokenizer",
    "FlowTreeBuilder",
    "LxmlAdapter",
    "SelectorDispatcher",
    "TokenEvent",
    "TokenEventType",

    # Values
    "Value",
    "ValueShape",
    "shape_of",

    # Errors
    "ConfigError",
    "ConfigValidationError",
    "SerializationError",
    "StructureError",
    "TokenizerError",
    "XmlFlowError",
]
