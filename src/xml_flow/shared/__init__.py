"""Shared utilities for xml-flow conversions.

This module provides the configuration objects, error types, statistics,
value-shape helpers and logging used across the tokenization, tree and
API layers.
"""

from .config import (
    ALWAYS,
    NEVER,
    SELECTIVE,
    ConfigError,
    ConfigValidationError,
    FlowOptions,
    PreserveMarkup,
)
from .errors import (
    SerializationError,
    StructureError,
    TokenizerError,
    XmlFlowError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import FlowStatistics
from .values import (
    ATTRS_KEY,
    MARKUP_KEY,
    NAME_KEY,
    RESERVED_KEYS,
    SCRIPT_KEY,
    SCRIPT_TAG,
    TEXT_KEY,
    Node,
    Value,
    ValueShape,
    is_script_tag,
    name_value,
    shape_of,
)

__all__ = [
    "ALWAYS",
    "NEVER",
    "SELECTIVE",
    "ConfigError",
    "ConfigValidationError",
    "FlowOptions",
    "PreserveMarkup",
    "SerializationError",
    "StructureError",
    "TokenizerError",
    "XmlFlowError",
    "CorrelationLogger",
    "get_logger",
    "FlowStatistics",
    "ATTRS_KEY",
    "MARKUP_KEY",
    "NAME_KEY",
    "RESERVED_KEYS",
    "SCRIPT_KEY",
    "SCRIPT_TAG",
    "TEXT_KEY",
    "Node",
    "Value",
    "ValueShape",
    "is_script_tag",
    "name_value",
    "shape_of",
]
