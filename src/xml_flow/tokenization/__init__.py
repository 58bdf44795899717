"""Tokenization layer for xml-flow.

Turns markup chunks into a push sequence of parse events.

Key Components:
    ExpatTokenizer: Incremental tokenizer over the expat parser
    TokenEvent: A single open-tag, text, CDATA, close-tag or error event
    TokenEventType: Enumeration of event types
    TokenPosition: Line/column/offset of an event
"""

from .events import TokenEvent, TokenEventType, TokenPosition
from .tokenizer import EventSink, ExpatTokenizer

__all__ = [
    "EventSink",
    "ExpatTokenizer",
    "TokenEvent",
    "TokenEventType",
    "TokenPosition",
]
