"""Parse events consumed by the tree builder."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Optional


class TokenEventType(Enum):
    """Event types emitted by the tokenizer."""

    OPEN_TAG = auto()   # Element start with its attributes
    TEXT = auto()       # Character data between tags
    CDATA = auto()      # Content of a <![CDATA[ ... ]]> section
    CLOSE_TAG = auto()  # Element end
    ERROR = auto()      # Malformed markup reported by the tokenizer


@dataclass(frozen=True)
class TokenPosition:
    """Position information for parse events."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")


@dataclass
class TokenEvent:
    """A single parse event.

    ``value`` holds the tag name for OPEN_TAG/CLOSE_TAG, the character data
    for TEXT/CDATA and the error message for ERROR.
    """

    type: TokenEventType
    value: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    position: Optional[TokenPosition] = None

    def __post_init__(self) -> None:
        """Validate event values."""
        if self.type in (TokenEventType.OPEN_TAG, TokenEventType.CLOSE_TAG) and not self.value:
            raise ValueError("Tag events require a tag name")
        if self.attributes and self.type is not TokenEventType.OPEN_TAG:
            raise ValueError("Only OPEN_TAG events carry attributes")

    @classmethod
    def open_tag(
        cls,
        name: str,
        attributes: Optional[Dict[str, str]] = None,
        position: Optional[TokenPosition] = None,
    ) -> "TokenEvent":
        """Create an OPEN_TAG event."""
        return cls(TokenEventType.OPEN_TAG, name, dict(attributes or {}), position)

    @classmethod
    def text(cls, data: str, position: Optional[TokenPosition] = None) -> "TokenEvent":
        """Create a TEXT event."""
        return cls(TokenEventType.TEXT, data, position=position)

    @classmethod
    def cdata(cls, data: str, position: Optional[TokenPosition] = None) -> "TokenEvent":
        """Create a CDATA event."""
        return cls(TokenEventType.CDATA, data, position=position)

    @classmethod
    def close_tag(
        cls, name: str, position: Optional[TokenPosition] = None
    ) -> "TokenEvent":
        """Create a CLOSE_TAG event."""
        return cls(TokenEventType.CLOSE_TAG, name, position=position)
