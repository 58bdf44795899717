"""Exception hierarchy for xml-flow conversions.

Every error is terminal for the conversion that raised it: the flow stops
delivering events and reports the error once on its ``error`` channel.
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from xml_flow.tokenization.events import TokenPosition


class XmlFlowError(Exception):
    """Base exception for all xml-flow errors."""


class TokenizerError(XmlFlowError):
    """Malformed markup reported by the tokenizer."""

    def __init__(
        self, message: str, position: Optional["TokenPosition"] = None
    ) -> None:
        super().__init__(message)
        self.position = position

    def __str__(self) -> str:
        message = super().__str__()
        if self.position is None:
            return message
        return f"{message} (line {self.position.line}, column {self.position.column})"


class StructureError(XmlFlowError):
    """Element nesting invariant broken by the event sequence."""

    def __init__(
        self, message: str, open_elements: Optional[List[str]] = None
    ) -> None:
        super().__init__(message)
        self.open_elements = list(open_elements or [])


class SerializationError(XmlFlowError, ValueError):
    """Value that cannot be rendered as markup."""
