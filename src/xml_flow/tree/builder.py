"""Incremental tree building from parse events.

The builder keeps one frame per open element and never holds more than the
currently open ancestor chain. Each element is simplified the moment it
closes; only its value survives, either folded into the parent frame or,
for the document root, handed back to the caller.
"""

from typing import Callable, Dict, List, Optional

from xml_flow.shared import (
    FlowOptions,
    FlowStatistics,
    StructureError,
    TokenizerError,
    Value,
    get_logger,
)
from xml_flow.tokenization import TokenEvent, TokenEventType

from .frames import Frame, FrameStack
from .simplifier import ContentSimplifier

# Called with (tag name, simplified value) for every closed element
ElementCallback = Callable[[str, Value], None]


class FlowTreeBuilder:
    """Builds simplified values from a push sequence of parse events.

    Events are processed one at a time, synchronously and in document
    order; the builder tolerates arbitrary gaps between events.
    """

    def __init__(
        self,
        options: Optional[FlowOptions] = None,
        on_element: Optional[ElementCallback] = None,
        statistics: Optional[FlowStatistics] = None,
    ) -> None:
        """Initialize tree builder.

        Args:
            options: Resolved conversion options
            on_element: Callback offered every closed element before its
                value is folded into the parent
            statistics: Statistics object to update, shared with the flow
        """
        self.options = options or FlowOptions()
        self.statistics = statistics if statistics is not None else FlowStatistics()
        self.logger = get_logger(__name__, self.options.correlation_id, "flow_tree_builder")

        self._on_element = on_element
        self._simplifier = ContentSimplifier(self.options)
        self._stack = FrameStack()
        self._last_root: Optional[Value] = None

    @property
    def depth(self) -> int:
        """Number of currently open elements."""
        return self._stack.depth

    @property
    def open_elements(self) -> List[str]:
        """Names of the open elements, outermost first."""
        return self._stack.names()

    @property
    def last_root(self) -> Optional[Value]:
        """Value of the most recently closed document root, if any."""
        return self._last_root

    def process(self, event: TokenEvent) -> None:
        """Process a single parse event.

        Raises:
            TokenizerError: For ERROR events
            StructureError: If the event breaks element nesting
        """
        if event.type == TokenEventType.OPEN_TAG:
            self.on_open(event.value, event.attributes)
        elif event.type == TokenEventType.TEXT:
            self.on_text(event.value)
        elif event.type == TokenEventType.CDATA:
            self.on_cdata(event.value)
        elif event.type == TokenEventType.CLOSE_TAG:
            self.on_close(event.value)
        elif event.type == TokenEventType.ERROR:
            raise TokenizerError(event.value or "Malformed markup", event.position)
        else:
            raise ValueError(f"Unsupported event type: {event.type}")

    def on_open(self, name: str, attributes: Optional[Dict[str, str]] = None) -> None:
        """Open an element."""
        self._stack.push(Frame(name=name, attributes=dict(attributes or {})))
        self.statistics.elements_opened += 1
        self.statistics.record_depth(self._stack.depth)

    def on_text(self, text: str) -> None:
        """Add character data to the innermost open element.

        Text outside the document element carries no content and is ignored.
        """
        frame = self._stack.top
        if frame is not None:
            frame.append_text(text)

    def on_cdata(self, text: str) -> None:
        """Add the content of a CDATA section as text."""
        self.on_text(text)

    def on_close(self, name: Optional[str] = None) -> Value:
        """Close the innermost element and return its simplified value.

        Args:
            name: Tag name from the close event; checked against the open frame

        Raises:
            StructureError: If no element is open or the name does not match
        """
        if self._stack.is_empty:
            raise StructureError(
                f"Close event </{name or ''}> without an open element"
            )
        top = self._stack.top
        if name is not None and top.name != name:
            raise StructureError(
                f"Close event </{name}> does not match open element <{top.name}>",
                open_elements=self._stack.names(),
            )

        frame = self._stack.pop()
        value = self._simplifier.simplify(frame)
        self.statistics.elements_closed += 1

        if self._on_element is not None:
            self._on_element(frame.name, value)

        parent = self._stack.top
        if parent is None:
            self._last_root = value
        else:
            parent.add_child(frame.name, value)
        return value

    def finish(self) -> None:
        """Check that the event sequence ended with every element closed.

        Raises:
            StructureError: If elements are still open
        """
        if not self._stack.is_empty:
            unclosed = self._stack.names()
            raise StructureError(
                f"Input ended with {len(unclosed)} unclosed element(s): "
                + ", ".join(f"<{tag}>" for tag in unclosed),
                open_elements=unclosed,
            )
        self.logger.debug(
            "Tree building completed",
            extra={
                "elements_closed": self.statistics.elements_closed,
                "max_depth": self.statistics.max_depth,
            }
        )

    def reset(self) -> None:
        """Drop all open frames."""
        self._stack.clear()
        self._last_root = None
