"""Element frames and the explicit frame stack.

A frame is the in-progress state of one currently open element. Nesting
is tracked with an explicit stack rather than recursion, so document depth
is bounded only by memory and processing can stop between any two events.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from xml_flow.shared import Value, is_script_tag


@dataclass(eq=False)
class Frame:
    """State of one open element.

    ``text_runs`` holds one raw string per gap between child boundaries:
    index ``i`` is the text before ``children[i]`` and the last entry is the
    text after the last child. Once the frame is closed it always holds
    ``len(children) + 1`` runs, empty strings marking empty gaps.
    """

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List[Tuple[str, Value]] = field(default_factory=list)
    text_runs: List[str] = field(default_factory=list)
    is_script: bool = False

    # Fragments of the current gap, joined when the gap ends
    _text_buffer: List[str] = field(default_factory=list, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate frame and mark script containers."""
        if not self.name:
            raise ValueError("Frame name cannot be empty")
        self.is_script = self.is_script or is_script_tag(self.name)

    @property
    def closed(self) -> bool:
        """Whether the frame has been closed."""
        return self._closed

    def append_text(self, text: str) -> None:
        """Add a raw text fragment to the current gap, verbatim."""
        if self._closed:
            raise ValueError(f"Frame <{self.name}> is closed")
        if text:
            self._text_buffer.append(text)

    def add_child(self, name: str, value: Value) -> None:
        """End the current gap and record a completed child."""
        if self._closed:
            raise ValueError(f"Frame <{self.name}> is closed")
        self._flush_text_buffer()
        self.children.append((name, value))

    def close(self) -> None:
        """End the last gap; the frame accepts no further content."""
        if not self._closed:
            self._flush_text_buffer()
            self._closed = True

    def _flush_text_buffer(self) -> None:
        self.text_runs.append("".join(self._text_buffer))
        self._text_buffer.clear()


class FrameStack:
    """Stack holding one frame per currently open element."""

    def __init__(self) -> None:
        self._frames: List[Frame] = []

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Frame]:
        """Iterate from the outermost to the innermost open frame."""
        return iter(self._frames)

    @property
    def depth(self) -> int:
        """Number of open elements."""
        return len(self._frames)

    @property
    def is_empty(self) -> bool:
        """Whether no element is open."""
        return not self._frames

    @property
    def top(self) -> Optional[Frame]:
        """Innermost open frame, or None."""
        return self._frames[-1] if self._frames else None

    def push(self, frame: Frame) -> None:
        """Open a frame."""
        self._frames.append(frame)

    def pop(self) -> Frame:
        """Remove and return the innermost frame.

        Raises:
            IndexError: If the stack is empty
        """
        if not self._frames:
            raise IndexError("pop from empty frame stack")
        return self._frames.pop()

    def names(self) -> List[str]:
        """Names of the open elements, outermost first."""
        return [frame.name for frame in self._frames]

    def clear(self) -> None:
        """Drop every open frame."""
        self._frames.clear()
