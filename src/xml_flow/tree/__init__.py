"""Tree building and content simplification for xml-flow.

Key Components:
    FlowTreeBuilder: Consumes parse events and closes elements into values
    ContentSimplifier: Reduces a closed frame to its smallest value shape
    Frame: In-progress state of one open element
    FrameStack: Explicit stack of open frames
"""

from .builder import ElementCallback, FlowTreeBuilder
from .frames import Frame, FrameStack
from .simplifier import ContentSimplifier, is_mixed, simplify

__all__ = [
    "ContentSimplifier",
    "ElementCallback",
    "FlowTreeBuilder",
    "Frame",
    "FrameStack",
    "is_mixed",
    "simplify",
]
