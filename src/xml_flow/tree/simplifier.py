"""Content simplification: reducing a closed frame to a single value.

The simplifier picks the smallest unambiguous shape for an element:

* a plain string for text-only elements without attributes,
* a flat node (``$attrs``, ``$text``/``$script`` and one content key per
  distinct child tag) when document order between text and children does
  not carry meaning,
* a markup node (``$attrs`` and an ordered ``$markup`` list of text runs
  and ``$name``-bearing children) when it does, or when the options ask
  for it.

Text is normalized and trimmed per run before any emptiness or ordering
test, and whitespace-only runs are always dropped. Script containers keep
their text verbatim and report it under ``$script``.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from xml_flow.shared import (
    ATTRS_KEY,
    MARKUP_KEY,
    SCRIPT_KEY,
    TEXT_KEY,
    FlowOptions,
    Node,
    PreserveMarkup,
    Value,
    name_value,
)

from .frames import Frame

_WHITESPACE_RUN = re.compile(r"\s+")


class ContentSimplifier:
    """Reduces closed frames to values according to resolved options.

    The simplifier holds no per-document state; one instance can serve any
    number of frames as long as the options stay the same.
    """

    def __init__(self, options: Optional[FlowOptions] = None) -> None:
        self.options = options or FlowOptions()

    def clean_text(self, run: str, verbatim: bool = False) -> Optional[str]:
        """Apply normalize/trim to one text run.

        Returns:
            The cleaned run, or None when the run is whitespace-only
        """
        if not run or not run.strip():
            return None
        if verbatim:
            return run
        if self.options.normalize:
            run = _WHITESPACE_RUN.sub(" ", run)
        if self.options.trim:
            run = run.strip()
        return run

    def simplify(self, frame: Frame) -> Value:
        """Reduce a frame to its value.

        The returned value never carries ``$name``; callers that need the
        element's identity attached use :func:`xml_flow.shared.name_value`.
        """
        frame.close()
        attrs = dict(frame.attributes)
        gaps = [self.clean_text(run, verbatim=frame.is_script) for run in frame.text_runs]
        texts = [text for text in gaps if text is not None]

        if self._uses_markup(gaps, frame.children, texts, frame.is_script):
            return self._markup_node(attrs, gaps, frame.children)
        return self._flat_value(attrs, texts, frame.children, frame.is_script)

    def _uses_markup(
        self,
        gaps: Sequence[Optional[str]],
        children: Sequence[Tuple[str, Value]],
        texts: Sequence[str],
        is_script: bool = False,
    ) -> bool:
        if is_script and not children:
            # Script leaves always report their body under $script
            return False
        mode = self.options.preserve_markup
        if mode is PreserveMarkup.NEVER:
            return False
        if mode is PreserveMarkup.ALWAYS:
            return bool(texts or children)
        return is_mixed(gaps, len(children))

    @staticmethod
    def _markup_node(
        attrs: Dict[str, str],
        gaps: Sequence[Optional[str]],
        children: Sequence[Tuple[str, Value]],
    ) -> Node:
        markup: List[Value] = []
        for index, (name, value) in enumerate(children):
            if gaps[index] is not None:
                markup.append(gaps[index])
            markup.append(name_value(name, value))
        if gaps[-1] is not None:
            markup.append(gaps[-1])

        node: Node = {}
        if attrs:
            node[ATTRS_KEY] = attrs
        node[MARKUP_KEY] = markup
        return node

    @staticmethod
    def _flat_value(
        attrs: Dict[str, str],
        texts: List[str],
        children: Sequence[Tuple[str, Value]],
        is_script: bool,
    ) -> Value:
        text_key = SCRIPT_KEY if is_script else TEXT_KEY

        if not children:
            if not texts:
                # Attributes alone are flattened into content keys
                return attrs if attrs else ""
            if not attrs:
                return texts[0]
            return {ATTRS_KEY: attrs, text_key: texts[0]}

        node: Node = {}
        if attrs:
            node[ATTRS_KEY] = attrs
        if texts:
            if is_script:
                node[SCRIPT_KEY] = "".join(texts)
            else:
                node[TEXT_KEY] = texts[0] if len(texts) == 1 else texts

        grouped: Dict[str, List[Value]] = {}
        for name, value in children:
            grouped.setdefault(name, []).append(value)
        for name, values in grouped.items():
            node[name] = values[0] if len(values) == 1 else values
        return node


def is_mixed(gaps: Sequence[Optional[Any]], child_count: int) -> bool:
    """Check whether surviving text and children are interleaved.

    Args:
        gaps: Cleaned text per gap (None for dropped runs); gap ``i`` precedes
            child ``i`` and the last gap follows the last child
        child_count: Number of children

    Returns:
        True if some text sits between two children, or text both precedes
        the first child and follows the last one
    """
    if child_count == 0:
        return False
    if any(gaps[index] is not None for index in range(1, child_count)):
        return True
    return gaps[0] is not None and gaps[child_count] is not None


def simplify(frame: Frame, options: Optional[FlowOptions] = None) -> Value:
    """Reduce a single closed frame with the given options."""
    return ContentSimplifier(options).simplify(frame)
