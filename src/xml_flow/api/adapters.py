"""Integration adapter for lxml.

Converts simplified values into ``lxml.etree`` elements and simplifies
existing lxml elements by replaying them through the tree builder, so both
directions follow exactly the same rules as a streamed conversion. lxml is
an optional dependency; it is imported on use.
"""

from typing import Any, Dict, Optional, Tuple

from xml_flow.shared import (
    ATTRS_KEY,
    MARKUP_KEY,
    NAME_KEY,
    RESERVED_KEYS,
    SCRIPT_KEY,
    SCRIPT_TAG,
    TEXT_KEY,
    FlowOptions,
    Node,
    SerializationError,
    Value,
    get_logger,
    name_value,
)
from xml_flow.tree import FlowTreeBuilder

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


class LxmlAdapter:
    """Bidirectional conversion between simplified values and lxml.etree."""

    def __init__(
        self,
        options: Optional[FlowOptions] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            options: Options used when simplifying lxml elements
            correlation_id: Optional correlation ID for request tracking
        """
        self.options = options or FlowOptions(correlation_id=correlation_id)
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @staticmethod
    def is_available() -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
            return True
        except ImportError:
            return False

    def to_target(self, value: Value, name: Optional[str] = None) -> Any:
        """Convert a simplified value to an ``lxml.etree`` element.

        Args:
            value: Simplified value
            name: Element name, required when ``value`` has no ``$name``

        Raises:
            SerializationError: If no element name is available
        """
        import lxml.etree as ET

        if isinstance(value, dict) and value.get(NAME_KEY):
            name = value[NAME_KEY]
        if not name:
            raise SerializationError("Element name required: value has no $name")
        element = ET.Element(name)
        self._fill_element(element, value, ET)
        return element

    def from_target(self, element: Any) -> Node:
        """Simplify an lxml element as if it had been streamed.

        Returns:
            The element's value carrying ``$name``
        """
        import lxml.etree as ET

        if not isinstance(getattr(element, "tag", None), str):
            raise TypeError("Target data is not an lxml element")

        builder = FlowTreeBuilder(self.options)
        for action, node in ET.iterwalk(element, events=("start", "end")):
            is_element = isinstance(node.tag, str)
            if action == "start":
                if is_element:
                    builder.on_open(_qualified_name(node), _attributes(node))
                    if node.text:
                        builder.on_text(node.text)
                continue
            if is_element:
                builder.on_close()
            if node is not element and node.tail:
                builder.on_text(node.tail)
        builder.finish()

        self._logger.debug(
            "Simplified lxml element",
            extra={"tag": element.tag, "elements": builder.statistics.elements_closed}
        )
        return name_value(_qualified_name(element), builder.last_root)

    def _fill_element(self, element: Any, value: Value, ET: Any) -> None:
        if not isinstance(value, dict):
            _append_text(element, _to_text(value))
            return

        for attr_name, attr_value in (value.get(ATTRS_KEY) or {}).items():
            element.set(attr_name, _to_text(attr_value))

        text = value.get(TEXT_KEY)
        if isinstance(text, (list, tuple)):
            _append_text(element, "".join(_to_text(run) for run in text))
        elif text is not None:
            _append_text(element, _to_text(text))

        if value.get(SCRIPT_KEY) is not None:
            ET.SubElement(element, SCRIPT_TAG).text = _to_text(value[SCRIPT_KEY])

        for item in value.get(MARKUP_KEY) or ():
            if isinstance(item, dict):
                element.append(self.to_target(item))
            else:
                _append_text(element, _to_text(item))

        for key, content in value.items():
            if key in RESERVED_KEYS:
                continue
            items = content if isinstance(content, (list, tuple)) else [content]
            for item in items:
                child = ET.SubElement(element, key)
                self._fill_element(child, item, ET)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _append_text(element: Any, text: str) -> None:
    if not text:
        return
    if len(element):
        last = element[-1]
        last.tail = (last.tail or "") + text
    else:
        element.text = (element.text or "") + text


def _split_clark(name: str) -> Tuple[str, str]:
    uri, local = name[1:].split("}", 1)
    return uri, local


def _prefix_for(uri: str, nsmap: Dict[Optional[str], str]) -> Optional[str]:
    if uri == XML_NAMESPACE:
        return "xml"
    for prefix, namespace in nsmap.items():
        if namespace == uri and prefix:
            return prefix
    return None


def _qualified_name(node: Any) -> str:
    # Names are reported as written: prefix:local, never {uri}local
    tag = node.tag
    if not tag.startswith("{"):
        return tag
    _uri, local = _split_clark(tag)
    return f"{node.prefix}:{local}" if node.prefix else local


def _attributes(node: Any) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for key, value in node.attrib.items():
        if key.startswith("{"):
            uri, local = _split_clark(key)
            prefix = _prefix_for(uri, node.nsmap)
            key = f"{prefix}:{local}" if prefix else local
        attributes[key] = value
    return attributes
