"""Selector registry and synchronous event dispatch.

Listeners are registered per event name. Element listeners use selectors of
the form ``tag:<name>``; the flow also emits ``end`` once after the input is
exhausted and ``error`` when the conversion fails. Multiple listeners on the
same event run in registration order. Listener exceptions are not caught.
"""

import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from xml_flow.shared import Value, get_logger, name_value

Listener = Callable[..., Any]

TAG_PREFIX = "tag:"
END_EVENT = "end"
ERROR_EVENT = "error"


def tag_selector(name: str) -> str:
    """Build the selector matching elements named ``name``."""
    if not name:
        raise ValueError("Tag name cannot be empty")
    return f"{TAG_PREFIX}{name}"


@dataclass(eq=False)
class _Registration:
    listener: Listener
    once: bool = False


class SelectorDispatcher:
    """Registry mapping event names to ordered listener lists."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.logger = get_logger(__name__, correlation_id, "selector_dispatcher")
        self._registrations: Dict[str, List[_Registration]] = {}
        self._end_emitted = False

    @property
    def end_emitted(self) -> bool:
        """Whether ``end`` has fired."""
        return self._end_emitted

    def on(self, event: str, listener: Optional[Listener] = None) -> Any:
        """Register a listener.

        Can be used as a decorator when ``listener`` is omitted::

            @flow.on("tag:item")
            def handle(item):
                ...

        Returns:
            The registered listener
        """
        if listener is None:
            return lambda func: self._register(event, func, once=False)
        return self._register(event, listener, once=False)

    def once(self, event: str, listener: Optional[Listener] = None) -> Any:
        """Register a listener removed after its first invocation."""
        if listener is None:
            return lambda func: self._register(event, func, once=True)
        return self._register(event, listener, once=True)

    def off(self, event: str, listener: Optional[Listener] = None) -> int:
        """Remove registrations.

        Args:
            event: Event name
            listener: Listener to remove (its most recent registration);
                all listeners of the event when omitted

        Returns:
            Number of registrations removed
        """
        registrations = self._registrations.get(event)
        if not registrations:
            return 0
        if listener is None:
            removed = len(registrations)
            del self._registrations[event]
            return removed
        for index in range(len(registrations) - 1, -1, -1):
            if registrations[index].listener == listener:
                del registrations[index]
                if not registrations:
                    del self._registrations[event]
                return 1
        return 0

    def listener_count(self, event: str) -> int:
        """Number of listeners registered for ``event``."""
        return len(self._registrations.get(event, ()))

    def has_listeners(self, event: str) -> bool:
        """Whether any listener is registered for ``event``."""
        return self.listener_count(event) > 0

    def emit(self, event: str, *args: Any) -> bool:
        """Invoke every listener of ``event`` synchronously, in order.

        Returns:
            True if at least one listener was invoked
        """
        registrations = self._registrations.get(event)
        if not registrations:
            return False

        snapshot = list(registrations)
        for registration in snapshot:
            if registration.once:
                self._discard(event, registration)
        for registration in snapshot:
            registration.listener(*args)
        return True

    def dispatch_element(self, name: str, value: Value) -> bool:
        """Deliver a completed element to its ``tag:<name>`` listeners.

        The listeners receive a deep copy of the value carrying ``$name``,
        so the value folded into the parent element is never affected by them.
        Elements nobody listens for are skipped without further work.

        Returns:
            True if the element was delivered
        """
        event = TAG_PREFIX + name
        if not self.has_listeners(event):
            return False
        self.logger.debug("Emitting element", extra={"tag": name})
        return self.emit(event, name_value(name, copy.deepcopy(value)))

    def emit_end(self) -> bool:
        """Emit ``end``; only the first call has any effect."""
        if self._end_emitted:
            return False
        self._end_emitted = True
        return self.emit(END_EVENT)

    def _register(self, event: str, listener: Listener, once: bool) -> Listener:
        if not isinstance(event, str) or not event:
            raise ValueError("Event name must be a non-empty string")
        if event == TAG_PREFIX:
            raise ValueError("Tag selector requires a tag name")
        if not callable(listener):
            raise TypeError("Listener must be callable")
        self._registrations.setdefault(event, []).append(_Registration(listener, once))
        return listener

    def _discard(self, event: str, registration: _Registration) -> None:
        registrations = self._registrations.get(event, [])
        if registration in registrations:
            registrations.remove(registration)
        if not registrations:
            self._registrations.pop(event, None)
