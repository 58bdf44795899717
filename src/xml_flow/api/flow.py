"""The flow: an emitter binding a markup source to the tree builder.

A flow reads its source chunk by chunk, feeds the tokenizer, lets the tree
builder close elements into values and delivers matching elements to
``tag:<name>`` listeners in document order. Everything runs synchronously
in the caller's thread; each flow owns its tokenizer, frame stack and
options.

Example:
    >>> flow = create_flow('<root><item>a</item><item>b</item></root>')
    >>> items = []
    >>> _ = flow.on("tag:item", items.append)
    >>> _ = flow.run()
    >>> items
    [{'$name': 'item', '$text': 'a'}, {'$name': 'item', '$text': 'b'}]
"""

import time
from contextlib import contextmanager
from pathlib import Path
from typing import (
    Any,
    BinaryIO,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    TextIO,
    Union,
)

from xml_flow.shared import (
    FlowOptions,
    FlowStatistics,
    Value,
    XmlFlowError,
    get_logger,
)
from xml_flow.tokenization import ExpatTokenizer, TokenEvent
from xml_flow.tree import FlowTreeBuilder

from .dispatch import ERROR_EVENT, Listener, SelectorDispatcher, tag_selector

# Type definitions for input sources
Chunk = Union[str, bytes]
InputType = Union[str, bytes, Path, BinaryIO, TextIO, Iterable[Chunk]]
OptionsType = Optional[Union[FlowOptions, Mapping[str, Any]]]

MS_PER_SECOND = 1000


def _slice_content(content: Chunk, chunk_size: int) -> Iterator[Chunk]:
    for start in range(0, len(content), chunk_size):
        yield content[start:start + chunk_size]


def _read_chunks(file_obj: Union[BinaryIO, TextIO], chunk_size: int) -> Iterator[Chunk]:
    while True:
        chunk = file_obj.read(chunk_size)
        if not chunk:
            return
        yield chunk


class XmlFlow:
    """Event emitter converting one markup source into simplified values.

    Events:
        ``tag:<name>``: one simplified value (carrying ``$name``) per
            completed element named ``<name>``, in document order
        ``end``: no payload, fired once after the whole input was processed
        ``error``: the exception that ended the conversion
    """

    def __init__(
        self,
        source: Optional[InputType] = None,
        options: OptionsType = None,
        **overrides: Any,
    ) -> None:
        """Initialize flow.

        Args:
            source: Document content (str or bytes), a Path, a file-like
                object, an iterable of chunks, or None to drive the flow
                with :meth:`feed` and :meth:`finish`
            options: FlowOptions or an options mapping
            **overrides: Individual option values

        Raises:
            TypeError: If the source type is not supported
        """
        if source is not None and not _is_supported_source(source):
            raise TypeError(f"Unsupported source type: {type(source).__name__}")

        self.options = FlowOptions.from_mapping(options, **overrides)
        self.statistics = FlowStatistics()
        correlation_id = self.options.correlation_id
        self.logger = get_logger(__name__, correlation_id, "xml_flow").bind(
            source_type=type(source).__name__,
            preserve_markup=self.options.preserve_markup.name,
        )

        self._source = source
        self._dispatcher = SelectorDispatcher(correlation_id)
        self._builder = FlowTreeBuilder(
            self.options,
            on_element=self._on_element,
            statistics=self.statistics,
        )
        self._tokenizer = ExpatTokenizer(
            self._deliver,
            allow_entities=self.options.allow_entities,
            correlation_id=correlation_id,
        )

        self._chunks: Optional[Iterator[Chunk]] = None
        self._owned_file: Optional[BinaryIO] = None
        self._start_time: Optional[float] = None
        self._paused = False
        self._running = False
        self._ended = False
        self._cancelled = False
        self._error: Optional[BaseException] = None

    # Event registration

    def on(self, event: str, listener: Optional[Listener] = None) -> Any:
        """Register a listener; usable as a decorator."""
        return self._dispatcher.on(event, listener)

    def once(self, event: str, listener: Optional[Listener] = None) -> Any:
        """Register a listener invoked at most once."""
        return self._dispatcher.once(event, listener)

    def off(self, event: str, listener: Optional[Listener] = None) -> int:
        """Remove listeners of ``event``."""
        return self._dispatcher.off(event, listener)

    def listener_count(self, event: str) -> int:
        """Number of listeners registered for ``event``."""
        return self._dispatcher.listener_count(event)

    # State

    @property
    def paused(self) -> bool:
        """Whether reading is paused."""
        return self._paused

    @property
    def ended(self) -> bool:
        """Whether the whole input was processed successfully."""
        return self._ended

    @property
    def cancelled(self) -> bool:
        """Whether the flow was cancelled."""
        return self._cancelled

    @property
    def error(self) -> Optional[BaseException]:
        """The error that ended the conversion, if any."""
        return self._error

    @property
    def finished(self) -> bool:
        """Whether no further events will be delivered."""
        return self._ended or self._cancelled or self._error is not None

    # Driving the flow

    def run(self) -> FlowStatistics:
        """Read the source until it is exhausted, paused, cancelled or fails.

        Raises:
            XmlFlowError: If the flow has no source
            Exception: The conversion error, when no ``error`` listener exists
        """
        if self.finished or self._running:
            return self.statistics
        if self._source is None:
            raise XmlFlowError("Flow has no source to read; use feed() and finish()")

        self._start()
        self._running = True
        try:
            while not (self._paused or self.finished):
                with self._error_channel():
                    chunk = next(self._chunks, None)
                if self.finished:
                    break
                if chunk is None:
                    self.finish()
                else:
                    self.feed(chunk)
        finally:
            self._running = False
        return self.statistics

    def feed(self, data: Chunk) -> None:
        """Push the next chunk of the document into the flow."""
        if self.finished:
            self.logger.debug("Ignoring chunk for finished flow")
            return
        self._start()
        if not data:
            return
        self.statistics.chunks_read += 1
        self.statistics.characters_read += len(data)
        with self._error_channel():
            self._tokenizer.feed(data)

    def finish(self) -> None:
        """Signal the end of input; emits ``end`` once on success."""
        if self.finished:
            return
        self._start()
        with self._error_channel():
            self._tokenizer.close()
            self._builder.finish()
            self._ended = True
            self._release_source()
            self.statistics.processing_time_ms = self._elapsed_ms()
            self.logger.info("Flow completed", extra=self.statistics.to_dict())
            self._dispatcher.emit_end()

    def pause(self) -> "XmlFlow":
        """Stop reading at the next chunk boundary."""
        self._paused = True
        if hasattr(self._source, "pause"):
            self._source.pause()
        return self

    def resume(self) -> "XmlFlow":
        """Continue reading; restarts a paused run."""
        self._paused = False
        if hasattr(self._source, "resume"):
            self._source.resume()
        if self._chunks is not None and not self._running and not self.finished:
            self.run()
        return self

    def cancel(self) -> None:
        """Abort the conversion; no further events are delivered."""
        if self.finished:
            return
        self._cancelled = True
        self._release_source()
        self.logger.warning(
            "Flow cancelled",
            extra={"open_elements": self._builder.open_elements}
        )

    def __enter__(self) -> "XmlFlow":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if not self.finished:
            self.cancel()

    # Internals

    def _start(self) -> None:
        if self._start_time is not None:
            return
        self._start_time = time.perf_counter()
        if self._source is not None:
            self._chunks = self._open_source()
        self.logger.info("Starting flow", extra={"chunk_size": self.options.chunk_size})

    def _on_element(self, name: str, value: Value) -> None:
        if self._dispatcher.dispatch_element(name, value):
            self.statistics.elements_emitted += 1

    def _deliver(self, event: TokenEvent) -> None:
        # The tokenizer may still report events of the current chunk after cancel()
        if not self._cancelled:
            self._builder.process(event)

    def _open_source(self) -> Iterator[Chunk]:
        source = self._source
        chunk_size = self.options.chunk_size
        if isinstance(source, (str, bytes)):
            return _slice_content(source, chunk_size)
        if isinstance(source, Path):
            self._owned_file = source.open("rb")
            return _read_chunks(self._owned_file, chunk_size)
        if hasattr(source, "read"):
            return _read_chunks(source, chunk_size)
        return iter(source)

    def _release_source(self) -> None:
        if self._owned_file is not None:
            self._owned_file.close()
            self._owned_file = None

    def _elapsed_ms(self) -> float:
        if self._start_time is None:
            return 0.0
        return (time.perf_counter() - self._start_time) * MS_PER_SECOND

    @contextmanager
    def _error_channel(self) -> Iterator[None]:
        try:
            yield
        except Exception as e:
            self._fail(e)

    def _fail(self, error: Exception) -> None:
        """Report a terminal error on the ``error`` channel.

        Raises:
            Exception: ``error`` itself when nobody listens for it
        """
        self._error = error
        self._release_source()
        self.statistics.processing_time_ms = self._elapsed_ms()
        self.logger.error(
            f"Flow failed: {error}",
            extra={
                "error_type": type(error).__name__,
                "open_elements": self._builder.open_elements,
            },
            exc_info=error,
        )
        if not self._dispatcher.emit(ERROR_EVENT, error):
            raise error


def _is_supported_source(source: Any) -> bool:
    if isinstance(source, (str, bytes, Path)) or hasattr(source, "read"):
        return True
    return isinstance(source, Iterable)


def create_flow(
    source: Optional[InputType] = None,
    options: OptionsType = None,
    **overrides: Any,
) -> XmlFlow:
    """Create a flow over ``source``.

    Register listeners on the returned flow, then call :meth:`XmlFlow.run`.

    Args:
        source: Document content, Path, file-like object or chunk iterable
        options: FlowOptions or a mapping with ``normalize``, ``trim``,
            ``preserveMarkup`` (and snake_case forms); unknown keys are ignored
        **overrides: Individual option values

    Returns:
        A new, not yet started XmlFlow
    """
    return XmlFlow(source, options, **overrides)


def collect(
    source: InputType,
    tag: str,
    options: OptionsType = None,
    **overrides: Any,
) -> List[Value]:
    """Convert ``source`` and return every value emitted for ``tag:<tag>``.

    Raises:
        Exception: The conversion error, if the conversion fails
    """
    values: List[Value] = []
    flow = create_flow(source, options, **overrides)
    flow.on(tag_selector(tag), values.append)
    flow.run()
    return values
