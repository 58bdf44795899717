"""Push tokenizer over the expat parser.

The tokenizer accepts the document in arbitrary chunks and reports every
element start, character data run, CDATA section and element end to a sink
as a :class:`TokenEvent`, synchronously and in document order. It performs
no tree building of its own.
"""

from typing import Callable, Dict, List, Optional, Union
from xml.parsers import expat

from xml_flow.shared import TokenizerError, get_logger

from .events import TokenEvent, TokenEventType, TokenPosition

EventSink = Callable[[TokenEvent], None]

# Encoding used for str input; the document's own declaration is overridden
STR_INPUT_ENCODING = "utf-8"


class ExpatTokenizer:
    """Incremental tokenizer producing parse events from markup chunks.

    Tag and attribute names are reported exactly as written, including any
    namespace prefix.
    """

    def __init__(
        self,
        sink: EventSink,
        allow_entities: bool = False,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize tokenizer.

        Args:
            sink: Callable receiving each parse event
            allow_entities: Accept documents that declare entities
            correlation_id: Optional correlation ID for request tracking
        """
        self._sink = sink
        self._allow_entities = allow_entities
        self.logger = get_logger(__name__, correlation_id, "expat_tokenizer")

        self._parser: Optional[expat.XMLParserType] = None
        self._in_cdata = False
        self._closed = False
        self._failed = False
        self.characters_fed = 0

    @property
    def closed(self) -> bool:
        """Whether the final chunk has been processed or an error occurred."""
        return self._closed or self._failed

    def feed(self, data: Union[str, bytes]) -> None:
        """Tokenize the next chunk of the document.

        Raises:
            TokenizerError: If the markup is malformed
        """
        if self.closed:
            raise TokenizerError("Tokenizer is closed")
        parser = self._get_parser(data)
        if isinstance(data, str):
            data = data.encode(STR_INPUT_ENCODING)
        self.characters_fed += len(data)
        self._parse(parser, data, final=False)

    def close(self) -> None:
        """Signal the end of the document.

        Raises:
            TokenizerError: If the document is incomplete or malformed
        """
        if self.closed:
            return
        parser = self._get_parser(b"")
        self._parse(parser, b"", final=True)
        self._closed = True

    def _get_parser(self, first_chunk: Union[str, bytes]) -> "expat.XMLParserType":
        if self._parser is None:
            encoding = STR_INPUT_ENCODING if isinstance(first_chunk, str) else None
            self._parser = self._create_parser(encoding)
        return self._parser

    def _create_parser(self, encoding: Optional[str]) -> "expat.XMLParserType":
        # No namespace separator: prefixed names stay opaque strings
        parser = expat.ParserCreate(encoding)
        parser.ordered_attributes = True
        parser.buffer_text = True
        parser.StartElementHandler = self._handle_start
        parser.EndElementHandler = self._handle_end
        parser.CharacterDataHandler = self._handle_characters
        parser.StartCdataSectionHandler = self._handle_cdata_start
        parser.EndCdataSectionHandler = self._handle_cdata_end
        if not self._allow_entities:
            parser.EntityDeclHandler = self._forbid_entities
        self.logger.debug(
            "Created expat parser",
            extra={"encoding_override": encoding, "allow_entities": self._allow_entities}
        )
        return parser

    def _parse(self, parser: "expat.XMLParserType", data: bytes, final: bool) -> None:
        try:
            parser.Parse(data, final)
        except expat.ExpatError as e:
            self._failed = True
            position = TokenPosition(
                line=max(e.lineno, 1), column=e.offset + 1, offset=self._byte_index()
            )
            message = expat.ErrorString(e.code)
            self._sink(TokenEvent(TokenEventType.ERROR, message, position=position))
            raise TokenizerError(message, position) from e
        except Exception:
            # Raised by a handler or the sink; the parser cannot continue
            self._failed = True
            raise

    def _position(self) -> TokenPosition:
        parser = self._parser
        return TokenPosition(
            line=max(parser.CurrentLineNumber, 1),
            column=parser.CurrentColumnNumber + 1,
            offset=self._byte_index(),
        )

    def _byte_index(self) -> int:
        if self._parser is None:
            return 0
        return max(self._parser.CurrentByteIndex, 0)

    def _handle_start(self, name: str, attrs: List[str]) -> None:
        attributes: Dict[str, str] = dict(zip(attrs[0::2], attrs[1::2]))
        self._sink(TokenEvent.open_tag(name, attributes, self._position()))

    def _handle_end(self, name: str) -> None:
        self._sink(TokenEvent.close_tag(name, self._position()))

    def _handle_characters(self, data: str) -> None:
        if self._in_cdata:
            self._sink(TokenEvent.cdata(data, self._position()))
        else:
            self._sink(TokenEvent.text(data, self._position()))

    def _handle_cdata_start(self) -> None:
        self._in_cdata = True

    def _handle_cdata_end(self) -> None:
        self._in_cdata = False

    def _forbid_entities(self, entity_name: str, *_args: object) -> None:
        raise TokenizerError(
            f"Entity declarations are disabled: {entity_name}", self._position()
        )
