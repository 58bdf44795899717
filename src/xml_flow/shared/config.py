"""Configuration for xml-flow conversions.

Options are resolved once when a flow is constructed and treated as
read-only for the whole conversion. They are passed explicitly into the
tree builder and the content simplifier, so concurrent conversions never
share configuration state.
"""

from dataclasses import dataclass, fields
from enum import Enum, auto
from typing import Any, List, Mapping, Optional, Union

DEFAULT_CHUNK_SIZE = 8192


class PreserveMarkup(Enum):
    """When the order-preserving ``$markup`` representation is used."""

    ALWAYS = auto()     # Every element with text or children keeps document order
    NEVER = auto()      # Always flatten, even for mixed content
    SELECTIVE = auto()  # Only mixed-content elements keep document order


ALWAYS = PreserveMarkup.ALWAYS
NEVER = PreserveMarkup.NEVER
SELECTIVE = PreserveMarkup.SELECTIVE


class ConfigError(ValueError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


# Option aliases accepted by FlowOptions.from_mapping()
_OPTION_ALIASES = {
    "normalize": "normalize",
    "trim": "trim",
    "preserveMarkup": "preserve_markup",
    "preserve_markup": "preserve_markup",
    "chunkSize": "chunk_size",
    "chunk_size": "chunk_size",
    "allowEntities": "allow_entities",
    "allow_entities": "allow_entities",
    "correlationId": "correlation_id",
    "correlation_id": "correlation_id",
}


def _coerce_preserve_markup(value: Union[PreserveMarkup, str]) -> PreserveMarkup:
    if isinstance(value, PreserveMarkup):
        return value
    if isinstance(value, str):
        try:
            return PreserveMarkup[value.strip().upper()]
        except KeyError:
            pass
    raise ConfigValidationError(
        f"preserve_markup must be one of {[member.name for member in PreserveMarkup]}, "
        f"got {value!r}",
        field_name="preserve_markup",
        suggestions=[member.name for member in PreserveMarkup],
    )


@dataclass(frozen=True)
class FlowOptions:
    """Immutable options for a single conversion.

    Attributes:
        normalize: Collapse runs of whitespace in text to a single space
        trim: Strip leading/trailing whitespace from each text run
        preserve_markup: When to use the order-preserving representation
        chunk_size: Amount read from a file-like source per step
        allow_entities: Accept documents that declare entities in a DTD
        correlation_id: Optional correlation ID attached to log records
    """

    normalize: bool = True
    trim: bool = True
    preserve_markup: PreserveMarkup = PreserveMarkup.SELECTIVE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    allow_entities: bool = False
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate and coerce option values."""
        # frozen dataclass: coerced values are written through object.__setattr__
        object.__setattr__(
            self, "preserve_markup", _coerce_preserve_markup(self.preserve_markup)
        )
        for name in ("normalize", "trim", "allow_entities"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigValidationError(
                    f"{name} must be a boolean", field_name=name
                )
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int):
            raise ConfigValidationError(
                "chunk_size must be an integer", field_name="chunk_size"
            )
        if self.chunk_size <= 0:
            raise ConfigValidationError(
                "chunk_size must be > 0", field_name="chunk_size"
            )

    @classmethod
    def from_mapping(
        cls, options: Optional[Mapping[str, Any]] = None, **overrides: Any
    ) -> "FlowOptions":
        """Resolve options from a mapping of camelCase or snake_case keys.

        Unrecognized keys are ignored. Keyword overrides win over the mapping.

        Args:
            options: Options mapping, a FlowOptions instance, or None
            **overrides: Individual option values

        Returns:
            Resolved FlowOptions
        """
        if isinstance(options, FlowOptions):
            values = {f.name: getattr(options, f.name) for f in fields(cls)}
        else:
            values = {}
            for key, value in (options or {}).items():
                name = _OPTION_ALIASES.get(key)
                if name is not None:
                    values[name] = value

        for key, value in overrides.items():
            name = _OPTION_ALIASES.get(key)
            if name is not None:
                values[name] = value

        return cls(**values)

    @classmethod
    def faithful(cls) -> "FlowOptions":
        """Create options that keep original whitespace and document order."""
        return cls(normalize=False, trim=False, preserve_markup=PreserveMarkup.ALWAYS)

    @classmethod
    def flat(cls) -> "FlowOptions":
        """Create options that never use the markup-preserving representation."""
        return cls(preserve_markup=PreserveMarkup.NEVER)
