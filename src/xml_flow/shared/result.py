"""Statistics collected while a flow converts a document."""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class FlowStatistics:
    """Counters for a single conversion."""

    chunks_read: int = 0
    characters_read: int = 0
    elements_opened: int = 0
    elements_closed: int = 0
    elements_emitted: int = 0
    max_depth: int = 0
    processing_time_ms: float = 0.0

    @property
    def elements_per_second(self) -> float:
        """Calculate closed elements per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.elements_closed * 1000.0) / self.processing_time_ms

    def record_depth(self, depth: int) -> None:
        """Track the deepest nesting level seen so far."""
        if depth > self.max_depth:
            self.max_depth = depth

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to a dictionary suitable for log records."""
        result = asdict(self)
        result["elements_per_second"] = self.elements_per_second
        return result
