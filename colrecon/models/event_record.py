from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""EventRecord model for the session event trail.

Each user intent that changes (or is refused by) a reconciliation session
is recorded as one JSON Lines entry with a fixed key set. ``header`` is
None for session-wide events (bootstrap, proceed, reset).
"""

__all__ = [
    "EventRecord",
]


@dataclass(frozen=True)
class EventRecord:
    """Structured session event for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded file name the session reconciles
        header: Source column header, or None for session-wide events
        event_type: Event classification in UPPER_SNAKE_CASE format
        detail: Human-readable description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    header: str | None
    event_type: str  # UPPER_SNAKE
    detail: str

    @staticmethod
    def create(file: str, header: str | None, event_type: str, detail: str) -> EventRecord:
        """Create a new EventRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return EventRecord(
            timestamp=ts,
            file=file,
            header=header,
            event_type=event_type,
            detail=detail,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON Lines entry (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)
