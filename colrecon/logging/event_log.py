from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from colrecon.models.event_record import EventRecord

"""Session event trail buffering.

- JSON Lines with a fixed key set (no extra keys)
- one ``logs/session-YYYYMMDD-HHMMSS.log`` (UTC) per buffer, created on
  first flush
- records are buffered in memory and appended on ``flush()``
"""

__all__ = [
    "EventRecord",
    "EventLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class EventLogBuffer:
    """In-memory buffer for session events. Flush writes JSON Lines.

    Single-threaded use only (one session, one event loop).
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[EventRecord] = []
        self._logs_dir = logs_dir or LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"session-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[EventRecord]:
        return list(self._records)

    def append(self, record: EventRecord) -> None:
        self._records.append(record)

    def event_types(self) -> list[str]:
        return [r.event_type for r in self._records]

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path:
        if not self._records:
            return self.file_path  # 空の場合はパス確定のみ
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
