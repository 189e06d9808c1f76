"""
Event Log — append-only feed of human-readable status lines.

Behavioral Contract:
- Append-only. Entries are never modified.
- The live view is the trailing window of the last `window` entries.
- At most `retention` entries are kept; older ones are discarded.
"""

from collections import deque
from datetime import datetime
from typing import Deque, List, Optional
from uuid import uuid4

from sleigh_kernel.models.autopilot import LogConfig
from sleigh_kernel.models.event_log import LogEntry


class EventLog:
    """Bounded in-memory event log."""

    def __init__(self, config: Optional[LogConfig] = None):
        self.config = config or LogConfig()
        self._entries: Deque[LogEntry] = deque(maxlen=self.config.retention)
        self._appended = 0

    def append(self, text: str) -> LogEntry:
        """Append a status line and return the stored entry."""
        entry = LogEntry(
            id=f"log_{uuid4().hex[:12]}",
            text=text,
            created_at=datetime.utcnow(),
        )
        self._entries.append(entry)
        self._appended += 1
        return entry

    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        """The trailing window, oldest first."""
        if not limit or limit < 1:
            limit = self.config.window
        return list(self._entries)[-limit:]

    def latest(self) -> Optional[LogEntry]:
        return self._entries[-1] if self._entries else None

    def count(self) -> int:
        """Total entries ever appended, including discarded ones."""
        return self._appended
