"""Event Log entries."""

from datetime import datetime

from pydantic import BaseModel


class LogEntry(BaseModel):
    """A single human-readable status line."""

    id: str
    text: str
    created_at: datetime
