"""Compliance records — the interrupt state, its transcript and the parsed draft."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class ComplianceStage(str, Enum):
    IDLE = "idle"
    ALERT = "alert"             # Event fired, deliveries paused
    DRAFTING = "drafting"       # Elf council is talking to the drafting service
    READY = "ready"             # Validation succeeded
    SUBMITTED = "submitted"     # Brief acknowledgment before reset


class ComplianceState(BaseModel):
    """Process-wide interrupt state. Motion is suspended while active."""

    active: bool = False
    agency: Optional[str] = None
    stage: ComplianceStage = ComplianceStage.IDLE


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class MessageOrigin(str, Enum):
    """Who produced a transcript entry."""
    INCIDENT = "incident"       # Seeded when the event starts
    USER = "user"
    DRAFT = "draft"             # Streamed from the drafting service
    VALIDATION = "validation"   # Returned by the validation service
    ERROR = "error"             # Inline transport failure


class ChatMessage(BaseModel):
    role: ChatRole
    content: str
    origin: MessageOrigin = MessageOrigin.USER

    def to_wire(self) -> dict:
        """Role/content pair as the drafting service expects it."""
        return {"role": self.role.value, "content": self.content}


class DraftSections(BaseModel):
    """Structured memo derived from the latest drafted assistant message."""

    issue: str = ""
    facts: str = ""
    analysis: str = ""
    actions: str = ""
    references: List[str] = []
    raw: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.raw
