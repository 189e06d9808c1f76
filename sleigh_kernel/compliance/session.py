"""
Compliance Session — the interrupt lifecycle.

States:
  IDLE → ALERT → DRAFTING → READY → SUBMITTED → IDLE

Behavioral Contract:
- IDLE → ALERT only through start_event (called by the Interrupt Scheduler)
- Chat traffic never changes the stage
- DRAFTING → READY only on a successful validation
- SUBMITTED → IDLE automatically after `reset_delay_seconds`; motion resumes there
- An action that is not valid for the current stage is a no-op returning False
- At most one outstanding drafting request
- Failures (stream errors, validation failures) become transcript entries,
  never exceptions, and leave the session retryable in DRAFTING
"""

import asyncio
import logging
from typing import Callable, List, Optional

from sleigh_kernel.drafting.client import DraftingClient, DraftingError, get_drafting_client
from sleigh_kernel.drafting.parser import parse_draft
from sleigh_kernel.drafting.stream import StreamEventKind
from sleigh_kernel.drafting.validation import (
    VALIDATION_COMPLETE,
    VALIDATION_FAILED,
    LocalValidator,
    ValidationError,
)
from sleigh_kernel.event_log.store import EventLog
from sleigh_kernel.models.autopilot import SessionConfig
from sleigh_kernel.models.compliance import (
    ChatMessage,
    ChatRole,
    ComplianceStage,
    ComplianceState,
    DraftSections,
    MessageOrigin,
)

logger = logging.getLogger(__name__)


def incident_message(agency: str) -> str:
    return (
        f"Incident: {agency} has flagged Santa's sleigh during Christmas Eve gift runs. "
        "Share the airspace segment, timing, reindeer-safe altitudes, and corrective steps "
        "so the elves can draft a festive, regulation-ready response."
    )


class ComplianceSession:
    """Owns the ComplianceState, the transcript and the parsed draft."""

    def __init__(
        self,
        event_log: EventLog,
        config: Optional[SessionConfig] = None,
        drafting_client: Optional[DraftingClient] = None,
        validator: Optional[LocalValidator] = None,
        drafting_factory: Callable[[], DraftingClient] = get_drafting_client,
    ):
        self.event_log = event_log
        self.config = config or SessionConfig()
        self._drafting_client = drafting_client
        self._drafting_factory = drafting_factory
        self._validator = validator or LocalValidator()

        self._state = ComplianceState()
        self._transcript: List[ChatMessage] = []
        self._draft = DraftSections()
        self._reply: Optional[ChatMessage] = None
        self._send_task: Optional[asyncio.Task] = None
        self._reset_handle: Optional[asyncio.TimerHandle] = None
        self._validating = False

    # --- Read side ---

    @property
    def state(self) -> ComplianceState:
        return self._state

    @property
    def stage(self) -> ComplianceStage:
        return self._state.stage

    @property
    def active(self) -> bool:
        return self._state.active

    @property
    def transcript(self) -> List[ChatMessage]:
        return list(self._transcript)

    @property
    def draft(self) -> DraftSections:
        """
        Sections parsed from the latest streamed drafting reply.
        Incident, validation and error entries are assistant messages too,
        but they never replace the draft.
        """
        return self._draft

    @property
    def is_sending(self) -> bool:
        return self._send_task is not None and not self._send_task.done()

    @property
    def is_validating(self) -> bool:
        return self._validating

    def get_state_snapshot(self) -> dict:
        return {
            "state": self._state.model_dump(mode="json"),
            "transcript": [m.model_dump(mode="json") for m in self._transcript],
            "draft": self._draft.model_dump(mode="json"),
            "is_sending": self.is_sending,
            "is_validating": self._validating,
        }

    # --- Transitions ---

    def start_event(self, agency: str) -> bool:
        """IDLE → ALERT. Seeds the transcript with the incident."""
        if self._state.active or self._state.stage != ComplianceStage.IDLE:
            return False

        self._state = ComplianceState(
            active=True, agency=agency, stage=ComplianceStage.ALERT
        )
        self._transcript = [
            ChatMessage(
                role=ChatRole.ASSISTANT,
                content=incident_message(agency),
                origin=MessageOrigin.INCIDENT,
            )
        ]
        self._reply = None
        self._draft = DraftSections()
        self.event_log.append(
            f"{agency} has filed an airspace compliance action. Deliveries paused."
        )
        return True

    def start_drafting(self) -> bool:
        """ALERT → DRAFTING. Sends nothing by itself."""
        if self._state.stage != ComplianceStage.ALERT:
            return False
        self._state = self._state.model_copy(update={"stage": ComplianceStage.DRAFTING})
        self.event_log.append("Elf council is drafting the compliance case. Provide details.")
        return True

    def send_message(self, content: str) -> Optional[asyncio.Task]:
        """
        Append a user message and stream the assistant reply in the background.
        Must be called from a running event loop. Returns None when rejected.
        """
        if self._state.stage != ComplianceStage.DRAFTING:
            return None
        if not content.strip() or self.is_sending:
            return None

        self._draft = DraftSections()
        self._transcript.append(
            ChatMessage(role=ChatRole.USER, content=content, origin=MessageOrigin.USER)
        )
        self._reply = None
        self._send_task = asyncio.get_running_loop().create_task(self._stream_reply())
        return self._send_task

    async def validate(self) -> bool:
        """DRAFTING → READY on success; stays in DRAFTING on failure."""
        if self._state.stage != ComplianceStage.DRAFTING:
            return False
        if self._validating or not self._transcript:
            return False

        self._validating = True
        try:
            text = await self._validator.validate(list(self._transcript))
        except ValidationError as exc:
            logger.warning("Validation failed: %s", exc)
            if self._state.stage == ComplianceStage.DRAFTING:
                self._append_assistant(VALIDATION_FAILED, MessageOrigin.ERROR)
            return False
        finally:
            self._validating = False

        if self._state.stage != ComplianceStage.DRAFTING:
            # Submitted or reset while the reviewer was busy
            return False
        self._append_assistant(text or VALIDATION_COMPLETE, MessageOrigin.VALIDATION)
        self._state = self._state.model_copy(update={"stage": ComplianceStage.READY})
        return True

    def submit(self) -> bool:
        """READY → SUBMITTED, then IDLE after the reset delay."""
        stage = self._state.stage
        allowed = stage == ComplianceStage.READY or (
            stage == ComplianceStage.DRAFTING
            and self.config.allow_submit_without_validation
        )
        if not allowed:
            return False

        self._cancel_stream()
        self._state = self._state.model_copy(update={"stage": ComplianceStage.SUBMITTED})
        self.event_log.append("Compliance case submitted. Resuming deliveries.")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._reset()
            return True
        self._reset_handle = loop.call_later(self.config.reset_delay_seconds, self._reset)
        return True

    def close(self) -> None:
        """Teardown: no timers or streams survive the session. A pending reset runs now."""
        self._cancel_stream()
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset()

    # --- Internals ---

    def _reset(self) -> None:
        self._reset_handle = None
        self._state = ComplianceState()
        self._transcript = []
        self._reply = None
        self._draft = DraftSections()

    def _cancel_stream(self) -> None:
        """Stop an in-flight reply and drop whatever it streamed so far."""
        if self._send_task is not None and not self._send_task.done():
            self._send_task.cancel()
            if self._reply is not None:
                self._transcript = [m for m in self._transcript if m is not self._reply]
                self._draft = DraftSections()
        self._send_task = None
        self._reply = None

    def _append_assistant(self, content: str, origin: MessageOrigin) -> ChatMessage:
        message = ChatMessage(role=ChatRole.ASSISTANT, content=content, origin=origin)
        self._transcript.append(message)
        return message

    def _resolve_drafting_client(self) -> DraftingClient:
        if self._drafting_client is None:
            self._drafting_client = self._drafting_factory()
        return self._drafting_client

    async def _stream_reply(self) -> None:
        try:
            client = self._resolve_drafting_client()
        except DraftingError as exc:
            logger.error("Drafting client unavailable: %s", exc)
            self._append_assistant(f"Drafting error: {exc}", MessageOrigin.ERROR)
            return

        stream = client.stream(list(self._transcript))
        try:
            async for event in stream:
                if event.kind == StreamEventKind.KEEPALIVE:
                    continue
                if event.kind == StreamEventKind.ERROR:
                    logger.warning("Drafting stream reported an error: %s", event.text)
                    self._append_assistant(f"Drafting error: {event.text}", MessageOrigin.ERROR)
                    break
                if event.kind == StreamEventKind.DONE:
                    break
                self._apply_delta(event.text)
        finally:
            await stream.aclose()

        self._reply = None

    def _apply_delta(self, text: str) -> None:
        if not text:
            return
        if self._reply is None:
            self._reply = self._append_assistant("", MessageOrigin.DRAFT)
        self._reply.content += text
        self._draft = parse_draft(self._reply.content)
