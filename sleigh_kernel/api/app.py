"""
Sleigh Kernel API — FastAPI endpoints.

Exposes the autopilot via a REST API for:
- Map and progress inspection
- The event log
- Compliance session actions (drafting, chat, validation, submission)
- The streamed drafting proxy and the validation delay endpoint
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse, StreamingResponse
from pydantic import BaseModel

from sleigh_kernel.drafting.client import DraftingClient, DraftingError, get_drafting_client
from sleigh_kernel.drafting.stream import StreamEvent, encode_event
from sleigh_kernel.drafting.validation import LocalValidator
from sleigh_kernel.models.autopilot import AutopilotConfig
from sleigh_kernel.models.compliance import ChatMessage, ChatRole, MessageOrigin
from sleigh_kernel.runtime.autopilot import Autopilot

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# --- Request/Response Models ---

class ChatSendRequest(BaseModel):
    content: str


class WireMessage(BaseModel):
    role: ChatRole
    content: str


class DraftStreamRequest(BaseModel):
    messages: List[WireMessage] = []


class ActionResponse(BaseModel):
    accepted: bool
    stage: str


# --- Application Factory ---

def create_app(
    autopilot: Optional[Autopilot] = None,
    config: Optional[AutopilotConfig] = None,
    drafting_factory: Callable[[], DraftingClient] = get_drafting_client,
    validator: Optional[LocalValidator] = None,
    autostart: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    pilot = autopilot or Autopilot(
        config=config, validator=validator, drafting_factory=drafting_factory
    )
    reviewer = validator or LocalValidator()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not autostart:
            yield
            return
        stop_event = asyncio.Event()
        task = asyncio.create_task(pilot.run_async(stop_event))
        try:
            yield
        finally:
            stop_event.set()
            await task

    app = FastAPI(
        title="Sleigh Kernel API",
        description="Santa autopilot with compliance interrupts",
        version="0.1.0-alpha",
        lifespan=lifespan,
    )

    # Store components on app state for access in endpoints
    app.state.autopilot = pilot
    app.state.session = pilot.session
    app.state.world_store = pilot.world_store
    app.state.event_log = pilot.event_log

    session = pilot.session

    def _action(accepted: bool) -> ActionResponse:
        return ActionResponse(accepted=accepted, stage=session.stage.value)

    # === MAP ===

    @app.get("/state")
    async def get_state():
        """Current autopilot snapshot."""
        return pilot.get_state_snapshot()

    @app.get("/waypoints")
    async def list_waypoints():
        return [w.model_dump(mode="json") for w in pilot.world_store.waypoints]

    @app.get("/waypoints/{waypoint_id}")
    async def get_waypoint(waypoint_id: str):
        waypoint = pilot.world_store.get_waypoint(waypoint_id)
        if not waypoint:
            raise HTTPException(404, "Waypoint not found")
        return waypoint.model_dump(mode="json")

    # === EVENT LOG ===

    @app.get("/log")
    async def get_log(limit: Optional[int] = None):
        """Trailing window of status lines."""
        return [e.model_dump(mode="json") for e in pilot.event_log.recent(limit)]

    # === COMPLIANCE SESSION ===

    @app.get("/compliance")
    async def get_compliance():
        return session.get_state_snapshot()

    @app.get("/compliance/draft")
    async def get_draft():
        return session.draft.model_dump(mode="json")

    @app.post("/compliance/trigger", response_model=ActionResponse)
    async def trigger_compliance():
        """Force a scheduler attempt (for testing)."""
        return _action(pilot.scheduler.trigger_once())

    @app.post("/compliance/start-drafting", response_model=ActionResponse)
    async def start_drafting():
        return _action(session.start_drafting())

    @app.post("/compliance/messages", response_model=ActionResponse)
    async def send_message(req: ChatSendRequest):
        """Send a chat message; the reply streams into the transcript."""
        return _action(session.send_message(req.content) is not None)

    @app.post("/compliance/validate", response_model=ActionResponse)
    async def validate_case():
        return _action(await session.validate())

    @app.post("/compliance/submit", response_model=ActionResponse)
    async def submit_case():
        return _action(session.submit())

    # === COLLABORATOR ENDPOINTS ===

    @app.post("/compliance/draft/stream")
    async def stream_draft(req: DraftStreamRequest):
        """Proxy the drafting service as text/event-stream."""
        try:
            client = drafting_factory()
        except DraftingError as exc:
            logger.error("Drafting client unavailable: %s", exc)
            body = encode_event(StreamEvent.error(str(exc))) + encode_event(StreamEvent.done())
            return PlainTextResponse(body, status_code=500, media_type="text/event-stream")

        transcript = [
            ChatMessage(role=m.role, content=m.content, origin=MessageOrigin.USER)
            for m in req.messages
        ]

        async def frames():
            async for event in client.stream(transcript):
                yield encode_event(event)

        return StreamingResponse(frames(), media_type="text/event-stream", headers=SSE_HEADERS)

    @app.post("/compliance/validation", response_class=PlainTextResponse)
    async def run_validation(req: DraftStreamRequest):
        """Plain-text review after a fixed delay."""
        transcript = [
            ChatMessage(role=m.role, content=m.content, origin=MessageOrigin.USER)
            for m in req.messages
        ]
        return await reviewer.validate(transcript)

    return app


# Default application instance
app = create_app()
