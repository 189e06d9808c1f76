"""
Autopilot — wires the map, the motion controller and the compliance workflow.

Two loops share one event loop and one MapState:
  frame loop: MotionController.tick(dt) every frame interval
  timer loop: InterruptScheduler attempts every interval
Neither blocks; the only real latency is the drafting stream, which runs as
its own task and never holds up either loop.
"""

import asyncio
import logging
import random
import time
from typing import Callable, Optional

from sleigh_kernel.compliance.scheduler import InterruptScheduler
from sleigh_kernel.compliance.session import ComplianceSession
from sleigh_kernel.drafting.client import DraftingClient, get_drafting_client
from sleigh_kernel.drafting.validation import LocalValidator
from sleigh_kernel.event_log.store import EventLog
from sleigh_kernel.models.autopilot import AutopilotConfig
from sleigh_kernel.motion.controller import MotionController
from sleigh_kernel.waypoints.generator import ValidityPredicate, generate_waypoints
from sleigh_kernel.world_model.store import WorldModelStore

logger = logging.getLogger(__name__)


class Autopilot:
    """Composition root for one delivery run."""

    def __init__(
        self,
        config: Optional[AutopilotConfig] = None,
        is_land: Optional[ValidityPredicate] = None,
        drafting_client: Optional[DraftingClient] = None,
        drafting_factory: Callable[[], DraftingClient] = get_drafting_client,
        validator: Optional[LocalValidator] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or AutopilotConfig()
        rng = rng or random.Random()

        self.event_log = EventLog(self.config.log)
        self.event_log.append("Autopilot engaged. Santa is handling every delivery on his own.")

        self.world_store = WorldModelStore(motion_config=self.config.motion)
        self.world_store.load_waypoints(
            generate_waypoints(is_valid=is_land, config=self.config.generator)
        )
        if is_land is not None:
            self.event_log.append("Loaded land mask. Houses placed only on land.")
        else:
            self.event_log.append("Land mask unavailable. Houses placed anywhere.")

        self.session = ComplianceSession(
            event_log=self.event_log,
            config=self.config.session,
            drafting_client=drafting_client,
            validator=validator,
            drafting_factory=drafting_factory,
        )
        self.motion = MotionController(
            world_store=self.world_store,
            event_log=self.event_log,
            is_paused=lambda: self.session.state.active,
            config=self.config.motion,
            rng=rng,
        )
        self.scheduler = InterruptScheduler(
            session=self.session,
            world_store=self.world_store,
            config=self.config.scheduler,
            rng=rng,
        )
        self._running = False

    @property
    def status(self) -> str:
        return "running" if self._running else "stopped"

    @property
    def total(self) -> int:
        return len(self.world_store.waypoints)

    @property
    def remaining(self) -> int:
        return self.world_store.remaining_count

    def progress_text(self) -> str:
        remaining = self.remaining
        if remaining == 0:
            return f"All {self.total} houses received gifts. Autopilot is cooling down."
        if remaining < 10:
            return "Finishing touches. Only a handful of rooftops left."
        return f"{remaining} houses in queue. Santa is auto-routing nonstop."

    def get_state_snapshot(self) -> dict:
        """Everything a UI needs to draw one frame."""
        target = None
        if self.world_store.target_id is not None:
            waypoint = self.world_store.get_waypoint(self.world_store.target_id)
            if waypoint is not None and not waypoint.delivered:
                target = waypoint.model_dump(mode="json")
        return {
            "status": self.status,
            "position": self.world_store.position.model_dump(mode="json"),
            "target": target,
            "delivered": self.total - self.remaining,
            "remaining": self.remaining,
            "total": self.total,
            "progress": self.progress_text(),
            "compliance": self.session.state.model_dump(mode="json"),
            "scheduler": self.scheduler.status,
        }

    async def run_frames(self, stop_event: asyncio.Event) -> None:
        """Frame loop: one motion tick per frame interval."""
        interval = self.config.motion.frame_interval_seconds
        last = time.monotonic()
        while not stop_event.is_set():
            now = time.monotonic()
            self.motion.tick(now - last)
            last = now
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue

    async def run_async(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Run both loops until `stop_event` is set; tears everything down after."""
        if stop_event is None:
            stop_event = asyncio.Event()
        self._running = True
        logger.info("Autopilot started with %d waypoints", self.total)
        tasks = [
            asyncio.create_task(self.run_frames(stop_event)),
            asyncio.create_task(self.scheduler.run_async(stop_event)),
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self.session.close()
            self._running = False
            logger.info("Autopilot stopped")
