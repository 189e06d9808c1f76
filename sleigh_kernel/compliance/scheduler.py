"""
Interrupt Scheduler — fires compliance events on a timer.

Runs independently of the frame loop. Every `interval_seconds` (the first
attempt after `first_delay_seconds`) it tries to start a compliance event.
An attempt succeeds only when:
  - no event is already active
  - at least one waypoint is still undelivered
  - the optional cron window is open
Otherwise it is skipped silently until the next tick.
"""

import asyncio
import logging
import random
from datetime import datetime
from typing import List, Optional

from croniter import croniter

from sleigh_kernel.compliance.session import ComplianceSession
from sleigh_kernel.models.autopilot import EventWindow, SchedulerConfig
from sleigh_kernel.world_model.store import WorldModelStore

logger = logging.getLogger(__name__)

AGENCIES: List[str] = [
    "Federal Aviation Administration (FAA) - United States",
    "European Union Aviation Safety Agency (EASA) - Europe",
    "Civil Aviation Administration of China (CAAC) - China",
    "International Civil Aviation Organization (ICAO) - United Nations agency (global)",
    "North American Aerospace Defense Command (NORAD) - United States & Canada",
    "Transport Canada Civil Aviation (TCCA) - Canada",
    "Civil Aviation Authority (CAA) - United Kingdom",
    "Civil Aviation Safety Authority (CASA) - Australia",
    "Directorate General of Civil Aviation (DGCA) - India",
    "NAV CANADA - Canada (air navigation services)",
    "Skeyes (formerly Belgocontrol) - Belgium",
    "Skyguide - Switzerland",
    "Deutsche Flugsicherung (DFS) - Germany",
    "ENAV - Italy",
    "ENAIRE - Spain",
    "Direction des Services de la Navigation Aérienne (DSNA) - France",
    "Civil Aviation Authority of Singapore - Singapore",
    "Civil Aviation Authority of Bangladesh - Bangladesh",
    "Civil Aviation Authority of Nepal - Nepal",
    "Civil Aviation Authority of the Philippines - Philippines",
    "Russian Federal Air Transport Agency (Rosaviatsiya) - Russia",
    "General Authority of Civil Aviation - Saudi Arabia",
    "Civil Aviation Administration (Sweden) - Sweden",
    "PANSA (Polska Agencja Żeglugi Powietrznej) - Poland",
    "State Air Traffic Management Corporation - South Africa",
]


def is_window_open(window: EventWindow, current_time: datetime) -> bool:
    """Determine whether events may fire at `current_time`."""
    if window.always:
        return True

    if window.schedule:
        try:
            return bool(croniter.match(window.schedule, current_time))
        except (ValueError, KeyError):
            # Invalid cron expression — treat as closed
            logger.warning("Invalid event window schedule: %r", window.schedule)
            return False

    return False


class InterruptScheduler:
    """Timer loop that opens compliance events."""

    def __init__(
        self,
        session: ComplianceSession,
        world_store: WorldModelStore,
        config: Optional[SchedulerConfig] = None,
        agencies: Optional[List[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.session = session
        self.world_store = world_store
        self.config = config or SchedulerConfig()
        self.agencies = list(agencies or AGENCIES)
        self._rng = rng or random.Random()
        self._running = False
        self._fired = 0

    @property
    def status(self) -> str:
        """Current scheduler status."""
        return "running" if self._running else "stopped"

    @property
    def fired_count(self) -> int:
        return self._fired

    def trigger_once(self, current_time: Optional[datetime] = None) -> bool:
        """Try to start a compliance event. Returns True if one started."""
        if current_time is None:
            current_time = datetime.now()

        if self.session.state.active:
            return False
        if self.world_store.remaining_count == 0:
            return False
        if not is_window_open(self.config.window, current_time):
            return False

        agency = self._rng.choice(self.agencies)
        started = self.session.start_event(agency)
        if started:
            self._fired += 1
            logger.info("Compliance event opened by %s", agency)
        return started

    async def run_async(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Run the scheduler until `stop_event` is set or the task is cancelled."""
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()

        delay = self.config.first_delay_seconds
        try:
            while not stop_event.is_set():
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=delay)
                    break
                except asyncio.TimeoutError:
                    pass
                self.trigger_once()
                delay = self.config.interval_seconds
        finally:
            self._running = False
