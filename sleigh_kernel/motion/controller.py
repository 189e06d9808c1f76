"""
Motion Controller — the autopilot.

Advances the sleigh toward its target once per animation frame, delivers on
arrival and picks a new random target when idle.

Behavioral Contract:
- Does nothing at all while a compliance event is active
- Never targets a delivered waypoint
- Delivers each waypoint at most once
- Keeps the sleigh inside the configured bounds
- Never blocks and never performs I/O
"""

import math
import random
from enum import Enum
from typing import Callable, Optional

from sleigh_kernel.event_log.store import EventLog
from sleigh_kernel.models.autopilot import MotionConfig
from sleigh_kernel.world_model.store import WorldModelStore


class TickOutcome(str, Enum):
    PAUSED = "paused"           # Compliance event active
    IDLE = "idle"               # Nothing left to deliver
    TARGETED = "targeted"       # Picked a new target
    STALE = "stale"             # Target no longer valid, cleared
    DELIVERED = "delivered"
    MOVED = "moved"


class MotionController:
    """Frame-driven autopilot over a WorldModelStore."""

    def __init__(
        self,
        world_store: WorldModelStore,
        event_log: EventLog,
        is_paused: Callable[[], bool],
        config: Optional[MotionConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.world_store = world_store
        self.event_log = event_log
        self.config = config or MotionConfig()
        self._is_paused = is_paused
        self._rng = rng or random.Random()

    def tick(self, dt: float) -> TickOutcome:
        """Run one animation frame with `dt` seconds elapsed."""
        dt = min(max(dt, 0.0), self.config.max_step_seconds)

        if self._is_paused():
            return TickOutcome.PAUSED

        if self.world_store.target_id is None:
            return self._pick_next_target()

        target = self.world_store.get_waypoint(self.world_store.target_id)
        if target is None or target.delivered:
            self.world_store.clear_target()
            return TickOutcome.STALE

        position = self.world_store.position
        dx = target.x - position.x
        dy = target.y - position.y
        distance = math.hypot(dx, dy)

        if distance < self.config.arrival_radius:
            self.world_store.mark_delivered(target.id)
            self.world_store.clear_target()
            self.event_log.append(f"Delivered at {target.label}.")
            return TickOutcome.DELIVERED

        magnitude = distance or 1.0
        step = self.config.speed_per_second * dt
        self.world_store.move_to(
            position.x + (dx / magnitude) * step,
            position.y + (dy / magnitude) * step,
        )
        return TickOutcome.MOVED

    def _pick_next_target(self) -> TickOutcome:
        """Choose uniformly among undelivered waypoints."""
        remaining = self.world_store.undelivered()
        if not remaining:
            self.world_store.clear_target()
            return TickOutcome.IDLE

        chosen = self._rng.choice(remaining)
        self.world_store.set_target(chosen.id)
        self.event_log.append(
            f"Routing to {chosen.label} ({len(remaining)} left after this)."
        )
        return TickOutcome.TARGETED
