"""
World Model Store — owns the map: waypoints, sleigh position and target.

Updated by: Motion Controller
Queried by: Interrupt Scheduler + API
"""

from typing import List, Optional

from sleigh_kernel.models.autopilot import MotionConfig
from sleigh_kernel.models.world import AgentPosition, MapState, Waypoint


def clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


class WorldModelStore:
    """
    In-memory map store.
    Nothing is persisted; the waypoint set is regenerated on startup.
    """

    def __init__(
        self,
        waypoints: Optional[List[Waypoint]] = None,
        position: Optional[AgentPosition] = None,
        motion_config: Optional[MotionConfig] = None,
    ):
        self._config = motion_config or MotionConfig()
        self._state = MapState(
            waypoints=list(waypoints or []),
            position=position or AgentPosition(),
        )

    @property
    def state(self) -> MapState:
        """Get the live map state (not a copy)."""
        return self._state

    @property
    def position(self) -> AgentPosition:
        return self._state.position

    @property
    def target_id(self) -> Optional[str]:
        return self._state.target_id

    @property
    def waypoints(self) -> List[Waypoint]:
        return self._state.waypoints

    def load_waypoints(self, waypoints: List[Waypoint]) -> None:
        """Replace the waypoint set and drop the current target."""
        self._state.waypoints = list(waypoints)
        self._state.target_id = None

    def get_waypoint(self, waypoint_id: str) -> Optional[Waypoint]:
        """Get a specific waypoint by ID."""
        return next((w for w in self._state.waypoints if w.id == waypoint_id), None)

    def undelivered(self) -> List[Waypoint]:
        """All waypoints still waiting for a delivery."""
        return [w for w in self._state.waypoints if not w.delivered]

    @property
    def remaining_count(self) -> int:
        """Recomputed on every read."""
        return sum(1 for w in self._state.waypoints if not w.delivered)

    def mark_delivered(self, waypoint_id: str) -> bool:
        """Flip a waypoint to delivered. Returns False if missing or already delivered."""
        waypoint = self.get_waypoint(waypoint_id)
        if waypoint is None or waypoint.delivered:
            return False
        waypoint.delivered = True
        if self._state.target_id == waypoint_id:
            self._state.target_id = None
        return True

    def set_target(self, waypoint_id: str) -> None:
        self._state.target_id = waypoint_id

    def clear_target(self) -> None:
        self._state.target_id = None

    def move_to(self, x: float, y: float) -> AgentPosition:
        """Move the sleigh, clamping both axes to the configured bounds."""
        low, high = self._config.min_coordinate, self._config.max_coordinate
        self._state.position = AgentPosition(
            x=clamp(x, low, high),
            y=clamp(y, low, high),
        )
        return self._state.position

    def get_state_snapshot(self) -> dict:
        """Get a serializable snapshot of the current map."""
        snapshot = self._state.model_dump(mode="json")
        snapshot["remaining"] = self.remaining_count
        snapshot["total"] = len(self._state.waypoints)
        return snapshot
