"""World Model — waypoints, the agent position and the current target."""

from typing import List, Optional

from pydantic import BaseModel, Field


class Waypoint(BaseModel):
    """A deliverable target point on the normalized map."""

    id: str                                 # e.g., "house-12"
    label: str                              # e.g., "House 12"
    x: float = Field(ge=0, le=100)          # Horizontal, % of map width
    y: float = Field(ge=0, le=100)          # Vertical, % of map height
    delivered: bool = False                 # One-way: False -> True


class AgentPosition(BaseModel):
    """Where the sleigh is. Both axes stay inside [1, 99]."""

    x: float = Field(ge=1, le=99, default=48.0)
    y: float = Field(ge=1, le=99, default=30.0)


class MapState(BaseModel):
    """
    The single mutable struct shared by the frame loop and the timer loop.

    Both loops hold a reference to the same instance and read the latest
    values on every tick; neither keeps its own copy.
    """

    waypoints: List[Waypoint] = []
    position: AgentPosition = AgentPosition()
    target_id: Optional[str] = None         # Weak reference to an undelivered waypoint
