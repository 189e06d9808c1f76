"""
Waypoint Set Generator — seeds the delivery targets once at startup.

Behavioral Contract:
- Produces exactly `count` waypoints with sequential ids and labels
- Coordinates come from a seeded PRNG, so repeated runs give the same set
- Candidates must pass the validity predicate (e.g., "on land")
- Validated drawing stops after count * attempts_per_waypoint attempts;
  any remaining slots are filled with unvalidated coordinates
"""

import logging
import random
from typing import Callable, List, Optional

from pydantic import BaseModel

from sleigh_kernel.models.autopilot import GeneratorConfig
from sleigh_kernel.models.world import Waypoint

logger = logging.getLogger(__name__)

ValidityPredicate = Callable[[float, float], bool]


class LandMask(BaseModel):
    """Already-decoded alpha channel of a land map, row-major."""

    width: int
    height: int
    alpha: List[int]


def mask_predicate(mask: LandMask, threshold: int = 10) -> ValidityPredicate:
    """Build an `is_valid(x, y)` predicate that accepts opaque (land) pixels."""

    def is_land(x: float, y: float) -> bool:
        px = max(0, min(mask.width - 1, round((x / 100) * mask.width)))
        py = max(0, min(mask.height - 1, round((y / 100) * mask.height)))
        return mask.alpha[py * mask.width + px] > threshold

    return is_land


def _make_waypoint(index: int, x: float, y: float) -> Waypoint:
    return Waypoint(id=f"house-{index}", label=f"House {index}", x=x, y=y)


def generate_waypoints(
    count: Optional[int] = None,
    is_valid: Optional[ValidityPredicate] = None,
    config: Optional[GeneratorConfig] = None,
) -> List[Waypoint]:
    """Generate the fixed waypoint set. Never fails, never loops forever."""
    config = config or GeneratorConfig()
    if count is None:
        count = config.count

    rand = random.Random(config.seed)
    span = config.margin_max - config.margin_min

    def draw() -> float:
        return config.margin_min + rand.random() * span

    waypoints: List[Waypoint] = []
    attempts = 0
    max_attempts = count * config.attempts_per_waypoint

    while len(waypoints) < count and attempts < max_attempts:
        attempts += 1
        y = draw()
        x = draw()
        if is_valid is not None and not is_valid(x, y):
            continue
        waypoints.append(_make_waypoint(len(waypoints) + 1, x, y))

    if len(waypoints) < count:
        logger.warning(
            "Placed %d of %d waypoints after %d attempts; filling the rest without validation",
            len(waypoints), count, attempts,
        )

    # Exhaustion fallback
    while len(waypoints) < count:
        y = draw()
        x = draw()
        waypoints.append(_make_waypoint(len(waypoints) + 1, x, y))

    return waypoints
