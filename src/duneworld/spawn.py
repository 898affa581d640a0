"""Spawn point resolution near a named anchor point."""

import math
from dataclasses import dataclass
from typing import Callable

import numpy as np
import structlog

from .config import SpawnConfig
from .exceptions import ResourceUnavailable
from .grid import WorldGrid
from .poi import PointOfInterest
from .terrain import seeding

logger = structlog.get_logger()

# Returns the points currently known; may grow between calls
AnchorLookup = Callable[[], list[PointOfInterest]]


@dataclass(frozen=True)
class SpawnPoint:
    """Where the player starts."""

    position: tuple[float, float, float]
    yaw: float
    anchor_name: str | None
    fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "position": list(self.position),
            "yaw": self.yaw,
            "anchor_name": self.anchor_name,
            "fallback": self.fallback,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SpawnPoint":
        return cls(
            position=(
                float(data["position"][0]),
                float(data["position"][1]),
                float(data["position"][2]),
            ),
            yaw=float(data["yaw"]),
            anchor_name=data.get("anchor_name"),
            fallback=bool(data.get("fallback", False)),
        )


def find_anchor(pois: list[PointOfInterest], prefix: str) -> PointOfInterest | None:
    """First point whose name starts with the prefix."""
    for poi in pois:
        if poi.name.startswith(prefix):
            return poi
    return None


def require_anchor(lookup: AnchorLookup, prefix: str, max_attempts: int) -> PointOfInterest:
    """Look up the anchor up to max_attempts times.

    Raises:
        ResourceUnavailable: If no attempt finds a matching point.
    """
    for attempt in range(1, max_attempts + 1):
        anchor = find_anchor(lookup(), prefix)
        if anchor is not None:
            return anchor
        logger.debug("spawn_anchor_missing", prefix=prefix, attempt=attempt)
    raise ResourceUnavailable(
        f"No point named '{prefix}*' after {max_attempts} attempts"
    )


def _clamp_to_world(grid: WorldGrid, x: float, z: float) -> tuple[float, float]:
    width, length = grid.world_size
    return min(max(x, 0.0), width), min(max(z, 0.0), length)


def resolve_spawn(
    grid: WorldGrid,
    lookup: AnchorLookup,
    config: SpawnConfig,
    seed: int,
) -> SpawnPoint:
    """Place the spawn at a random spot in front of the anchor.

    The spot is at a random distance in [min_distance, max_distance] and a
    random angle within ``forward_arc`` degrees centered on the anchor's
    yaw, facing away from the anchor. Without an anchor the spawn falls
    back to the world center.
    """
    rng = seeding.make_rng(seed, seeding.SPAWN_SEED_OFFSET)

    try:
        anchor = require_anchor(lookup, config.anchor_prefix, config.max_attempts)
    except ResourceUnavailable as e:
        width, length = grid.world_size
        x, z = width / 2.0, length / 2.0
        y = grid.ground_height(x, z) + config.height_offset
        logger.warning("spawn_fallback", reason=str(e), x=x, y=y, z=z)
        return SpawnPoint(position=(x, y, z), yaw=0.0, anchor_name=None, fallback=True)

    radius = float(rng.uniform(config.min_distance, config.max_distance))
    if config.forward_arc >= 360.0:
        offset = float(rng.uniform(0.0, 360.0))
    else:
        half = config.forward_arc / 2.0
        offset = float(rng.uniform(-half, half))

    heading = (anchor.yaw + offset) % 360.0
    angle = math.radians(heading)
    ax, _, az = anchor.position
    x, z = _clamp_to_world(grid, ax + math.sin(angle) * radius, az + math.cos(angle) * radius)
    y = grid.ground_height(x, z) + config.height_offset

    logger.info(
        "spawn_resolved",
        anchor=anchor.name,
        x=round(x, 3),
        y=round(y, 3),
        z=round(z, 3),
        yaw=round(heading, 2),
    )
    return SpawnPoint(
        position=(x, y, z), yaw=heading, anchor_name=anchor.name, fallback=False
    )


def spawn_distance(spawn: SpawnPoint, anchor: PointOfInterest) -> float:
    """Horizontal distance between a spawn and its anchor."""
    dx = spawn.position[0] - anchor.position[0]
    dz = spawn.position[2] - anchor.position[2]
    return float(np.hypot(dx, dz))
