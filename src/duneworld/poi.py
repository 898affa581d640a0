"""Deterministic point-of-interest placement on generated tiles."""

from dataclasses import dataclass

import numpy as np
import structlog

from .config import PoiConfig
from .grid import TerrainTile, WorldGrid
from .terrain import seeding

logger = structlog.get_logger()


@dataclass(frozen=True)
class PointOfInterest:
    """A named marker placed on the terrain surface."""

    name: str
    tile: tuple[int, int]  # owning tile (gx, gy)
    position: tuple[float, float, float]  # world (x, y, z), y is up
    yaw: float  # degrees, 0 faces +z

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "tile": list(self.tile),
            "position": list(self.position),
            "yaw": self.yaw,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PointOfInterest":
        return cls(
            name=data["name"],
            tile=(int(data["tile"][0]), int(data["tile"][1])),
            position=(
                float(data["position"][0]),
                float(data["position"][1]),
                float(data["position"][2]),
            ),
            yaw=float(data["yaw"]),
        )


def poi_target_count(tile_count: int, tiles_per_tower: int) -> int:
    """One point per tiles_per_tower tiles, never fewer than one."""
    return max(1, tile_count // tiles_per_tower)


def make_poi_rng(seed: int) -> np.random.Generator:
    return seeding.make_rng(seed, seeding.POI_SEED_OFFSET)


def select_poi_tiles(
    grid: WorldGrid, config: PoiConfig, rng: np.random.Generator
) -> list[TerrainTile]:
    """Choose distinct tiles to receive a point, in draw order."""
    coords = grid.coordinates()
    target = poi_target_count(len(coords), config.tiles_per_tower)
    picks = rng.choice(len(coords), size=target, replace=False)
    return [grid.tile(*coords[int(i)]) for i in picks]


def poi_name(config: PoiConfig, index: int, tile: TerrainTile) -> str:
    if config.naming == "tile":
        return f"{config.name_prefix}{tile.grid_x}_{tile.grid_y}"
    return f"{config.name_prefix}{index}"


def place_poi(
    tile: TerrainTile,
    index: int,
    config: PoiConfig,
    rng: np.random.Generator,
) -> PointOfInterest:
    """Place one point at a jittered spot on a tile.

    The spot keeps ``edge_margin`` (a fraction of the tile size) clear of
    every edge. Height is the bilinear ground height plus ``height_offset``.
    """
    margin = config.edge_margin
    fx, fz = rng.uniform(margin, 1.0 - margin, size=2)
    yaw = float(rng.uniform(0.0, 360.0))

    ox, oz = tile.origin
    width, length = tile.size
    x = ox + float(fx) * width
    z = oz + float(fz) * length
    y = tile.sample_height(x, z) * tile.vertical_depth + config.height_offset

    poi = PointOfInterest(
        name=poi_name(config, index, tile),
        tile=(tile.grid_x, tile.grid_y),
        position=(x, y, z),
        yaw=yaw,
    )
    logger.debug("poi_placed", name=poi.name, tile=poi.tile, x=x, y=y, z=z)
    return poi


def place_points_of_interest(
    grid: WorldGrid, config: PoiConfig, seed: int
) -> list[PointOfInterest]:
    """Select tiles and place every point in one call."""
    rng = make_poi_rng(seed)
    tiles = select_poi_tiles(grid, config, rng)
    pois = [place_poi(tile, i, config, rng) for i, tile in enumerate(tiles)]
    logger.info("pois_placed", count=len(pois))
    return pois
