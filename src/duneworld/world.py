"""Generated world container."""

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from .config import Config
from .grid import TerrainTile, WorldGrid
from .poi import PointOfInterest
from .spawn import SpawnPoint
from .terrain.rivers import RiverPath


@dataclass
class WorldData:
    """Everything one generation run produced."""

    seed: int
    config: Config
    grid: WorldGrid
    river_mask: NDArray[np.float32]
    rivers: list[RiverPath] = field(default_factory=list)
    pois: list[PointOfInterest] = field(default_factory=list)
    spawn: SpawnPoint | None = None

    @property
    def tiles(self) -> list[TerrainTile]:
        return self.grid.tiles

    def global_heights(self) -> NDArray[np.float32]:
        """Normalized heights of the whole world as one array."""
        return self.grid.reassemble("heights")

    def global_biome(self) -> NDArray[np.float32]:
        return self.grid.reassemble("biome")
