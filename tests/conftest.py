"""Shared test fixtures for world generation tests."""

import numpy as np
import pytest

from duneworld.config import Config, GenerationSettings, WorldConfig
from duneworld.grid import WorldGrid
from duneworld.pipeline import generate
from duneworld.world import WorldData


@pytest.fixture
def settings() -> GenerationSettings:
    """Default generation settings."""
    return GenerationSettings()


@pytest.fixture
def small_config() -> Config:
    """2x2 tiles at resolution 8 with a single narrow river."""
    return Config(
        world=WorldConfig(tiles_x=2, tiles_y=2, heightmap_resolution=8, seed=42),
        settings=GenerationSettings(
            min_rivers=1, max_rivers=1, river_width=2.0, river_width_jitter=0.0
        ),
    )


@pytest.fixture
def scenario_config() -> Config:
    """2x2 tiles, resolution 4, seed 42, one river, vertical depth 20."""
    return Config(
        world=WorldConfig(
            tiles_x=2, tiles_y=2, heightmap_resolution=4, seed=42, vertical_depth=20.0
        ),
        settings=GenerationSettings(
            min_rivers=1, max_rivers=1, river_width=2.0, river_width_jitter=0.0
        ),
    )


@pytest.fixture
def small_world(small_config: Config) -> WorldData:
    """World generated from small_config."""
    return generate(small_config)


@pytest.fixture
def flat_grid() -> WorldGrid:
    """2x2 grid of 100x100 tiles at resolution 4, every height 0.5, depth 20."""
    grid = WorldGrid(
        tiles_x=2, tiles_y=2, resolution=4, tile_width=100.0, tile_length=100.0,
        vertical_depth=20.0,
    )
    for gx, gy in grid.coordinates():
        tile = grid.create_tile(gx, gy)
        tile.heights = np.full((5, 5), 0.5, dtype=np.float32)
    return grid
