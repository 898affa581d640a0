"""Preview rendering of a generated world: one pixel per sample."""

import numpy as np
from PIL import Image

from .world import WorldData

# Layer tints (RGB), in splat channel order
LAYER_COLORS = np.array(
    [
        (222, 180, 120),  # Dune sand
        (236, 232, 220),  # Salt flat
        (70, 120, 170),  # River bed
    ],
    dtype=np.float32,
)

POI_COLOR = (200, 30, 30)
SPAWN_COLOR = (30, 200, 30)

# Darkest shade applied to the lowest samples
MIN_SHADE = 0.45


def global_splat(world: WorldData) -> np.ndarray:
    """Reassemble per-tile splatmaps into one (rows, cols, layers) array.

    Transposed alphamaps are mapped back to sample orientation first.
    """
    grid = world.grid
    transposed = world.config.settings.alphamap_orientation == "transposed"
    out = np.zeros((*grid.shape, LAYER_COLORS.shape[0]), dtype=np.float32)
    for tile in grid.tiles:
        rows, cols = grid.block(tile.grid_x, tile.grid_y)
        splat = tile.splatmap
        if transposed:
            splat = np.transpose(splat, (1, 0, 2))
        if splat.shape[:2] != (tile.samples, tile.samples):
            # Alphamap at another resolution: fall back to nearest texels
            idx = np.round(np.linspace(0, splat.shape[0] - 1, tile.samples)).astype(int)
            splat = splat[np.ix_(idx, idx)]
        out[rows, cols] = splat
    return out


def generate_world_image(world: WorldData, show_markers: bool = True) -> Image.Image:
    """Shade heights and tint by splat weights.

    Row 0 of the arrays is the southern edge, so the image is flipped
    vertically to put north at the top.
    """
    heights = world.global_heights()
    splat = global_splat(world)

    color = splat @ LAYER_COLORS
    shade = MIN_SHADE + (1.0 - MIN_SHADE) * heights[..., None]
    rgb = np.clip(color * shade, 0, 255).astype(np.uint8)

    if show_markers:
        grid = world.grid
        rows, cols = grid.shape
        width, length = grid.world_size

        def mark(x: float, z: float, c: tuple[int, int, int]) -> None:
            col = int(round(x / width * (cols - 1)))
            row = int(round(z / length * (rows - 1)))
            rgb[max(0, row - 1) : row + 2, max(0, col - 1) : col + 2] = c

        for poi in world.pois:
            mark(poi.position[0], poi.position[2], POI_COLOR)
        if world.spawn is not None:
            mark(world.spawn.position[0], world.spawn.position[2], SPAWN_COLOR)

    return Image.fromarray(np.ascontiguousarray(np.flipud(rgb)))


def compute_world_stats(world: WorldData) -> dict:
    """Compute summary statistics about the terrain.

    Returns:
        Dict with dimension, height, biome and river stats.
    """
    heights = world.global_heights()
    biome = world.global_biome()
    rows, cols = heights.shape

    return {
        "dimensions": {
            "tiles": f"{world.grid.tiles_x} x {world.grid.tiles_y}",
            "samples": f"{cols} x {rows}",
        },
        "heights": {
            "min": float(heights.min()),
            "max": float(heights.max()),
            "mean": float(heights.mean()),
        },
        "biome": {
            "dune_percentage": round(100 * float(np.mean(biome >= 0.5)), 2),
        },
        "rivers": {
            "count": len(world.rivers),
            "coverage_percentage": round(100 * float(np.mean(world.river_mask > 0)), 2),
        },
    }
