"""World export: save and load generated worlds as compressed archives."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import numpy as np

from .config import Config
from .grid import WorldGrid
from .poi import PointOfInterest
from .spawn import SpawnPoint
from .terrain.rivers import RiverAxis, RiverPath
from .world import WorldData

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def _encode(data: object) -> bytes:
    return json.dumps(data).encode("utf-8")


def _decode(array: np.ndarray) -> object:
    return json.loads(array.tobytes().decode("utf-8"))


def save_world(path: Path, world: WorldData) -> None:
    """Save a generated world to disk.

    Uses numpy's compressed .npz format. Heights, biome and river data are
    stored as global arrays; splatmaps are stacked per tile in row-major
    order.

    Args:
        path: Output path (should end with .npz).
        world: Generated world.
    """
    grid = world.grid
    splatmaps = np.stack([tile.splatmap for tile in grid.tiles])

    rivers_data = [
        {
            "index": river.index,
            "axis": river.axis.value,
            "start_offset": river.start_offset,
            "path": river.path.tolist(),
            "widths": river.widths.tolist(),
        }
        for river in world.rivers
    ]

    metadata = {
        "version": FORMAT_VERSION,
        "seed": world.seed,
        "tiles_x": grid.tiles_x,
        "tiles_y": grid.tiles_y,
        "resolution": grid.resolution,
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }

    np.savez_compressed(
        path,
        heights=world.global_heights(),
        biome=world.global_biome(),
        river_mask=world.river_mask,
        splatmaps=splatmaps,
        rivers=_encode(rivers_data),
        pois=_encode([poi.to_dict() for poi in world.pois]),
        spawn=_encode(world.spawn.to_dict() if world.spawn else None),
        config=_encode(world.config.model_dump(mode="json")),
        metadata=_encode(metadata),
    )

    file_size = path.stat().st_size / (1024 * 1024)
    logger.info(f"Saved world to {path} ({file_size:.1f} MB)")


def load_world(path: Path) -> WorldData:
    """Load a world saved by save_world.

    Args:
        path: Path to .npz file.

    Returns:
        WorldData with tiles sliced back out of the global arrays.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If file format is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"World file not found: {path}")

    data = np.load(path)
    for key in ("heights", "biome", "river_mask", "splatmaps", "config", "metadata"):
        if key not in data:
            raise ValueError(f"Invalid world file: missing '{key}'")

    metadata = _decode(data["metadata"])
    if metadata.get("version") != FORMAT_VERSION:
        raise ValueError(f"Unsupported world file version: {metadata.get('version')}")

    config = Config.model_validate(_decode(data["config"]))
    grid = WorldGrid.from_config(config.world)

    heights = data["heights"]
    biome = data["biome"]
    river_mask = data["river_mask"]
    splatmaps = data["splatmaps"]
    if heights.shape != grid.shape:
        raise ValueError(f"Height array {heights.shape} does not match grid {grid.shape}")

    for i, (gx, gy) in enumerate(grid.coordinates()):
        tile = grid.create_tile(gx, gy)
        tile.heights = grid.slice_global(heights, gx, gy)
        tile.biome = grid.slice_global(biome, gx, gy)
        tile.river = grid.slice_global(river_mask, gx, gy)
        tile.splatmap = splatmaps[i].copy()
    if config.world.set_neighbors:
        grid.link_neighbors()

    rivers = [
        RiverPath(
            index=r["index"],
            axis=RiverAxis(r["axis"]),
            start_offset=r["start_offset"],
            path=np.asarray(r["path"], dtype=np.float64),
            widths=np.asarray(r["widths"], dtype=np.float64),
        )
        for r in (_decode(data["rivers"]) if "rivers" in data else [])
    ]
    pois = [
        PointOfInterest.from_dict(p) for p in (_decode(data["pois"]) if "pois" in data else [])
    ]
    spawn_data = _decode(data["spawn"]) if "spawn" in data else None
    spawn = SpawnPoint.from_dict(spawn_data) if spawn_data else None

    logger.info(
        f"Loaded world from {path}: {grid.tiles_x}x{grid.tiles_y} tiles, "
        f"seed {metadata['seed']}"
    )
    return WorldData(
        seed=int(metadata["seed"]),
        config=config,
        grid=grid,
        river_mask=river_mask,
        rivers=rivers,
        pois=pois,
        spawn=spawn,
    )
