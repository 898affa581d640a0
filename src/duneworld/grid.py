"""Tile grid layout, global sample indexing and neighbor stitching."""

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from .config import WorldConfig
from .exceptions import GenerationError, SamplingError

# Tolerance when a world coordinate sits exactly on a tile's far edge
EDGE_EPSILON = 1e-9


@dataclass
class TerrainTile:
    """One tile of the world and its per-sample data.

    Arrays are indexed [row, col] = [z, x] with (resolution + 1) samples
    per side; the last row/column is shared with the next tile.
    """

    grid_x: int
    grid_y: int
    origin: tuple[float, float]  # world (x, z) of sample [0, 0]
    size: tuple[float, float]  # world (width, length)
    resolution: int
    vertical_depth: float

    heights: NDArray[np.float32] | None = None
    biome: NDArray[np.float32] | None = None
    river: NDArray[np.float32] | None = None
    splatmap: NDArray[np.float32] | None = None

    left: "TerrainTile | None" = field(default=None, repr=False, compare=False)
    right: "TerrainTile | None" = field(default=None, repr=False, compare=False)
    top: "TerrainTile | None" = field(default=None, repr=False, compare=False)
    bottom: "TerrainTile | None" = field(default=None, repr=False, compare=False)

    @property
    def name(self) -> str:
        return f"Tile_{self.grid_x}_{self.grid_y}"

    @property
    def samples(self) -> int:
        return self.resolution + 1

    def contains(self, x: float, z: float) -> bool:
        """Check if a world position lies on this tile (edges inclusive)."""
        ox, oz = self.origin
        w, l = self.size
        return (
            ox - EDGE_EPSILON <= x <= ox + w + EDGE_EPSILON
            and oz - EDGE_EPSILON <= z <= oz + l + EDGE_EPSILON
        )

    def sample_height(self, x: float, z: float) -> float:
        """Bilinearly interpolated normalized height at a world position.

        Raises:
            SamplingError: If the position is outside this tile.
            GenerationError: If heights have not been generated yet.
        """
        if not self.contains(x, z):
            raise SamplingError(f"({x}, {z}) is outside {self.name}")
        if self.heights is None:
            raise GenerationError(f"{self.name} has no heights yet")

        ox, oz = self.origin
        w, l = self.size
        fx = min(max((x - ox) / w, 0.0), 1.0) * self.resolution
        fz = min(max((z - oz) / l, 0.0), 1.0) * self.resolution

        c0 = min(int(fx), self.resolution - 1)
        r0 = min(int(fz), self.resolution - 1)
        tx = fx - c0
        tz = fz - r0

        h = self.heights
        top = h[r0, c0] * (1.0 - tx) + h[r0, c0 + 1] * tx
        bottom = h[r0 + 1, c0] * (1.0 - tx) + h[r0 + 1, c0 + 1] * tx
        return float(top * (1.0 - tz) + bottom * tz)

    def world_heights(self) -> NDArray[np.float32]:
        """Heights scaled to world units."""
        if self.heights is None:
            raise GenerationError(f"{self.name} has no heights yet")
        return (self.heights * self.vertical_depth).astype(np.float32)


class WorldGrid:
    """Grid of tiles over one global sample space.

    The global grid has (tiles_x * res + 1) x (tiles_y * res + 1) samples.
    Tile (gx, gy) covers rows gy*res .. gy*res + res and columns
    gx*res .. gx*res + res, so neighbors share one row or column.
    """

    def __init__(
        self,
        tiles_x: int,
        tiles_y: int,
        resolution: int,
        tile_width: float = 1000.0,
        tile_length: float = 1000.0,
        vertical_depth: float = 20.0,
    ):
        if tiles_x < 1 or tiles_y < 1 or resolution < 1:
            raise ValueError(
                f"grid needs at least one tile and resolution 1, "
                f"got {tiles_x}x{tiles_y} at {resolution}"
            )
        self.tiles_x = tiles_x
        self.tiles_y = tiles_y
        self.resolution = resolution
        self.tile_width = tile_width
        self.tile_length = tile_length
        self.vertical_depth = vertical_depth
        self._tiles: dict[tuple[int, int], TerrainTile] = {}

    @classmethod
    def from_config(cls, world: WorldConfig) -> "WorldGrid":
        return cls(
            tiles_x=world.tiles_x,
            tiles_y=world.tiles_y,
            resolution=world.heightmap_resolution,
            tile_width=world.tile_world_width,
            tile_length=world.tile_world_length,
            vertical_depth=world.vertical_depth,
        )

    @property
    def samples_x(self) -> int:
        return self.tiles_x * self.resolution + 1

    @property
    def samples_y(self) -> int:
        return self.tiles_y * self.resolution + 1

    @property
    def shape(self) -> tuple[int, int]:
        """Global sample array shape (rows, cols)."""
        return self.samples_y, self.samples_x

    @property
    def tile_count(self) -> int:
        return self.tiles_x * self.tiles_y

    @property
    def world_size(self) -> tuple[float, float]:
        return self.tiles_x * self.tile_width, self.tiles_y * self.tile_length

    def coordinates(self) -> list[tuple[int, int]]:
        """All (gx, gy) in row-major order."""
        return [(gx, gy) for gy in range(self.tiles_y) for gx in range(self.tiles_x)]

    def _check_bounds(self, gx: int, gy: int) -> None:
        if not (0 <= gx < self.tiles_x and 0 <= gy < self.tiles_y):
            raise SamplingError(
                f"Tile ({gx}, {gy}) outside {self.tiles_x}x{self.tiles_y} grid"
            )

    def create_tile(self, gx: int, gy: int) -> TerrainTile:
        self._check_bounds(gx, gy)
        tile = TerrainTile(
            grid_x=gx,
            grid_y=gy,
            origin=(gx * self.tile_width, gy * self.tile_length),
            size=(self.tile_width, self.tile_length),
            resolution=self.resolution,
            vertical_depth=self.vertical_depth,
        )
        self._tiles[(gx, gy)] = tile
        return tile

    def tile(self, gx: int, gy: int) -> TerrainTile:
        """Get a created tile.

        Raises:
            SamplingError: If (gx, gy) is outside the grid or not created yet.
        """
        self._check_bounds(gx, gy)
        try:
            return self._tiles[(gx, gy)]
        except KeyError:
            raise SamplingError(f"Tile ({gx}, {gy}) has not been created") from None

    @property
    def tiles(self) -> list[TerrainTile]:
        """Created tiles in row-major order."""
        return [self._tiles[c] for c in self.coordinates() if c in self._tiles]

    def block(self, gx: int, gy: int) -> tuple[slice, slice]:
        """Global (rows, cols) slices covered by a tile."""
        self._check_bounds(gx, gy)
        r = self.resolution
        return slice(gy * r, gy * r + r + 1), slice(gx * r, gx * r + r + 1)

    def sample_coordinates(
        self, gx: int, gy: int
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Global tile-unit (u, v) of every sample in a tile's block."""
        rows, cols = self.block(gx, gy)
        r = self.resolution
        u = np.arange(cols.start, cols.stop, dtype=np.float64) / r
        v = np.arange(rows.start, rows.stop, dtype=np.float64) / r
        uu, vv = np.meshgrid(u, v)
        return uu, vv

    def owned_mask(self, gx: int, gy: int) -> NDArray[np.bool_]:
        """Samples a tile computes itself.

        A shared sample belongs to the first tile in row-major order that
        contains it, so a tile skips its first column when it has a left
        neighbor and its first row when it has a bottom neighbor.
        """
        self._check_bounds(gx, gy)
        mask = np.ones((self.resolution + 1, self.resolution + 1), dtype=bool)
        if gx > 0:
            mask[:, 0] = False
        if gy > 0:
            mask[0, :] = False
        return mask

    def slice_global(self, array: NDArray, gx: int, gy: int) -> NDArray:
        """Copy of a tile's block out of a global array."""
        if array.shape[:2] != self.shape:
            raise SamplingError(f"Global array shape {array.shape} does not match {self.shape}")
        return array[self.block(gx, gy)].copy()

    def reassemble(self, attr: str) -> NDArray[np.float32]:
        """Rebuild a global array from every tile's per-tile array."""
        out = np.zeros(self.shape, dtype=np.float32)
        for tile in self.tiles:
            data = getattr(tile, attr)
            if data is None:
                raise GenerationError(f"{tile.name} has no {attr} yet")
            out[self.block(tile.grid_x, tile.grid_y)] = data
        return out

    def link_neighbors(self) -> None:
        """Set left/right/top/bottom links; top is +gy, bottom is -gy."""
        for tile in self.tiles:
            gx, gy = tile.grid_x, tile.grid_y
            tile.left = self._tiles.get((gx - 1, gy))
            tile.right = self._tiles.get((gx + 1, gy))
            tile.top = self._tiles.get((gx, gy + 1))
            tile.bottom = self._tiles.get((gx, gy - 1))

    def edge_mismatches(self, attr: str = "heights") -> list[str]:
        """Describe every shared edge whose samples differ between tiles."""
        problems = []
        for tile in self.tiles:
            data = getattr(tile, attr)
            if data is None:
                continue
            gx, gy = tile.grid_x, tile.grid_y

            right = self._tiles.get((gx + 1, gy))
            if right is not None and getattr(right, attr) is not None:
                if not np.array_equal(data[:, -1], getattr(right, attr)[:, 0]):
                    problems.append(f"{attr} seam between {tile.name} and {right.name}")

            top = self._tiles.get((gx, gy + 1))
            if top is not None and getattr(top, attr) is not None:
                if not np.array_equal(data[-1, :], getattr(top, attr)[0, :]):
                    problems.append(f"{attr} seam between {tile.name} and {top.name}")
        return problems

    def verify_shared_edges(self, attrs: tuple[str, ...] = ("heights", "biome", "river")) -> None:
        """Raise if any shared edge is not bit-identical.

        Raises:
            GenerationError: Listing every mismatched seam.
        """
        problems = [p for attr in attrs for p in self.edge_mismatches(attr)]
        if problems:
            raise GenerationError("; ".join(problems))

    def world_to_tile(self, x: float, z: float) -> TerrainTile:
        """Tile containing a world position; far edges belong to the last tile."""
        width, length = self.world_size
        if not (
            -EDGE_EPSILON <= x <= width + EDGE_EPSILON
            and -EDGE_EPSILON <= z <= length + EDGE_EPSILON
        ):
            raise SamplingError(f"({x}, {z}) is outside the {width}x{length} world")
        gx = min(max(int(x // self.tile_width), 0), self.tiles_x - 1)
        gy = min(max(int(z // self.tile_length), 0), self.tiles_y - 1)
        return self.tile(gx, gy)

    def ground_height(self, x: float, z: float) -> float:
        """World-space ground height at a world position."""
        return self.world_to_tile(x, z).sample_height(x, z) * self.vertical_depth
