"""Global river network: path planning and falloff stamping.

Rivers are planned and stamped once over the whole sample grid, so a river
crossing a tile boundary is continuous by construction. Each river runs
across the full world along one axis; its path stores the perpendicular
offset of the centerline for every sample on the primary axis.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from ..config import GenerationSettings
from . import seeding
from .noise import NoiseField, noise_field

logger = logging.getLogger(__name__)

# Stamping advances half a sample along the primary axis
STAMP_STEP = 0.5

# Path roughness is a fraction of the perpendicular extent
ROUGHNESS_SCALE = 0.05

OFFSET_RANGE = 1000.0


class RiverAxis(Enum):
    """Primary direction a river runs along."""

    HORIZONTAL = "horizontal"  # along x; path holds a row per column
    VERTICAL = "vertical"  # along z; path holds a column per row


@dataclass
class RiverPath:
    """A planned river centerline."""

    index: int
    axis: RiverAxis
    start_offset: int
    path: NDArray[np.float64]  # perpendicular offset per primary sample
    widths: NDArray[np.float64]  # local half-width per primary sample

    @property
    def length(self) -> int:
        return len(self.path)

    def centerline_indices(self) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
        """(rows, cols) of the grid samples the centerline passes through."""
        primary = np.arange(self.length, dtype=np.int64)
        perpendicular = np.floor(self.path + 0.5).astype(np.int64)
        if self.axis is RiverAxis.HORIZONTAL:
            return perpendicular, primary
        return primary, perpendicular


@dataclass(frozen=True)
class FalloffKernel:
    """Square neighborhood offsets and their distances from the center."""

    radius: int
    primary: NDArray[np.int64]
    perpendicular: NDArray[np.int64]
    distances: NDArray[np.float64]

    @classmethod
    def build(cls, radius: int) -> "FalloffKernel":
        span = np.arange(-radius, radius + 1, dtype=np.int64)
        dp, dq = np.meshgrid(span, span, indexing="ij")
        dp = dp.ravel()
        dq = dq.ravel()
        return cls(
            radius=radius,
            primary=dp,
            perpendicular=dq,
            distances=np.hypot(dp, dq).astype(np.float64),
        )


class RiverNetworkBuilder:
    """Plans rivers from the world seed and stamps them into one global mask.

    Usage:
        builder = RiverNetworkBuilder(settings, seed, samples_x, samples_y)
        mask, rivers = builder.build()

    Or one river at a time:
        mask = builder.empty_mask()
        for river in builder.plan_rivers():
            builder.stamp_river(mask, river)
    """

    def __init__(
        self,
        settings: GenerationSettings,
        seed: int,
        samples_x: int,
        samples_y: int,
    ):
        if samples_x < 2 or samples_y < 2:
            raise ValueError(
                f"river grid needs at least 2 samples per axis, got {samples_x}x{samples_y}"
            )
        self.settings = settings
        self.seed = seed
        self.samples_x = samples_x
        self.samples_y = samples_y
        self._kernels: dict[int, FalloffKernel] = {}

    @property
    def shape(self) -> tuple[int, int]:
        return self.samples_y, self.samples_x

    def empty_mask(self) -> NDArray[np.float32]:
        return np.zeros(self.shape, dtype=np.float32)

    def kernel(self, radius: int) -> FalloffKernel:
        """Falloff kernel for a radius, built once per radius."""
        kernel = self._kernels.get(radius)
        if kernel is None:
            kernel = FalloffKernel.build(radius)
            self._kernels[radius] = kernel
        return kernel

    def river_count(self) -> int:
        s = self.settings
        rng = seeding.make_rng(self.seed, seeding.RIVER_COUNT_SEED_OFFSET)
        return int(rng.integers(s.min_rivers, s.max_rivers + 1))

    def plan_rivers(self) -> list[RiverPath]:
        """Draw every river's layout, path and width profile.

        All random draws happen here, before any stamping.
        """
        count = self.river_count()
        rivers = [self.plan_river(r) for r in range(count)]
        logger.info(f"Planned {len(rivers)} rivers over {self.samples_x}x{self.samples_y} samples")
        return rivers

    def plan_river(self, index: int) -> RiverPath:
        rng = np.random.default_rng(seeding.river_seed(self.seed, index))
        vertical = rng.random() > 0.5

        if vertical:
            axis = RiverAxis.VERTICAL
            n_primary, n_perp = self.samples_y, self.samples_x
            path_stride, width_stride = (
                seeding.VERTICAL_PATH_STRIDE,
                seeding.VERTICAL_WIDTH_STRIDE,
            )
        else:
            axis = RiverAxis.HORIZONTAL
            n_primary, n_perp = self.samples_x, self.samples_y
            path_stride, width_stride = (
                seeding.HORIZONTAL_PATH_STRIDE,
                seeding.HORIZONTAL_WIDTH_STRIDE,
            )

        low = n_perp // 4
        high = max(low + 1, 3 * n_perp // 4)
        start = int(rng.integers(low, high))

        path = self.build_path(
            n_primary, n_perp, start, seeding.river_seed(self.seed, index, path_stride)
        )
        widths = self.build_widths(
            n_primary, seeding.river_seed(self.seed, index, width_stride)
        )

        logger.debug(f"River {index}: {axis.value}, start offset {start}")
        return RiverPath(
            index=index, axis=axis, start_offset=start, path=path, widths=widths
        )

    def build_path(
        self, n_primary: int, n_perp: int, start: int, path_seed: int
    ) -> NDArray[np.float64]:
        """Smooth centerline with drift, wiggle and roughness.

        Args:
            n_primary: Samples along the river's axis.
            n_perp: Samples across the river's axis.
            start: Starting perpendicular offset.
            path_seed: Seed for the path noise.

        Returns:
            Perpendicular offsets in [0, n_perp - 1], one per primary sample.
        """
        s = self.settings
        field = noise_field(path_seed)
        rng = np.random.default_rng(path_seed)
        drift_off, wiggle_off, rough_off = rng.uniform(0.0, OFFSET_RANGE, size=3)

        t = np.arange(n_primary, dtype=np.float64) / max(1, n_primary - 1)
        high_amplitude = s.river_high_amplitude * (0.2 + s.river_windiness * 0.8)

        drift = _signed_line(field, t, s.river_low_frequency, drift_off) * s.river_low_amplitude
        wiggle = _signed_line(field, t, s.river_high_frequency, wiggle_off) * high_amplitude

        extent = n_perp - 1
        path = np.clip(start / extent + drift + wiggle, 0.0, 1.0) * extent

        for _ in range(s.river_smooth_passes):
            path = ndimage.uniform_filter1d(path, size=3, mode="nearest")

        if s.river_roughness > 0.0:
            rough = (
                _signed_line(field, t, s.river_roughness_frequency, rough_off)
                * s.river_roughness
            )
            path = np.clip(path + rough * extent * ROUGHNESS_SCALE, 0.0, extent)

        return path

    def build_widths(self, n_primary: int, width_seed: int) -> NDArray[np.float64]:
        """Per-sample half-width: river_width * (1 + jitter)."""
        s = self.settings
        widths = np.full(n_primary, float(s.river_width), dtype=np.float64)
        if s.river_width_jitter == 0.0:
            return widths

        field = noise_field(width_seed)
        offset = float(np.random.default_rng(width_seed).uniform(0.0, OFFSET_RANGE))
        t = np.arange(n_primary, dtype=np.float64) / max(1, n_primary - 1)
        jitter = _signed_line(field, t, s.river_width_jitter_frequency, offset)
        return widths * (1.0 + jitter * s.river_width_jitter)

    def stamp_river(self, mask: NDArray[np.float32], river: RiverPath) -> None:
        """Max-combine one river's falloff into the mask in place."""
        n = river.length
        positions = np.arange(2 * (n - 1) + 1, dtype=np.float64) * STAMP_STEP
        for fp in positions:
            i0 = int(math.floor(fp))
            i1 = min(i0 + 1, n - 1)
            t = fp - i0
            center = river.path[i0] + (river.path[i1] - river.path[i0]) * t
            width = river.widths[i0] + (river.widths[i1] - river.widths[i0]) * t
            self._stamp_disc(mask, river.axis, fp, center, width)

    def _stamp_disc(
        self,
        mask: NDArray[np.float32],
        axis: RiverAxis,
        primary_pos: float,
        center: float,
        width: float,
    ) -> None:
        if width <= 0.0:
            return

        kernel = self.kernel(max(1, math.ceil(width)))
        inside = kernel.distances <= width
        distances = kernel.distances[inside]
        weights = np.power(1.0 - distances / width, self.settings.river_bank_softness)

        p_idx = np.floor(primary_pos + kernel.primary[inside] + 0.5).astype(np.int64)
        q_idx = np.floor(center + kernel.perpendicular[inside] + 0.5).astype(np.int64)

        if axis is RiverAxis.HORIZONTAL:
            rows, cols = q_idx, p_idx
        else:
            rows, cols = p_idx, q_idx

        in_bounds = (rows >= 0) & (rows < mask.shape[0]) & (cols >= 0) & (cols < mask.shape[1])
        np.maximum.at(
            mask,
            (rows[in_bounds], cols[in_bounds]),
            weights[in_bounds].astype(np.float32),
        )

    def build(self) -> tuple[NDArray[np.float32], list[RiverPath]]:
        """Plan and stamp every river into a fresh global mask."""
        mask = self.empty_mask()
        rivers = self.plan_rivers()
        for river in rivers:
            self.stamp_river(mask, river)
        coverage = float(np.mean(mask > 0.0))
        logger.info(f"River mask built: {len(rivers)} rivers, {coverage:.1%} coverage")
        return mask, rivers


def _signed_line(
    field: NoiseField, t: NDArray[np.float64], frequency: float, offset: float
) -> NDArray[np.float64]:
    """Noise along a line, remapped to [-1, 1]."""
    frequency = max(1e-4, frequency)
    return field.sample(t * frequency + offset, offset) * 2.0 - 1.0
