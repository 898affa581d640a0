"""Dune and salt-flat height synthesis."""

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..config import GenerationSettings
from . import seeding
from .noise import noise_field, smoothstep

DUNE_SHAPE_EXPONENT = 1.2
WIND_AMPLITUDE = 0.1
WIND_SKEW_LIMIT = 0.95
DETAIL_FREQUENCY = 50.0
DETAIL_AMPLITUDE = 0.05
SALT_FLAT_FREQUENCY = 5.0
SALT_FLAT_AMPLITUDE = 0.02

# Keeps noise lookups off the integer lattice where gradient noise is flat
OFFSET_RANGE = 1000.0


class HeightSynthesizer:
    """Evaluates normalized terrain height at global tile-unit coordinates.

    Coordinates are in tile units: u = global_column / resolution, so the
    shared edge between two tiles has the same (u, v) in both.

    Usage:
        synth = HeightSynthesizer(settings, seed=42)
        heights = synth.synthesize(u, v, blend, river)
    """

    def __init__(self, settings: GenerationSettings, seed: int):
        self.settings = settings
        self.seed = seed
        self._dune_field = noise_field(seeding.derive_seed(seed, seeding.HEIGHT_SEED_OFFSET))
        self._detail_field = noise_field(seeding.derive_seed(seed, seeding.DETAIL_SEED_OFFSET))
        self._salt_field = noise_field(seeding.derive_seed(seed, seeding.SALT_FLAT_SEED_OFFSET))

        rng = seeding.make_rng(seed, seeding.SURFACE_OFFSETS_SEED_OFFSET)
        self.offset_x, self.offset_y = (float(o) for o in rng.uniform(0.0, OFFSET_RANGE, size=2))

    def base_noise(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        """Layered dune noise before shaping.

        Frequency starts at ``scale`` and the sum is normalized by
        2 - 1/2^(octaves-1), the amplitude total at persistence 0.5.
        """
        s = self.settings
        x = np.asarray(u, dtype=np.float64) * s.dune_stretch + self.offset_x
        y = np.asarray(v, dtype=np.float64) + self.offset_y

        total = np.zeros(np.broadcast_shapes(x.shape, y.shape), dtype=np.float64)
        amplitude = 1.0
        frequency = s.scale
        for _ in range(s.octaves):
            total += self._dune_field.sample(x * frequency, y * frequency) * amplitude
            amplitude *= s.persistence
            frequency *= s.lacunarity

        return total / (2.0 - 1.0 / 2 ** (s.octaves - 1))

    def wind_profile(self, u: ArrayLike) -> NDArray[np.float64]:
        """Skewed sine across x: gentle windward slope, steep leeward face."""
        wind = self.settings.wind_direction
        # |skew| < 1 keeps the warped phase monotonic
        skew = max(-WIND_SKEW_LIMIT, min(WIND_SKEW_LIMIT, self.settings.dune_skew))
        theta = np.asarray(u, dtype=np.float64) * 2.0 * math.pi + wind
        return np.sin(theta + skew * np.sin(theta))

    def dune_height(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        """Shaped dune surface in [0, 1]."""
        u = np.asarray(u, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)

        h = self.base_noise(u, v) + self.wind_profile(u) * WIND_AMPLITUDE
        h = np.power(np.clip(h, 0.0, None), DUNE_SHAPE_EXPONENT)
        h = h + self._detail_field.sample(
            u * DETAIL_FREQUENCY + self.offset_x, v * DETAIL_FREQUENCY + self.offset_y
        ) * DETAIL_AMPLITUDE
        return smoothstep(0.0, 1.0, np.clip(h, 0.0, 1.0))

    def salt_flat_height(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        """Low, nearly flat salt-pan surface."""
        u = np.asarray(u, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)
        return self._salt_field.sample(
            u * SALT_FLAT_FREQUENCY + 2.0 * self.offset_x,
            v * SALT_FLAT_FREQUENCY + 2.0 * self.offset_y,
        ) * SALT_FLAT_AMPLITUDE

    def synthesize(
        self,
        u: ArrayLike,
        v: ArrayLike,
        blend: ArrayLike,
        river: ArrayLike | None = None,
    ) -> NDArray[np.float32]:
        """Final normalized height.

        Args:
            u: Global x coordinates in tile units.
            v: Global z coordinates in tile units.
            blend: Biome blend (0 = salt flat, 1 = dune).
            river: Optional river mask values; carved by ``river_depth``.

        Returns:
            Heights clamped to [0, 1], as float32.
        """
        s = self.settings
        blend = np.asarray(blend, dtype=np.float64)
        dune = self.dune_height(u, v)
        salt = self.salt_flat_height(u, v)

        h = (salt + (dune - salt) * blend) * s.dune_height
        if river is not None and s.river_depth != 0.0:
            h = h - s.river_depth * np.asarray(river, dtype=np.float64)

        return np.clip(h, 0.0, 1.0).astype(np.float32)
