"""Dune versus salt-flat biome classification."""

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..config import GenerationSettings
from . import seeding
from .noise import fbm, inverse_lerp, noise_field, ridged, smoothstep, warp_coordinates

OFFSET_RANGE = 1000.0


class BiomeClassifier:
    """Maps global coordinates to a biome blend in [0, 1].

    0 means salt flat, 1 means dune. The basic mode thresholds a single
    noise layer; the advanced mode adds rotation, domain warp, fBm, a
    ridged transform, contrast and inversion before thresholding.
    """

    def __init__(self, settings: GenerationSettings, seed: int):
        self.settings = settings
        if settings.biome_separate_seed:
            base_seed = settings.biome_seed
        else:
            base_seed = seeding.derive_seed(seed, seeding.BIOME_SEED_OFFSET)
        self.base_seed = base_seed

        self._field = noise_field(base_seed)
        self._warp_x = noise_field(seeding.derive_seed(base_seed, seeding.BIOME_WARP_SEED_OFFSET))
        self._warp_y = noise_field(
            seeding.derive_seed(base_seed, seeding.BIOME_WARP_SEED_OFFSET + 1)
        )

        rng = seeding.make_rng(base_seed)
        offsets = rng.uniform(0.0, OFFSET_RANGE, size=2)
        self.offset_x = float(offsets[0]) * settings.biome_offset_scale
        self.offset_y = float(offsets[1]) * settings.biome_offset_scale

    def _coordinates(
        self, u: ArrayLike, v: ArrayLike
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        s = self.settings
        x = np.asarray(u, dtype=np.float64) * s.biome_scale
        y = np.asarray(v, dtype=np.float64) * s.biome_scale
        return x + self.offset_x, y + self.offset_y

    def noise(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
        """Biome noise in [0, 1] before thresholding."""
        x, y = self._coordinates(u, v)
        if self.settings.biome_mode == "basic":
            return self._field.sample(x, y)
        return self._advanced_noise(x, y)

    def _advanced_noise(
        self, x: NDArray[np.float64], y: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        s = self.settings

        if s.biome_rotation != 0.0:
            angle = math.radians(s.biome_rotation)
            cos_a, sin_a = math.cos(angle), math.sin(angle)
            x, y = x * cos_a - y * sin_a, x * sin_a + y * cos_a

        x, y = warp_coordinates(
            self._warp_x, self._warp_y, x, y, s.biome_warp_strength, s.biome_warp_scale
        )

        n = fbm(
            self._field,
            x,
            y,
            octaves=s.biome_octaves,
            persistence=s.biome_persistence,
            lacunarity=s.biome_lacunarity,
        )
        if s.biome_ridged:
            n = ridged(n)
        n = np.clip(0.5 + (n - 0.5) * s.biome_contrast, 0.0, 1.0)
        if s.biome_invert:
            n = 1.0 - n
        return n

    def blend_from_noise(self, n: ArrayLike) -> NDArray[np.float64]:
        """Threshold noise into a blend; zero transition gives a hard step."""
        s = self.settings
        t = inverse_lerp(
            s.biome_threshold - s.biome_transition,
            s.biome_threshold + s.biome_transition,
            n,
        )
        return smoothstep(0.0, 1.0, t)

    def classify(self, u: ArrayLike, v: ArrayLike) -> NDArray[np.float32]:
        """Biome blend at global tile-unit coordinates, as float32."""
        return self.blend_from_noise(self.noise(u, v)).astype(np.float32)
