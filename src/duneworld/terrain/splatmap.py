"""Texture weight (splatmap) composition from biome and river data."""

from dataclasses import dataclass
from enum import IntEnum

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..config import GenerationSettings


class SplatLayer(IntEnum):
    """Texture layers, in alphamap channel order."""

    DUNE = 0
    SALT_FLAT = 1
    RIVER = 2


@dataclass(frozen=True)
class TextureLayer:
    """A splat channel and the world size of one texture repeat."""

    layer: SplatLayer
    tile_size: float


def alphamap_sample_indices(alphamap_resolution: int, samples: int) -> NDArray[np.int64]:
    """Nearest sample index for each alphamap texel along one axis."""
    if alphamap_resolution == samples:
        return np.arange(samples, dtype=np.int64)
    scale = (samples - 1) / max(1, alphamap_resolution - 1)
    texels = np.arange(alphamap_resolution, dtype=np.float64)
    return np.clip(np.floor(texels * scale + 0.5), 0, samples - 1).astype(np.int64)


def sharpen_blend(blend: ArrayLike, sharpness: float) -> NDArray[np.float64]:
    """Push the blend toward 0 or 1: b^p / (b^p + (1-b)^p)."""
    b = np.clip(np.asarray(blend, dtype=np.float64), 0.0, 1.0)
    if sharpness == 1.0:
        return b
    bp = np.power(b, sharpness)
    return bp / (bp + np.power(1.0 - b, sharpness))


def compose_weights(
    blend: ArrayLike,
    river: ArrayLike,
    sharpness: float = 1.0,
    river_spread: float = 1.0,
) -> NDArray[np.float32]:
    """Per-sample layer weights.

    Args:
        blend: Biome blend (0 = salt flat, 1 = dune).
        river: River mask values.
        sharpness: Blend sharpening exponent.
        river_spread: Multiplier on the river mask before clamping.

    Returns:
        Array with a trailing axis of len(SplatLayer); weights sum to 1.
    """
    b = sharpen_blend(blend, sharpness)
    r = np.clip(np.asarray(river, dtype=np.float64) * river_spread, 0.0, 1.0)
    weights = np.stack([b * (1.0 - r), (1.0 - b) * (1.0 - r), r], axis=-1)
    return weights.astype(np.float32)


class SplatmapComposer:
    """Builds per-tile alphamaps using the configured resolution and orientation."""

    def __init__(self, settings: GenerationSettings):
        self.settings = settings

    @property
    def layers(self) -> list[TextureLayer]:
        return [TextureLayer(layer, self.settings.texture_tile_size) for layer in SplatLayer]

    def compose(
        self, blend: NDArray[np.float32], river: NDArray[np.float32]
    ) -> NDArray[np.float32]:
        """Alphamap of shape (res, res, layers) for one tile's sample arrays.

        ``sample_major`` maps texel [r, c] to sample [r, c]; ``transposed``
        maps it to sample [c, r].
        """
        s = self.settings
        if s.alphamap_orientation == "transposed":
            blend = blend.T
            river = river.T

        rows_n, cols_n = blend.shape
        rows = alphamap_sample_indices(s.alphamap_resolution or rows_n, rows_n)
        cols = alphamap_sample_indices(s.alphamap_resolution or cols_n, cols_n)
        index = np.ix_(rows, cols)

        return compose_weights(
            blend[index],
            river[index],
            sharpness=s.splat_sharpness,
            river_spread=s.river_texture_spread,
        )
