"""Coherent noise evaluation for terrain generation.

Provides a seeded 2D gradient noise field that can be sampled at arbitrary
coordinates, fBm accumulation, ridged transforms, coordinate-space domain
warping and the interpolation helpers shared by the terrain modules.

Unlike grid-filtered noise, every value depends only on the seed and the
sample coordinates, so two tiles evaluating the same global coordinate get
the same value regardless of tile size or evaluation order.
"""

from functools import lru_cache

import numpy as np
from numpy.typing import ArrayLike, NDArray

PERMUTATION_SIZE = 256

# Unit-ish gradient directions; diagonals give the classic Perlin look
_GRADIENTS = np.array(
    [
        [1.0, 1.0],
        [-1.0, 1.0],
        [1.0, -1.0],
        [-1.0, -1.0],
        [1.0, 0.0],
        [-1.0, 0.0],
        [0.0, 1.0],
        [0.0, -1.0],
    ],
    dtype=np.float64,
)


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """Quintic fade curve 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


class NoiseField:
    """Deterministic 2D gradient noise keyed by a seed.

    Usage:
        field = NoiseField(seed=42)
        values = field.sample(xs, ys)  # arrays or scalars, values in [0, 1]
    """

    def __init__(self, seed: int):
        self.seed = int(seed)
        rng = np.random.default_rng(self.seed)
        perm = rng.permutation(PERMUTATION_SIZE).astype(np.int64)
        # Doubled so lookups of p[p[x] + y + 1] never wrap
        self._perm = np.concatenate([perm, perm])

    def signed(self, x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
        """Evaluate noise in roughly [-1, 1].

        Args:
            x: X coordinates (any shape, broadcast against y).
            y: Y coordinates.

        Returns:
            Noise values with the broadcast shape of x and y.
        """
        x, y = np.broadcast_arrays(
            np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)
        )

        x_floor = np.floor(x)
        y_floor = np.floor(y)
        xf = x - x_floor
        yf = y - y_floor

        xi = x_floor.astype(np.int64) & (PERMUTATION_SIZE - 1)
        yi = y_floor.astype(np.int64) & (PERMUTATION_SIZE - 1)

        p = self._perm
        h00 = p[p[xi] + yi] & 7
        h10 = p[p[xi + 1] + yi] & 7
        h01 = p[p[xi] + yi + 1] & 7
        h11 = p[p[xi + 1] + yi + 1] & 7

        n00 = _GRADIENTS[h00, 0] * xf + _GRADIENTS[h00, 1] * yf
        n10 = _GRADIENTS[h10, 0] * (xf - 1.0) + _GRADIENTS[h10, 1] * yf
        n01 = _GRADIENTS[h01, 0] * xf + _GRADIENTS[h01, 1] * (yf - 1.0)
        n11 = _GRADIENTS[h11, 0] * (xf - 1.0) + _GRADIENTS[h11, 1] * (yf - 1.0)

        u = _fade(xf)
        v = _fade(yf)

        nx0 = n00 + u * (n10 - n00)
        nx1 = n01 + u * (n11 - n01)
        return nx0 + v * (nx1 - nx0)

    def sample(self, x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
        """Evaluate noise mapped to [0, 1]."""
        return np.clip(0.5 + 0.5 * self.signed(x, y), 0.0, 1.0)


@lru_cache(maxsize=64)
def noise_field(seed: int) -> NoiseField:
    """Return a cached NoiseField for a seed."""
    return NoiseField(seed)


def sample(seed: int, x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
    """Sample the noise field for a seed at (x, y), in [0, 1]."""
    return noise_field(int(seed)).sample(x, y)


def fbm(
    field: NoiseField,
    x: ArrayLike,
    y: ArrayLike,
    octaves: int = 4,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    frequency: float = 1.0,
) -> NDArray[np.float64]:
    """Fractal Brownian motion normalized by the total amplitude.

    Args:
        field: Noise field to sample.
        x: X coordinates.
        y: Y coordinates.
        octaves: Number of noise layers to sum.
        persistence: Amplitude multiplier between octaves.
        lacunarity: Frequency multiplier between octaves.
        frequency: Frequency of the first octave.

    Returns:
        fBm values in [0, 1].
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    result = np.zeros(np.broadcast_shapes(x.shape, y.shape), dtype=np.float64)

    amplitude = 1.0
    total_amplitude = 0.0
    for _ in range(max(1, octaves)):
        result += amplitude * field.sample(x * frequency, y * frequency)
        total_amplitude += amplitude
        amplitude *= persistence
        frequency *= lacunarity

    if total_amplitude > 0:
        result /= total_amplitude
    return result


def ridged(values: ArrayLike) -> NDArray[np.float64]:
    """Ridge transform of [0, 1] noise: sharp crests where noise crosses 0.5."""
    values = np.asarray(values, dtype=np.float64)
    return 1.0 - np.abs(2.0 * values - 1.0)


def warp_coordinates(
    field_x: NoiseField,
    field_y: NoiseField,
    x: ArrayLike,
    y: ArrayLike,
    strength: float,
    scale: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Offset sample coordinates by noise for organic distortion.

    Args:
        field_x: Noise for the x offset.
        field_y: Noise for the y offset.
        x: X coordinates.
        y: Y coordinates.
        strength: Maximum offset in coordinate units.
        scale: Frequency of the warp noise.

    Returns:
        Warped (x, y) coordinates.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if strength == 0.0:
        return x, y

    dx = field_x.signed(x * scale, y * scale)
    dy = field_y.signed(x * scale, y * scale)
    return x + dx * strength, y + dy * strength


def inverse_lerp(a: float, b: float, x: ArrayLike) -> NDArray[np.float64]:
    """Position of x between a and b, clamped to [0, 1].

    A degenerate range (a == b) acts as a hard step at a.
    """
    x = np.asarray(x, dtype=np.float64)
    if b == a:
        return (x >= a).astype(np.float64)
    return np.clip((x - a) / (b - a), 0.0, 1.0)


def smoothstep(edge0: float, edge1: float, x: ArrayLike) -> NDArray[np.float64]:
    """Smooth Hermite interpolation between 0 and 1.

    Args:
        edge0: Lower edge of transition.
        edge1: Upper edge of transition.
        x: Input values.

    Returns:
        Smoothly interpolated values in [0, 1].
    """
    t = inverse_lerp(edge0, edge1, x)
    return t * t * (3.0 - 2.0 * t)
