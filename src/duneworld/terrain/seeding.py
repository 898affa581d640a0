"""Sub-seed derivation.

Every random or noise-driven computation derives its own seed from the world
seed with a fixed offset, so results never depend on the order in which
unrelated computations ran.
"""

import numpy as np

SEED_MODULUS = 2**32

# Height synthesis
HEIGHT_SEED_OFFSET = 0
DETAIL_SEED_OFFSET = 11
SALT_FLAT_SEED_OFFSET = 23
SURFACE_OFFSETS_SEED_OFFSET = 37

# Biome classification
BIOME_SEED_OFFSET = 101
BIOME_WARP_SEED_OFFSET = 211

# Rivers: river r draws its layout from seed + RIVER_STRIDE * (r + 1); its
# path and width noise sit at fixed offsets inside that block
RIVER_COUNT_SEED_OFFSET = 503
RIVER_STRIDE = 1000
HORIZONTAL_PATH_STRIDE = 97
VERTICAL_PATH_STRIDE = 173
HORIZONTAL_WIDTH_STRIDE = 541
VERTICAL_WIDTH_STRIDE = 937

# Placement
POI_SEED_OFFSET = 7919
SPAWN_SEED_OFFSET = 104729

# Range used when a world seed is drawn fresh
RANDOM_SEED_MAX = 10000


def derive_seed(seed: int, offset: int) -> int:
    """Derive a non-negative sub-seed from a world seed and a fixed offset."""
    return (int(seed) + int(offset)) % SEED_MODULUS


def make_rng(seed: int, offset: int = 0) -> np.random.Generator:
    """Create a PCG64 generator for a derived sub-seed."""
    return np.random.default_rng(derive_seed(seed, offset))


def draw_world_seed(rng: np.random.Generator | None = None) -> int:
    """Draw a fresh world seed in [0, RANDOM_SEED_MAX)."""
    rng = rng or np.random.default_rng()
    return int(rng.integers(0, RANDOM_SEED_MAX))


def river_seed(seed: int, index: int, stride: int = 0) -> int:
    """Sub-seed for river ``index``; stride selects its path or width noise.

    Strides stay below RIVER_STRIDE, so no two rivers share a sub-seed and
    none equals the world seed.
    """
    return derive_seed(seed, RIVER_STRIDE * (index + 1) + stride)
