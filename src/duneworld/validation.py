"""Post-generation validation of world invariants."""

import logging

import numpy as np
from scipy import ndimage

from .world import WorldData

logger = logging.getLogger(__name__)

SPLAT_SUM_TOLERANCE = 1e-5


class ValidationResult:
    """Result of world validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_world(world: WorldData) -> ValidationResult:
    """Validate a generated world against its invariants.

    Args:
        world: Generated world with populated tiles.

    Returns:
        ValidationResult with any errors/warnings.
    """
    result = ValidationResult()

    # Check 1: Heights clamped to [0, 1]
    _check_height_range(world, result)

    # Check 2: Splat weights form a partition of unity
    _check_splat_sums(world, result)

    # Check 3: Shared edges are bit-identical
    _check_seams(world, result)

    # Check 4: Per-tile river slices reassemble into the global mask
    _check_river_round_trip(world, result)

    # Check 5: Each river is one connected channel
    _check_river_connectivity(world, result)

    if result.passed:
        logger.info("World validation passed")
        _log_stats(world)
    else:
        logger.warning(f"World validation failed with {len(result.errors)} errors")
        for error in result.errors:
            logger.error(f"  - {error}")

    for warning in result.warnings:
        logger.warning(f"  - {warning}")

    return result


def _check_height_range(world: WorldData, result: ValidationResult) -> None:
    for tile in world.tiles:
        if tile.heights is None:
            result.add_error(f"{tile.name} has no heights")
            continue
        h = tile.heights
        if not np.all(np.isfinite(h)):
            result.add_error(f"{tile.name} has non-finite heights")
        elif h.min() < 0.0 or h.max() > 1.0:
            result.add_error(
                f"{tile.name} heights outside [0, 1]: {h.min():.4f}..{h.max():.4f}"
            )


def _check_splat_sums(world: WorldData, result: ValidationResult) -> None:
    for tile in world.tiles:
        if tile.splatmap is None:
            result.add_error(f"{tile.name} has no splatmap")
            continue
        splat = tile.splatmap
        if splat.min() < 0.0 or splat.max() > 1.0:
            result.add_error(f"{tile.name} splat weights outside [0, 1]")
        deviation = float(np.max(np.abs(splat.sum(axis=-1) - 1.0)))
        if deviation > SPLAT_SUM_TOLERANCE:
            result.add_error(f"{tile.name} splat weights sum off by {deviation:.2e}")


def _check_seams(world: WorldData, result: ValidationResult) -> None:
    for attr in ("heights", "biome", "river"):
        for problem in world.grid.edge_mismatches(attr):
            result.add_error(problem)


def _check_river_round_trip(world: WorldData, result: ValidationResult) -> None:
    if any(tile.river is None for tile in world.tiles):
        result.add_error("River mask was not sliced into every tile")
        return
    rebuilt = world.grid.reassemble("river")
    if not np.array_equal(rebuilt, world.river_mask):
        mismatched = int(np.count_nonzero(rebuilt != world.river_mask))
        result.add_error(f"River slices differ from the global mask at {mismatched} samples")


def _check_river_connectivity(world: WorldData, result: ValidationResult) -> None:
    if not world.rivers:
        return

    structure = ndimage.generate_binary_structure(2, 2)  # 8-connected
    labeled, _ = ndimage.label(world.river_mask > 0.0, structure=structure)

    for river in world.rivers:
        rows, cols = river.centerline_indices()
        labels = np.unique(labeled[rows, cols])
        if labels[0] == 0:
            result.add_warning(f"River {river.index} centerline has unstamped samples")
        elif len(labels) > 1:
            result.add_warning(
                f"River {river.index} is split into {len(labels)} disconnected pieces"
            )


def _log_stats(world: WorldData) -> None:
    """Log summary statistics about the world."""
    heights = world.global_heights()
    biome = world.global_biome()
    logger.info(
        f"Terrain stats: height {heights.min():.3f}..{heights.max():.3f} "
        f"(mean {heights.mean():.3f}), dunes {np.mean(biome >= 0.5):.1%}, "
        f"river coverage {np.mean(world.river_mask > 0.0):.1%}"
    )
