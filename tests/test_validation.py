"""Tests for world validation."""

import numpy as np

from duneworld.validation import ValidationResult, validate_world
from duneworld.world import WorldData


class TestValidationResult:
    def test_errors_fail(self) -> None:
        result = ValidationResult()
        result.add_warning("minor")
        assert result.passed
        result.add_error("major")
        assert not result.passed
        assert result.errors == ["major"]
        assert result.warnings == ["minor"]


class TestValidateWorld:
    """Tests for validate_world against generated and corrupted worlds."""

    def test_generated_world_passes(self, small_world: WorldData) -> None:
        result = validate_world(small_world)
        assert result.passed, result.errors

    def test_height_out_of_range(self, small_world: WorldData) -> None:
        small_world.grid.tile(0, 0).heights[0, 0] = 1.5
        result = validate_world(small_world)
        assert not result.passed
        assert any("outside [0, 1]" in e for e in result.errors)

    def test_non_finite_height(self, small_world: WorldData) -> None:
        small_world.grid.tile(1, 1).heights[4, 4] = np.nan
        result = validate_world(small_world)
        assert any("non-finite" in e for e in result.errors)

    def test_splat_sum(self, small_world: WorldData) -> None:
        """Splat weights that do not sum to one are reported."""
        small_world.grid.tile(0, 1).splatmap[2, 2] = [1.0, 1.0, 0.0]
        result = validate_world(small_world)
        assert result.errors == ["Tile_0_1 splat weights sum off by 1.00e+00"]

    def test_seam_mismatch(self, small_world: WorldData) -> None:
        """A shared edge sample changed on one side is a seam error."""
        tile = small_world.grid.tile(1, 0)
        tile.heights[3, 0] = (tile.heights[3, 0] + 0.5) % 1.0
        result = validate_world(small_world)
        assert result.errors == ["heights seam between Tile_0_0 and Tile_1_0"]

    def test_river_round_trip(self, small_world: WorldData) -> None:
        """Tile river slices must match the global mask."""
        small_world.river_mask[0, 0] += 0.5
        result = validate_world(small_world)
        assert not result.passed
        assert any("differ from the global mask" in e for e in result.errors)
