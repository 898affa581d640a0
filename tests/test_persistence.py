"""Tests for saving and loading worlds."""

from pathlib import Path

import numpy as np
import pytest

from duneworld.persistence import load_world, save_world
from duneworld.world import WorldData


class TestWorldPersistence:
    """Tests for the .npz world format."""

    def test_round_trip(self, small_world: WorldData, tmp_path: Path) -> None:
        """A loaded world matches the saved one."""
        path = tmp_path / "world.npz"
        save_world(path, small_world)
        loaded = load_world(path)

        assert loaded.seed == small_world.seed
        assert loaded.config == small_world.config
        np.testing.assert_array_equal(loaded.global_heights(), small_world.global_heights())
        np.testing.assert_array_equal(loaded.river_mask, small_world.river_mask)
        for a, b in zip(loaded.tiles, small_world.tiles):
            assert a.name == b.name
            np.testing.assert_array_equal(a.splatmap, b.splatmap)
        assert loaded.pois == small_world.pois
        assert loaded.spawn == small_world.spawn

    def test_rivers_restored(self, small_world: WorldData, tmp_path: Path) -> None:
        path = tmp_path / "world.npz"
        save_world(path, small_world)
        loaded = load_world(path)
        assert len(loaded.rivers) == len(small_world.rivers)
        for a, b in zip(loaded.rivers, small_world.rivers):
            assert a.axis is b.axis
            np.testing.assert_array_equal(a.path, b.path)

    def test_loaded_tiles_linked(self, small_world: WorldData, tmp_path: Path) -> None:
        path = tmp_path / "world.npz"
        save_world(path, small_world)
        grid = load_world(path).grid
        assert grid.tile(0, 0).right is grid.tile(1, 0)
        assert grid.edge_mismatches("heights") == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_world(tmp_path / "missing.npz")

    def test_invalid_file(self, tmp_path: Path) -> None:
        """Archives without world data are rejected."""
        path = tmp_path / "other.npz"
        np.savez_compressed(path, data=np.zeros(3))
        with pytest.raises(ValueError, match="missing"):
            load_world(path)
