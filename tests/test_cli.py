"""Tests for the generation command line."""

from pathlib import Path

import pytest

from duneworld.cli import build_parser, main, resolve_config
from duneworld.persistence import load_world

SMALL_ARGS = ["--tiles-x", "1", "--tiles-y", "2", "--resolution", "4", "--seed", "9"]


class TestResolveConfig:
    def test_overrides_applied(self) -> None:
        args = build_parser().parse_args(SMALL_ARGS + ["--workers", "2"])
        config = resolve_config(args)
        assert config.world.tiles_x == 1
        assert config.world.tiles_y == 2
        assert config.world.heightmap_resolution == 4
        assert config.world.seed == 9
        assert config.world.workers == 2

    def test_named_config(self) -> None:
        args = build_parser().parse_args(["--config", "small", "--seed", "1"])
        config = resolve_config(args)
        assert config.world.heightmap_resolution == 32
        assert config.world.seed == 1


class TestMain:
    """Tests for running the CLI end to end."""

    def test_generates_and_saves(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        output = tmp_path / "out" / "world.npz"
        main(SMALL_ARGS + ["--output", str(output)])

        assert output.exists()
        assert "Saved to" in capsys.readouterr().out
        world = load_world(output)
        assert world.seed == 9
        assert len(world.tiles) == 2

    def test_incremental_prints_steps(
        self, tmp_path: Path, capsys: pytest.CaptureFixture
    ) -> None:
        output = tmp_path / "world.npz"
        main(SMALL_ARGS + ["--output", str(output), "--incremental"])

        out = capsys.readouterr().out
        assert "CREATING_TILES: Created Tile_0_0" in out
        assert "COMPLETE: Generation complete" in out

    def test_bad_config_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", "no_such_config", "--output", str(tmp_path / "w.npz")])
        assert exc_info.value.code == 1

    def test_invalid_settings_exit(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--tiles-x", "0", "--output", str(tmp_path / "w.npz")])
        assert exc_info.value.code == 1
