"""World generation configuration loading from TOML files."""

import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError


class GenerationSettings(BaseModel):
    """Tunable terrain parameters, shared read-only by every tile."""

    model_config = ConfigDict(frozen=True)

    # Dune noise
    scale: float = Field(default=8.0, description="Base frequency of the dune noise")
    octaves: int = Field(default=4, description="Number of octaves for fBm")
    persistence: float = Field(default=0.5, description="Amplitude multiplier per octave")
    lacunarity: float = Field(default=1.4, description="Frequency multiplier per octave")

    # Dune shaping
    dune_height: float = Field(default=1.0, description="Height multiplier applied after blending")
    wind_direction: float = Field(
        default=0.6, description="Wind phase in radians"
    )
    dune_skew: float = Field(
        default=0.5,
        description="Dune asymmetry in (-1, 1); the sign picks the steep leeward side",
    )
    dune_stretch: float = Field(
        default=1.5, description="Stretch of the dune noise along the x axis"
    )

    # Biome
    biome_mode: Literal["basic", "advanced"] = Field(
        default="basic", description="Biome noise pipeline"
    )
    biome_scale: float = Field(default=0.2, description="Frequency of the biome noise")
    biome_threshold: float = Field(
        default=0.5, description="Noise value at the dune/salt-flat boundary"
    )
    biome_transition: float = Field(
        default=0.12, description="Half-width of the biome transition band"
    )
    biome_offset_scale: float = Field(
        default=0.01, description="Scale applied to the seeded biome offsets"
    )
    biome_octaves: int = Field(default=1, description="Advanced: biome fBm octaves")
    biome_persistence: float = Field(default=0.5, description="Advanced: biome fBm gain")
    biome_lacunarity: float = Field(default=2.0, description="Advanced: biome fBm lacunarity")
    biome_ridged: bool = Field(default=False, description="Advanced: apply ridged transform")
    biome_rotation: float = Field(
        default=0.0, description="Advanced: rotation of biome coordinates in degrees"
    )
    biome_warp_strength: float = Field(
        default=0.0, description="Advanced: domain warp offset in biome noise units"
    )
    biome_warp_scale: float = Field(default=0.5, description="Advanced: domain warp frequency")
    biome_contrast: float = Field(
        default=1.0, description="Advanced: contrast about 0.5 before thresholding"
    )
    biome_invert: bool = Field(default=False, description="Advanced: swap dunes and salt flats")
    biome_separate_seed: bool = Field(
        default=False, description="Advanced: use biome_seed instead of the world seed"
    )
    biome_seed: int = Field(default=0, description="Advanced: seed when biome_separate_seed is on")

    # Rivers
    min_rivers: int = Field(default=1, description="Minimum number of rivers")
    max_rivers: int = Field(default=5, description="Maximum number of rivers")
    river_width: float = Field(default=12.0, description="River half-width in samples")
    river_depth: float = Field(
        default=0.0, description="Normalized height carved at the river centerline"
    )
    river_windiness: float = Field(default=1.0, description="Scales the high-frequency wiggle")
    river_bank_softness: float = Field(default=2.0, description="Falloff exponent at the banks")
    river_texture_spread: float = Field(
        default=4.5, description="Multiplier on the river mask for the river texture layer"
    )
    river_smooth_passes: int = Field(default=4, description="3-point smoothing passes on paths")
    river_low_frequency: float = Field(default=0.5, description="Frequency of the slow drift")
    river_high_frequency: float = Field(default=4.0, description="Frequency of the wiggle")
    river_low_amplitude: float = Field(default=0.25, description="Amplitude of the slow drift")
    river_high_amplitude: float = Field(default=0.05, description="Amplitude of the wiggle")
    river_roughness: float = Field(default=0.2, description="Amplitude of path jitter")
    river_roughness_frequency: float = Field(default=3.0, description="Frequency of path jitter")
    river_width_jitter: float = Field(default=0.25, description="Relative width variation")
    river_width_jitter_frequency: float = Field(
        default=0.8, description="Frequency of width variation"
    )

    # Texturing
    texture_tile_size: float = Field(default=5.0, description="World size of one texture tile")
    splat_sharpness: float = Field(
        default=1.0, description="Exponent sharpening the dune/salt-flat blend"
    )
    alphamap_resolution: int | None = Field(
        default=None, description="Alphamap texels per side (None = heightmap samples)"
    )
    alphamap_orientation: Literal["sample_major", "transposed"] = Field(
        default="sample_major", description="Mapping from alphamap texels to samples"
    )


class WorldConfig(BaseModel):
    """Grid layout and run options."""

    tiles_x: int = Field(default=2, description="Number of tiles along x")
    tiles_y: int = Field(default=2, description="Number of tiles along z")
    heightmap_resolution: int = Field(
        default=256, description="Sample intervals per tile side (samples = res + 1)"
    )
    vertical_depth: float = Field(default=20.0, description="World height of a 1.0 sample")
    tile_world_width: float = Field(default=1000.0, description="Tile size along x")
    tile_world_length: float = Field(default=1000.0, description="Tile size along z")
    seed: int | None = Field(default=None, description="World seed (None = drawn at start)")
    use_global_rivers: bool = Field(default=True, description="Build the global river mask")
    set_neighbors: bool = Field(default=True, description="Link neighboring tiles")
    workers: int = Field(default=1, description="Threads used for tile heights")
    validate_output: bool = Field(
        default=True, description="Run world validation while finalizing"
    )


class PoiConfig(BaseModel):
    """Point-of-interest placement parameters."""

    enabled: bool = Field(default=True, description="Place points of interest")
    tiles_per_tower: int = Field(default=4, description="Tiles per placed point")
    name_prefix: str = Field(default="CellTower_", description="Prefix of point names")
    naming: Literal["index", "tile"] = Field(
        default="index", description="Suffix by placement index or by tile coordinates"
    )
    height_offset: float = Field(default=0.0, description="Height added above the ground")
    edge_margin: float = Field(
        default=0.1, description="Fraction of the tile kept clear at each edge"
    )


class SpawnConfig(BaseModel):
    """Spawn point resolution around an anchor point."""

    enabled: bool = Field(default=True, description="Resolve a spawn point")
    anchor_prefix: str = Field(
        default="CellTower_", description="Name prefix of the anchor point"
    )
    max_attempts: int = Field(default=5, description="Anchor lookups before falling back")
    min_distance: float = Field(default=3.0, description="Minimum distance from the anchor")
    max_distance: float = Field(default=12.0, description="Maximum distance from the anchor")
    forward_arc: float = Field(
        default=160.0, description="Arc in degrees around the anchor's facing"
    )
    height_offset: float = Field(default=0.2, description="Height added above the ground")


class Config(BaseModel):
    """Complete configuration for a world generation run."""

    world: WorldConfig = Field(default_factory=WorldConfig)
    settings: GenerationSettings = Field(default_factory=GenerationSettings)
    poi: PoiConfig = Field(default_factory=PoiConfig)
    spawn: SpawnConfig = Field(default_factory=SpawnConfig)


def load_config(config_path: Path) -> Config:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed Config object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        ConfigurationError: If values fail model validation.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ConfigurationError(problems) from e


def find_config(name: str) -> Path:
    """Find a config file by name.

    Searches in the following order:
    1. Exact path if name contains path separator
    2. configs/{name}.toml
    3. configs/{name}

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    configs_dir = _configs_dir()

    config_path = configs_dir / f"{name}.toml"
    if config_path.exists():
        return config_path

    config_path = configs_dir / name
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"Config '{name}' not found in {configs_dir}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available config names."""
    configs_dir = _configs_dir()
    if not configs_dir.exists():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))


def _configs_dir() -> Path:
    return Path(__file__).parent.parent.parent / "configs"


def validate_config(config: Config) -> list[str]:
    """Check a configuration for values generation cannot work with.

    Returns:
        List of human-readable problems; empty when the config is usable.
    """
    problems: list[str] = []
    world = config.world
    s = config.settings

    if world.tiles_x < 1 or world.tiles_y < 1:
        problems.append(f"grid must be at least 1x1, got {world.tiles_x}x{world.tiles_y}")
    if world.heightmap_resolution < 1:
        problems.append(
            f"heightmap_resolution must be >= 1, got {world.heightmap_resolution}"
        )
    if world.vertical_depth <= 0:
        problems.append(f"vertical_depth must be positive, got {world.vertical_depth}")
    if world.tile_world_width <= 0 or world.tile_world_length <= 0:
        problems.append("tile world size must be positive")
    if world.workers < 1:
        problems.append(f"workers must be >= 1, got {world.workers}")

    if s.octaves < 1:
        problems.append(f"octaves must be >= 1, got {s.octaves}")
    if s.biome_octaves < 1:
        problems.append(f"biome_octaves must be >= 1, got {s.biome_octaves}")
    if not -1.0 < s.dune_skew < 1.0:
        problems.append(f"dune_skew must be in (-1, 1), got {s.dune_skew}")
    if s.scale <= 0:
        problems.append(f"scale must be positive, got {s.scale}")
    if s.biome_transition < 0:
        problems.append(f"biome_transition must be >= 0, got {s.biome_transition}")
    if s.min_rivers < 0:
        problems.append(f"min_rivers must be >= 0, got {s.min_rivers}")
    if s.max_rivers < s.min_rivers:
        problems.append(
            f"max_rivers ({s.max_rivers}) must be >= min_rivers ({s.min_rivers})"
        )
    if s.river_width <= 0:
        problems.append(f"river_width must be positive, got {s.river_width}")
    if s.river_bank_softness < 0:
        problems.append(
            f"river_bank_softness must be >= 0, got {s.river_bank_softness}"
        )
    if s.river_smooth_passes < 0:
        problems.append(
            f"river_smooth_passes must be >= 0, got {s.river_smooth_passes}"
        )
    if not 0.0 <= s.river_width_jitter < 1.0:
        problems.append(
            f"river_width_jitter must be in [0, 1), got {s.river_width_jitter}"
        )
    if s.splat_sharpness <= 0:
        problems.append(f"splat_sharpness must be positive, got {s.splat_sharpness}")
    if s.alphamap_resolution is not None and s.alphamap_resolution < 2:
        problems.append(
            f"alphamap_resolution must be >= 2, got {s.alphamap_resolution}"
        )
    if s.texture_tile_size <= 0:
        problems.append(f"texture_tile_size must be positive, got {s.texture_tile_size}")

    if config.poi.tiles_per_tower < 1:
        problems.append(f"tiles_per_tower must be >= 1, got {config.poi.tiles_per_tower}")
    if not 0.0 <= config.poi.edge_margin < 0.5:
        problems.append(f"edge_margin must be in [0, 0.5), got {config.poi.edge_margin}")

    sp = config.spawn
    if sp.max_attempts < 1:
        problems.append(f"spawn max_attempts must be >= 1, got {sp.max_attempts}")
    if sp.min_distance < 0 or sp.max_distance < sp.min_distance:
        problems.append(
            f"spawn distances must satisfy 0 <= min <= max, "
            f"got {sp.min_distance}..{sp.max_distance}"
        )

    return problems


def require_valid_config(config: Config) -> None:
    """Raise ConfigurationError listing every problem in the config."""
    problems = validate_config(config)
    if problems:
        raise ConfigurationError(problems)
