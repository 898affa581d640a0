"""Procedural multi-tile desert world generation."""

from .config import (
    Config,
    GenerationSettings,
    PoiConfig,
    SpawnConfig,
    WorldConfig,
    find_config,
    list_configs,
    load_config,
    require_valid_config,
    validate_config,
)
from .exceptions import (
    ConfigurationError,
    DuneWorldError,
    GenerationError,
    ResourceUnavailable,
    SamplingError,
)
from .grid import TerrainTile, WorldGrid
from .persistence import load_world, save_world
from .pipeline import GenerationPipeline, GenerationStage, StepResult, generate
from .poi import PointOfInterest, place_points_of_interest
from .spawn import SpawnPoint, resolve_spawn
from .validation import ValidationResult, validate_world
from .world import WorldData

__all__ = [
    # Config
    "Config",
    "GenerationSettings",
    "PoiConfig",
    "SpawnConfig",
    "WorldConfig",
    "find_config",
    "list_configs",
    "load_config",
    "require_valid_config",
    "validate_config",
    # Grid
    "TerrainTile",
    "WorldGrid",
    "WorldData",
    # Pipeline
    "GenerationPipeline",
    "GenerationStage",
    "StepResult",
    "generate",
    # Placement
    "PointOfInterest",
    "SpawnPoint",
    "place_points_of_interest",
    "resolve_spawn",
    # Validation / export
    "ValidationResult",
    "validate_world",
    "load_world",
    "save_world",
    # Exceptions
    "DuneWorldError",
    "ConfigurationError",
    "SamplingError",
    "ResourceUnavailable",
    "GenerationError",
]
