"""Staged world generation with blocking and incremental execution.

Usage:
    world = generate(config)

Or one bounded unit of work at a time, e.g. from a frame loop:
    pipeline = GenerationPipeline(config, on_progress=show_progress)
    while not pipeline.step().done:
        render_loading_screen()
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Iterator

import numpy as np
import structlog

from .config import Config, require_valid_config
from .exceptions import GenerationError
from .grid import TerrainTile, WorldGrid
from .poi import make_poi_rng, place_poi, select_poi_tiles
from .spawn import resolve_spawn
from .terrain.biome import BiomeClassifier
from .terrain.heights import HeightSynthesizer
from .terrain.rivers import RiverNetworkBuilder
from .terrain.seeding import draw_world_seed
from .terrain.splatmap import SplatmapComposer
from .validation import validate_world
from .world import WorldData

logger = structlog.get_logger()


class GenerationStage(Enum):
    """Pipeline states, in execution order."""

    IDLE = auto()
    CREATING_TILES = auto()
    BUILDING_GLOBAL_RIVER_MASK = auto()
    GENERATING_TILE_HEIGHTS = auto()
    STITCHING_NEIGHBOR_EDGES = auto()
    FINALIZING = auto()
    PLACING_POINTS_OF_INTEREST = auto()
    COMPLETE = auto()
    FAILED = auto()
    CANCELLED = auto()


# Share of overall progress per working stage
STAGE_WEIGHTS: dict[GenerationStage, float] = {
    GenerationStage.CREATING_TILES: 0.05,
    GenerationStage.BUILDING_GLOBAL_RIVER_MASK: 0.20,
    GenerationStage.GENERATING_TILE_HEIGHTS: 0.55,
    GenerationStage.STITCHING_NEIGHBOR_EDGES: 0.05,
    GenerationStage.FINALIZING: 0.10,
    GenerationStage.PLACING_POINTS_OF_INTEREST: 0.05,
}

TERMINAL_STAGES = (GenerationStage.COMPLETE, GenerationStage.FAILED, GenerationStage.CANCELLED)

ProgressCallback = Callable[[float, str], None]
CompleteCallback = Callable[[WorldData], None]

# (units done, units total, note) reported by each stage
StageWork = Iterator[tuple[int, int, str]]


@dataclass(frozen=True)
class StepResult:
    """Outcome of one step() call."""

    done: bool
    progress: float
    note: str
    stage: GenerationStage


class GenerationPipeline:
    """Runs world generation as a sequence of resumable stages.

    Each step() performs one bounded unit of work (one tile, one river, one
    point of interest). Progress listeners receive (fraction, note) after
    every unit; completion listeners fire exactly once, on success only.
    """

    def __init__(
        self,
        config: Config | None = None,
        on_progress: ProgressCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ):
        self.config = config or Config()
        self._progress_listeners: list[ProgressCallback] = []
        self._complete_listeners: list[CompleteCallback] = []
        if on_progress is not None:
            self._progress_listeners.append(on_progress)
        if on_complete is not None:
            self._complete_listeners.append(on_complete)

        self._stage = GenerationStage.IDLE
        self._progress = 0.0
        self._note = ""
        self._work: Iterator[StepResult] | None = None
        self._cancel_requested = False
        self._completion_fired = False

        self.seed: int | None = None
        self.world: WorldData | None = None
        self.error: BaseException | None = None

        # Global sample buffers; each tile fills only the samples it owns
        self._heights: np.ndarray | None = None
        self._biome: np.ndarray | None = None

    @property
    def stage(self) -> GenerationStage:
        """Current pipeline state."""
        return self._stage

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def is_done(self) -> bool:
        return self._stage in TERMINAL_STAGES

    def add_progress_listener(self, listener: ProgressCallback) -> None:
        self._progress_listeners.append(listener)

    def add_complete_listener(self, listener: CompleteCallback) -> None:
        self._complete_listeners.append(listener)

    def start(self) -> None:
        """Validate configuration and fix the seed for this run.

        Raises:
            ConfigurationError: If the configuration is invalid; no stage runs.
            GenerationError: If the pipeline was already started.
        """
        if self._stage is not GenerationStage.IDLE or self._work is not None:
            raise GenerationError(f"Pipeline already started (stage {self._stage.name})")

        require_valid_config(self.config)

        world = self.config.world
        self.seed = world.seed if world.seed is not None else draw_world_seed()
        self._work = self._run_stages()
        logger.info(
            "generation_started",
            seed=self.seed,
            tiles_x=world.tiles_x,
            tiles_y=world.tiles_y,
            resolution=world.heightmap_resolution,
        )

    def cancel(self) -> None:
        """Request cancellation; honoured at the next stage boundary."""
        if self.is_done:
            return
        if self._work is None:
            self._stage = GenerationStage.CANCELLED
            logger.info("generation_cancelled", stage="IDLE")
            return
        self._cancel_requested = True

    def step(self) -> StepResult:
        """Advance by one unit of work.

        Raises:
            GenerationError: If the pipeline previously failed.
        """
        if self._stage is GenerationStage.FAILED:
            raise GenerationError(f"Pipeline failed: {self.error}")
        if self._stage in (GenerationStage.COMPLETE, GenerationStage.CANCELLED):
            return StepResult(True, self._progress, self._note, self._stage)

        if self._work is None:
            self.start()
        assert self._work is not None

        try:
            return next(self._work)
        except Exception as e:
            failed_stage = self._stage
            self._stage = GenerationStage.FAILED
            self.error = e
            self._work = None
            logger.error("generation_failed", stage=failed_stage.name, error=str(e))
            raise

    def run(self) -> WorldData:
        """Run every remaining stage and return the world.

        Raises:
            GenerationError: If generation was cancelled.
        """
        while not self.step().done:
            pass
        if self._stage is GenerationStage.CANCELLED or self.world is None:
            raise GenerationError("Generation was cancelled")
        return self.world

    def _report(self, progress: float, note: str) -> None:
        # Never let rounding move progress backwards
        self._progress = min(1.0, max(self._progress, progress))
        self._note = note
        for listener in self._progress_listeners:
            listener(self._progress, note)

    def _fire_complete(self, world: WorldData) -> None:
        if self._completion_fired:
            return
        self._completion_fired = True
        for listener in self._complete_listeners:
            listener(world)

    def _active_stages(self) -> list[GenerationStage]:
        stages = list(STAGE_WEIGHTS)
        if not self.config.world.use_global_rivers:
            stages.remove(GenerationStage.BUILDING_GLOBAL_RIVER_MASK)
        return stages

    def _run_stages(self) -> Iterator[StepResult]:
        stages = self._active_stages()
        total_weight = sum(STAGE_WEIGHTS[s] for s in stages)
        base = 0.0

        for stage in stages:
            if self._cancel_requested:
                logger.info("generation_cancelled", stage=self._stage.name)
                self._stage = GenerationStage.CANCELLED
                self._note = "Generation cancelled"
                yield StepResult(True, self._progress, self._note, self._stage)
                return

            self._stage = stage
            weight = STAGE_WEIGHTS[stage] / total_weight
            logger.debug("stage_started", stage=stage.name)

            for done, total, note in self._stage_work(stage):
                self._report(base + weight * done / max(1, total), note)
                yield StepResult(False, self._progress, note, stage)

            base += weight

        assert self.world is not None
        self._stage = GenerationStage.COMPLETE
        self._report(1.0, "Generation complete")
        logger.info(
            "generation_complete",
            seed=self.seed,
            tiles=self.world.grid.tile_count,
            rivers=len(self.world.rivers),
            pois=len(self.world.pois),
        )
        self._fire_complete(self.world)
        yield StepResult(True, self._progress, self._note, self._stage)

    def _stage_work(self, stage: GenerationStage) -> StageWork:
        if stage is GenerationStage.CREATING_TILES:
            return self._create_tiles()
        if stage is GenerationStage.BUILDING_GLOBAL_RIVER_MASK:
            return self._build_river_mask()
        if stage is GenerationStage.GENERATING_TILE_HEIGHTS:
            return self._generate_heights()
        if stage is GenerationStage.STITCHING_NEIGHBOR_EDGES:
            return self._stitch_edges()
        if stage is GenerationStage.FINALIZING:
            return self._finalize()
        if stage is GenerationStage.PLACING_POINTS_OF_INTEREST:
            return self._place_points()
        raise GenerationError(f"Stage {stage.name} has no work")

    def _create_tiles(self) -> StageWork:
        assert self.seed is not None
        grid = WorldGrid.from_config(self.config.world)
        self.world = WorldData(
            seed=self.seed,
            config=self.config,
            grid=grid,
            river_mask=np.zeros(grid.shape, dtype=np.float32),
        )
        self._heights = np.zeros(grid.shape, dtype=np.float32)
        self._biome = np.zeros(grid.shape, dtype=np.float32)

        coords = grid.coordinates()
        for i, (gx, gy) in enumerate(coords):
            tile = grid.create_tile(gx, gy)
            yield i + 1, len(coords), f"Created {tile.name}"

    def _build_river_mask(self) -> StageWork:
        assert self.world is not None and self.seed is not None
        grid = self.world.grid
        builder = RiverNetworkBuilder(
            self.config.settings, self.seed, grid.samples_x, grid.samples_y
        )
        rivers = builder.plan_rivers()
        self.world.rivers = rivers
        if not rivers:
            yield 1, 1, "No rivers to carve"
            return

        for i, river in enumerate(rivers):
            builder.stamp_river(self.world.river_mask, river)
            yield i + 1, len(rivers), f"Carved river {i + 1}/{len(rivers)}"

        logger.info(
            "river_mask_built",
            rivers=len(rivers),
            coverage=round(float(np.mean(self.world.river_mask > 0.0)), 4),
        )

    def _generate_heights(self) -> StageWork:
        assert self.world is not None and self.seed is not None
        grid = self.world.grid
        settings = self.config.settings
        synth = HeightSynthesizer(settings, self.seed)
        classifier = BiomeClassifier(settings, self.seed)
        composer = SplatmapComposer(settings)

        tiles = grid.tiles
        n = len(tiles)
        workers = self.config.world.workers

        if workers <= 1:
            for i, tile in enumerate(tiles):
                self._generate_owned(tile, synth, classifier)
                self._populate_tile(tile, composer)
                yield i + 1, n, f"Generated {tile.name}"
            return

        # Owned regions are disjoint, so tiles can fill the buffers in any order
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                pool.submit(self._generate_owned, tile, synth, classifier): tile
                for tile in tiles
            }
            for i, future in enumerate(as_completed(futures)):
                future.result()
                yield i + 1, 2 * n, f"Generated {futures[future].name}"

        for i, tile in enumerate(tiles):
            self._populate_tile(tile, composer)
            yield n + i + 1, 2 * n, f"Textured {tile.name}"

    def _generate_owned(
        self,
        tile: TerrainTile,
        synth: HeightSynthesizer,
        classifier: BiomeClassifier,
    ) -> None:
        """Compute the samples this tile owns into the global buffers."""
        assert self.world is not None
        assert self._heights is not None and self._biome is not None
        grid = self.world.grid
        gx, gy = tile.grid_x, tile.grid_y

        block = grid.block(gx, gy)
        owned = grid.owned_mask(gx, gy)
        u, v = grid.sample_coordinates(gx, gy)
        u, v = u[owned], v[owned]

        blend = classifier.classify(u, v)
        river = self.world.river_mask[block][owned]

        self._biome[block][owned] = blend
        self._heights[block][owned] = synth.synthesize(u, v, blend, river)

    def _populate_tile(self, tile: TerrainTile, composer: SplatmapComposer) -> None:
        """Copy a tile's block out of the global buffers and derive its splatmap."""
        assert self.world is not None
        assert self._heights is not None and self._biome is not None
        grid = self.world.grid
        gx, gy = tile.grid_x, tile.grid_y

        tile.heights = grid.slice_global(self._heights, gx, gy)
        tile.biome = grid.slice_global(self._biome, gx, gy)
        tile.river = grid.slice_global(self.world.river_mask, gx, gy)
        tile.splatmap = composer.compose(tile.biome, tile.river)

    def _stitch_edges(self) -> StageWork:
        assert self.world is not None
        grid = self.world.grid
        if self.config.world.set_neighbors:
            grid.link_neighbors()
            yield 1, 2, "Linked neighbor tiles"
        else:
            yield 1, 2, "Neighbor linking disabled"

        grid.verify_shared_edges()
        yield 2, 2, "Verified shared edges"

    def _finalize(self) -> StageWork:
        assert self.world is not None
        # Per-tile arrays are now the source of truth
        self._heights = None
        self._biome = None

        if self.config.world.validate_output:
            result = validate_world(self.world)
            if not result.passed:
                raise GenerationError(
                    "World validation failed: " + "; ".join(result.errors)
                )
            yield 1, 1, "Validated world"
        else:
            yield 1, 1, "Finalized world"

    def _place_points(self) -> StageWork:
        assert self.world is not None and self.seed is not None
        world = self.world
        poi_config = self.config.poi
        spawn_config = self.config.spawn

        tiles: list[TerrainTile] = []
        rng = make_poi_rng(self.seed)
        if poi_config.enabled:
            tiles = select_poi_tiles(world.grid, poi_config, rng)

        total = len(tiles) + (1 if spawn_config.enabled else 0)
        if total == 0:
            yield 1, 1, "No points of interest"
            return

        for i, tile in enumerate(tiles):
            poi = place_poi(tile, i, poi_config, rng)
            world.pois.append(poi)
            yield i + 1, total, f"Placed {poi.name}"

        if spawn_config.enabled:
            world.spawn = resolve_spawn(world.grid, lambda: world.pois, spawn_config, self.seed)
            yield total, total, "Resolved spawn point"


def generate(
    config: Config | None = None,
    on_progress: ProgressCallback | None = None,
    on_complete: CompleteCallback | None = None,
) -> WorldData:
    """Generate a world in one blocking call."""
    return GenerationPipeline(config, on_progress, on_complete).run()
