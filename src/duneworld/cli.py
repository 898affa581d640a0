"""Command-line interface for world generation."""

import argparse
import logging
import time
from pathlib import Path

import structlog

from .config import Config, find_config, load_config
from .exceptions import ConfigurationError, GenerationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a procedural multi-tile desert world"
    )
    parser.add_argument(
        "--config", type=str, default=None, help="Path or name of TOML config file"
    )
    parser.add_argument("--tiles-x", type=int, default=None, help="Tiles along x")
    parser.add_argument("--tiles-y", type=int, default=None, help="Tiles along z")
    parser.add_argument(
        "--resolution", type=int, default=None, help="Heightmap resolution per tile"
    )
    parser.add_argument("--seed", type=int, default=None, help="World seed (default: random)")
    parser.add_argument(
        "--workers", type=int, default=None, help="Threads for tile generation"
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="saves/desert.npz",
        help="Output path (default: saves/desert.npz)",
    )
    parser.add_argument(
        "--incremental",
        action="store_true",
        help="Run the pipeline step by step, printing each step",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def resolve_config(args: argparse.Namespace) -> Config:
    """Load the base config and apply command-line overrides."""
    config = load_config(find_config(args.config)) if args.config else Config()

    overrides = {
        "tiles_x": args.tiles_x,
        "tiles_y": args.tiles_y,
        "heightmap_resolution": args.resolution,
        "seed": args.seed,
        "workers": args.workers,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        config = config.model_copy(
            update={"world": config.world.model_copy(update=overrides)}
        )
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for world generation."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from .persistence import save_world
    from .pipeline import GenerationPipeline

    try:
        config = resolve_config(args)
    except (FileNotFoundError, ConfigurationError) as e:
        logger.error("config_error", error=str(e))
        raise SystemExit(1)

    output_path = Path(args.output)
    pipeline = GenerationPipeline(config)

    start_time = time.time()
    try:
        if args.incremental:
            while True:
                result = pipeline.step()
                print(f"[{result.progress:6.1%}] {result.stage.name}: {result.note}")
                if result.done:
                    break
            world = pipeline.run()
        else:
            world = pipeline.run()
    except (ConfigurationError, GenerationError) as e:
        logger.error("generation_error", error=str(e))
        raise SystemExit(1)
    gen_time = time.time() - start_time

    logger.info("generation_finished", seed=world.seed, seconds=round(gen_time, 2))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    save_world(output_path, world)
    print(f"Saved to {output_path}")


if __name__ == "__main__":
    main()
