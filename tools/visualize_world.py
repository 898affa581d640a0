#!/usr/bin/env python3
"""Render an exported desert world to a 1-pixel-per-sample image with stats.

Usage:
    python tools/visualize_world.py [WORLD_PATH] [OUTPUT_PATH]

Arguments:
    WORLD_PATH: Path to the .npz world file (default: saves/desert.npz)
    OUTPUT_PATH: Path for output image (default: desert_map.png)
"""

import sys
from pathlib import Path

from duneworld.persistence import load_world
from duneworld.preview import compute_world_stats, generate_world_image
from duneworld.world import WorldData


def print_stats(stats: dict, world: WorldData) -> None:
    """Print formatted statistics."""
    print(f"\n{'='*60}")
    print("DESERT WORLD STATISTICS")
    print(f"{'='*60}")

    print(f"\nSeed: {world.seed}")

    dims = stats["dimensions"]
    print(f"\nDimensions:")
    print(f"  Tiles:   {dims['tiles']}")
    print(f"  Samples: {dims['samples']}")

    h = stats["heights"]
    print(f"\nHeights (normalized):")
    print(f"  Range: {h['min']:.3f} .. {h['max']:.3f} (mean {h['mean']:.3f})")

    print(f"\nBiome:")
    print(f"  Dunes: {stats['biome']['dune_percentage']:.1f}%")

    r = stats["rivers"]
    print(f"\nRivers:")
    print(f"  Count:    {r['count']}")
    print(f"  Coverage: {r['coverage_percentage']:.1f}%")

    if world.pois:
        print(f"\nPoints of interest ({len(world.pois)}):")
        for poi in world.pois:
            x, y, z = poi.position
            print(f"  {poi.name:20} ({x:9.1f}, {y:7.2f}, {z:9.1f})")

    if world.spawn is not None:
        x, y, z = world.spawn.position
        source = "fallback" if world.spawn.fallback else world.spawn.anchor_name
        print(f"\nSpawn: ({x:.1f}, {y:.2f}, {z:.1f}) via {source}")

    print(f"\n{'='*60}\n")


def main():
    world_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("saves/desert.npz")
    output_path = Path(sys.argv[2]) if len(sys.argv) > 2 else Path("desert_map.png")

    if not world_path.is_absolute():
        # Try relative to the repository root first
        candidate = Path(__file__).parent.parent / world_path
        if candidate.exists():
            world_path = candidate

    print(f"Loading world from: {world_path}")

    try:
        world = load_world(world_path)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nHint: generate a world first:")
        print("  duneworld-generate --tiles-x 3 --tiles-y 3 -o saves/desert.npz")
        sys.exit(1)

    print_stats(compute_world_stats(world), world)

    print(f"Generating image...")
    img = generate_world_image(world, show_markers=True)
    img.save(output_path)
    print(f"Saved world image to: {output_path}")


if __name__ == "__main__":
    main()
