#!/usr/bin/env python3
"""
Generate sample planets with the full pipeline.

For each configuration this prints terrain statistics, writes a JSON export
and an equirectangular terrain preview to ``sample_planets/``.

Usage:
    python generate_sample_planets.py [seed]

If no seed is provided, defaults to "19831108"
"""

import json
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from py_planetgen.core.generator import generate_planet
from py_planetgen.core.planet import PlanetConfig
from py_planetgen.core.terrain import TERRAIN_COLORS, TERRAIN_NAMES, TerrainType
from py_planetgen.utils.logging import configure_logging

OUTPUT_DIR = Path("sample_planets")


def save_preview(planet, path):
    """Scatter tile centers by longitude/latitude, colored by terrain."""
    tiles = list(planet.tiles.values())
    fig, ax = plt.subplots(figsize=(12, 6))
    ax.scatter(
        [tile.lon for tile in tiles],
        [tile.lat for tile in tiles],
        c=[TERRAIN_COLORS[tile.terrain] for tile in tiles],
        s=max(1.0, 20000.0 / len(tiles)),
        marker="s",
        linewidths=0,
    )
    ax.set_xlim(-180, 180)
    ax.set_ylim(-90, 90)
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.set_title(f"seed={planet.config.seed} tiles={planet.tile_count} plates={len(planet.plates)}")
    fig.savefig(path, dpi=100, bbox_inches="tight")
    plt.close(fig)


def create_planet(tile_count, plate_count, seed, jitter=0.5, algorithm=1):
    print(f"\nGenerating planet: {tile_count} tiles, {plate_count} plates, seed {seed}")
    config = PlanetConfig(
        tile_count=tile_count,
        plate_count=plate_count,
        jitter=jitter,
        algorithm=algorithm,
        seed=seed,
    )
    planet = generate_planet(config)

    print(f"  Generated in {planet.generation_time_seconds:.2f}s")
    print(f"  Total area: {planet.total_area():,.0f} km²")
    oceanic = sum(1 for plate in planet.plates if plate.is_oceanic)
    print(f"  Plates: {oceanic} oceanic, {len(planet.plates) - oceanic} continental")
    for name, count in sorted(planet.terrain_stats.items(), key=lambda item: -item[1]):
        share = 100.0 * count / planet.tile_count
        print(f"    {TERRAIN_NAMES[TerrainType[name]]:<20} {count:>6} ({share:.1f}%)")

    stem = f"planet_{seed}_{tile_count}_{plate_count}"
    with open(OUTPUT_DIR / f"{stem}.json", "w") as f:
        json.dump(planet.to_dict(), f)
    save_preview(planet, OUTPUT_DIR / f"{stem}.png")
    print(f"  Saved {stem}.json and {stem}.png")
    return planet


def main():
    """Generate sample planets at several sizes."""
    seed = sys.argv[1] if len(sys.argv) > 1 else "19831108"
    configure_logging("WARNING", "console")
    OUTPUT_DIR.mkdir(exist_ok=True)

    samples = [
        (500, 8),
        (1280, 16),
        (5000, 24),
        (20000, 32),
    ]

    print("Generating sample planets")
    print(f"Using seed: {seed}")
    print("=" * 60)

    for tile_count, plate_count in samples:
        create_planet(tile_count, plate_count, seed)

    print("\n" + "=" * 60)
    print(f"All planets written to {OUTPUT_DIR}/")


if __name__ == "__main__":
    main()
