"""
Planet generation pipeline.

Runs every stage in order on one SeededRandom instance and publishes the
finished Planet. Stage order also fixes the order in which random numbers
are consumed: point jitter, plate seeds and motions, plate flood fill,
plate moisture factors.
"""

import time
from typing import Callable, Dict, Optional, Sequence

import structlog

from .adjacency import build_adjacency
from .climate import ClimateModel, ClimateOptions
from .elevation import ElevationSimulator
from .mulberry_prng import SeededRandom
from .planet import Planet, PlanetConfig, Tile
from .plates import PlateAssigner, TectonicsOptions
from .sphere_points import generate_fibonacci_points
from .terrain import DEFAULT_TERRAIN_RULES, TerrainClassifier, TerrainRule
from .triangulation import triangulate_sphere
from .voronoi_sphere import SphereVoronoiGraph, build_spherical_voronoi

logger = structlog.get_logger()

ProgressCallback = Callable[[int, str], None]


def build_tiles(graph: SphereVoronoiGraph, neighbors: Sequence[Sequence[int]], radius: float) -> Dict[int, Tile]:
    """Create one tile per sample point; the point itself is the tile center."""
    tiles = {}
    for tile_id in range(graph.n_cells):
        point = graph.points[tile_id]
        tiles[tile_id] = Tile(
            id=tile_id,
            center=(float(point[0]), float(point[1]), float(point[2])),
            neighbors=list(neighbors[tile_id]),
            area=float(graph.cell_steradians[tile_id]) * radius * radius,
            polygon=graph.cell_polygon(tile_id),
        )
    return tiles


def generate_planet(
    config: Optional[PlanetConfig] = None,
    prng: Optional[SeededRandom] = None,
    tectonics: Optional[TectonicsOptions] = None,
    climate: Optional[ClimateOptions] = None,
    terrain_rules: Sequence[TerrainRule] = DEFAULT_TERRAIN_RULES,
    adjacency_key_mode: str = "index",
    progress_callback: Optional[ProgressCallback] = None,
) -> Planet:
    """
    Generate a complete planet.

    Args:
        config: Generation parameters (defaults to PlanetConfig())
        prng: Generator to draw from; created from ``config.seed`` if omitted
        tectonics: Plate and elevation constants
        climate: Moisture, temperature and ocean connectivity constants
        terrain_rules: Terrain decision table
        adjacency_key_mode: Edge identity used for neighbor detection
        progress_callback: Called with (percent, stage) after each stage

    Returns:
        The finished Planet
    """
    config = config or PlanetConfig()
    config.validate()
    prng = prng or SeededRandom(config.seed)

    def report(percent: int, stage: str) -> None:
        if progress_callback is not None:
            progress_callback(percent, stage)

    start = time.perf_counter()
    log = logger.bind(seed=config.seed, tiles=config.tile_count, plates=config.plate_count)
    log.info("Starting planet generation", numeric_seed=prng.current_seed)

    stage_start = time.perf_counter()
    points = generate_fibonacci_points(config.tile_count, config.jitter, config.algorithm, prng)
    triangulation = triangulate_sphere(points)
    graph = build_spherical_voronoi(triangulation)
    adjacency = build_adjacency(graph, key_mode=adjacency_key_mode)
    tiles = build_tiles(graph, adjacency.neighbors, config.radius)
    log.info("Tessellation complete", seconds=round(time.perf_counter() - stage_start, 3))
    report(30, "tessellation")

    stage_start = time.perf_counter()
    plates = PlateAssigner(tiles, prng, tectonics).assign(config.plate_count)
    log.info("Plates complete", seconds=round(time.perf_counter() - stage_start, 3))
    report(50, "plates")

    stage_start = time.perf_counter()
    ElevationSimulator(tiles, plates, tectonics).run()
    log.info("Elevation complete", seconds=round(time.perf_counter() - stage_start, 3))
    report(65, "elevation")

    stage_start = time.perf_counter()
    ClimateModel(tiles, plates, prng, climate).run()
    log.info("Climate complete", seconds=round(time.perf_counter() - stage_start, 3))
    report(80, "climate")

    stage_start = time.perf_counter()
    sea_level = climate.sea_level if climate is not None else ClimateOptions().sea_level
    TerrainClassifier(terrain_rules, sea_level=sea_level).classify_tiles(tiles)
    log.info("Terrain complete", seconds=round(time.perf_counter() - stage_start, 3))
    report(95, "terrain")

    elapsed = time.perf_counter() - start
    planet = Planet(
        config=config,
        tiles=tiles,
        plates=plates,
        vertex_coordinates=graph.vertex_coordinates,
        boundary_segments=adjacency.boundary_segments,
        generation_time_seconds=elapsed,
    )
    log.info(
        "Planet generation completed",
        planet_id=planet.id,
        seconds=round(elapsed, 3),
        total_area=planet.total_area(),
    )
    report(100, "completed")
    return planet
