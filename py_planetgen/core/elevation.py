"""
Tile elevation from plate boundary interactions.

Interior tiles take their plate's base elevation. Tiles on a plate boundary
are raised or lowered depending on the plate types on either side and on
how strongly the plates converge, then the whole map is smoothed.
"""

from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np
import structlog

from .planet import Tile
from .plates import Plate, TectonicsOptions

logger = structlog.get_logger()


def compute_convergence(
    tile_center: Sequence[float],
    neighbor_center: Sequence[float],
    own_motion: Sequence[float],
    other_motion: Sequence[float],
) -> float:
    """
    Relative plate motion projected on the unit direction from the tile to
    its neighbor. Scores below the strong threshold mark a strong boundary.
    """
    normal = np.asarray(neighbor_center, dtype=np.float64) - np.asarray(tile_center, dtype=np.float64)
    length = np.linalg.norm(normal)
    if length > 0:
        normal = normal / length
    relative = np.asarray(own_motion, dtype=np.float64) - np.asarray(other_motion, dtype=np.float64)
    return float(np.dot(relative, normal))


def boundary_interaction(
    own: Plate,
    other: Plate,
    convergence: float,
    options: TectonicsOptions,
) -> Tuple[float, int]:
    """Candidate (elevation, priority) for a tile facing another plate."""
    strong = convergence < options.strong_convergence_threshold

    if not own.is_oceanic and not other.is_oceanic:
        if strong:
            return options.mountain_elevation, options.priority_mountain
        return own.base_elevation, options.priority_base

    if not own.is_oceanic and other.is_oceanic:
        if strong:
            return options.mountain_elevation, options.priority_mountain
        return options.coastline_lower_elevation, options.priority_coast_ridge_trench

    if own.is_oceanic and not other.is_oceanic:
        if strong:
            return own.base_elevation + options.trench_offset, options.priority_coast_ridge_trench
        return options.coastline_higher_elevation, options.priority_coast_ridge_trench

    if strong:
        return options.ocean_ridge_elevation, options.priority_coast_ridge_trench
    return options.ocean_floor_elevation, options.priority_ocean_floor


class ElevationSimulator:
    """Assigns ``tile.elevation`` in place from plate interactions."""

    def __init__(
        self,
        tiles: Mapping[int, Tile],
        plates: List[Plate],
        options: Optional[TectonicsOptions] = None,
    ):
        self.tiles = tiles
        self.plates = plates
        self.options = options or TectonicsOptions()

    def tile_elevation(self, tile: Tile) -> float:
        opts = self.options
        own = self.plates[tile.plate]
        elevation = own.base_elevation
        best_priority = opts.priority_base

        for neighbor_id in tile.neighbors:
            neighbor = self.tiles[neighbor_id]
            if neighbor.plate == tile.plate:
                continue
            other = self.plates[neighbor.plate]
            convergence = compute_convergence(tile.center, neighbor.center, own.motion, other.motion)
            candidate, priority = boundary_interaction(own, other, convergence, opts)

            if priority > best_priority:
                best_priority = priority
                elevation = candidate
            elif priority == best_priority and priority > opts.priority_base:
                elevation = max(elevation, candidate)

        return max(-1.0, min(1.0, elevation))

    def smooth(self, elevations: np.ndarray) -> np.ndarray:
        """Blend each tile with the mean of itself and its neighbors, per pass."""
        opts = self.options
        n_tiles = len(elevations)
        sources = []
        targets = []
        for tile_id, tile in self.tiles.items():
            sources.extend(tile.neighbors)
            targets.extend([tile_id] * len(tile.neighbors))
        sources = np.asarray(sources, dtype=np.int64)
        targets = np.asarray(targets, dtype=np.int64)
        counts = 1.0 + np.bincount(targets, minlength=n_tiles)

        for _ in range(opts.smoothing_passes):
            sums = elevations.copy()
            np.add.at(sums, targets, elevations[sources])
            elevations = (
                opts.smoothing_original_weight * elevations
                + opts.smoothing_averaged_weight * (sums / counts)
            )
        return elevations

    def run(self) -> np.ndarray:
        logger.info("Computing elevation", tiles=len(self.tiles))
        elevations = np.zeros(len(self.tiles))
        for tile_id, tile in self.tiles.items():
            elevations[tile_id] = self.tile_elevation(tile)

        elevations = np.clip(self.smooth(elevations), -1.0, 1.0)
        for tile_id, tile in self.tiles.items():
            tile.elevation = float(elevations[tile_id])

        logger.info(
            "Elevation computed",
            min_elevation=float(elevations.min()) if len(elevations) else None,
            max_elevation=float(elevations.max()) if len(elevations) else None,
            land_fraction=float((elevations >= 0).mean()) if len(elevations) else None,
        )
        return elevations
