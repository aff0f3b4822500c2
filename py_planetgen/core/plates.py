"""
Tectonic plate assignment.

This module implements:
- Random seed tile selection and plate motion vectors
- Oceanic / continental plate typing with base elevations
- Randomized flood fill that partitions every tile into a plate
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

import numpy as np
import structlog

from .mulberry_prng import SeededRandom
from .planet import Tile, Vector3

logger = structlog.get_logger()


@dataclass
class TectonicsOptions:
    """Tuned constants for plate generation and boundary elevation."""

    # Plate typing
    oceanic_chance: float = 0.7
    oceanic_elevation_min: float = -0.9
    oceanic_elevation_max: float = -0.5
    continental_elevation_min: float = 0.1
    continental_elevation_max: float = 0.5

    # Boundary interaction
    strong_convergence_threshold: float = -0.4
    mountain_elevation: float = 1.0
    coastline_lower_elevation: float = 0.0  # land side of a coast
    coastline_higher_elevation: float = -0.15  # ocean side of a coast
    ocean_ridge_elevation: float = -0.1
    trench_offset: float = -0.45
    ocean_floor_elevation: float = -0.75

    # Priorities, higher wins
    priority_base: int = 0
    priority_ocean_floor: int = 1
    priority_coast_ridge_trench: int = 2
    priority_mountain: int = 3

    # Smoothing
    smoothing_passes: int = 2
    smoothing_original_weight: float = 0.6
    smoothing_averaged_weight: float = 0.4


@dataclass
class Plate:
    """A tectonic plate. ``motion`` is a unit vector tangent at the seed tile."""

    id: int
    seed_tile_id: int
    center: Vector3
    motion: Vector3
    is_oceanic: bool
    base_elevation: float

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "seed_tile_id": self.seed_tile_id,
            "center": list(self.center),
            "motion": list(self.motion),
            "is_oceanic": self.is_oceanic,
            "base_elevation": self.base_elevation,
        }


def _normalize(vector: np.ndarray) -> np.ndarray:
    length = np.linalg.norm(vector)
    if length == 0:
        return vector
    return vector / length


def _as_vector3(vector: np.ndarray) -> Vector3:
    return (float(vector[0]), float(vector[1]), float(vector[2]))


class PlateAssigner:
    """
    Partitions tiles into tectonic plates.

    Randomness is drawn from ``prng`` in a fixed order: one shuffle of all
    tile ids, then per plate three floats for the motion direction, one for
    the plate type and one for the base elevation, then the flood fill.
    """

    def __init__(
        self,
        tiles: Mapping[int, Tile],
        prng: SeededRandom,
        options: Optional[TectonicsOptions] = None,
    ):
        self.tiles = tiles
        self.prng = prng
        self.options = options or TectonicsOptions()
        self.plates: List[Plate] = []

    def create_plates(self, plate_count: int) -> List[Plate]:
        """Pick seed tiles and roll motion, type and base elevation for each plate."""
        opts = self.options
        tile_ids = sorted(self.tiles)
        self.prng.shuffle(tile_ids)
        seed_ids = tile_ids[:plate_count]

        if len(seed_ids) < plate_count:
            logger.warning(
                "Not enough tiles for requested plates",
                requested=plate_count,
                created=len(seed_ids),
            )

        plates = []
        for plate_id, seed_id in enumerate(seed_ids):
            center = np.asarray(self.tiles[seed_id].center, dtype=np.float64)
            random_vector = _normalize(np.array([
                self.prng.next_float() - 0.5,
                self.prng.next_float() - 0.5,
                self.prng.next_float() - 0.5,
            ]))
            motion = _normalize(np.cross(center, random_vector))

            is_oceanic = self.prng.next_float() < opts.oceanic_chance
            if is_oceanic:
                low, high = opts.oceanic_elevation_min, opts.oceanic_elevation_max
            else:
                low, high = opts.continental_elevation_min, opts.continental_elevation_max
            base_elevation = self.prng.next_float() * (high - low) + low

            plates.append(Plate(
                id=plate_id,
                seed_tile_id=seed_id,
                center=_as_vector3(center),
                motion=_as_vector3(motion),
                is_oceanic=is_oceanic,
                base_elevation=base_elevation,
            ))

        self.plates = plates
        return plates

    def flood_fill(self) -> np.ndarray:
        """
        Grow all plates at once from their seeds.

        The frontier is a fixed arena of tile ids: ``queue[head:tail]`` holds
        claimed tiles whose neighbors are still unvisited. Each step swaps a
        uniformly chosen frontier entry to ``head`` and expands it.

        Returns:
            Array mapping tile id to plate id (-1 where unreachable)
        """
        n_tiles = len(self.tiles)
        plate_of = np.full(n_tiles, -1, dtype=np.int64)
        visited = np.zeros(n_tiles, dtype=bool)
        queue = np.empty(n_tiles, dtype=np.int64)

        seeds = [plate.seed_tile_id for plate in self.plates]
        for plate in self.plates:
            plate_of[plate.seed_tile_id] = plate.id
            visited[plate.seed_tile_id] = True
        self.prng.shuffle(seeds)
        queue[:len(seeds)] = seeds

        head, tail = 0, len(seeds)
        while head < tail:
            pick = head + int(self.prng.next_float() * (tail - head))
            queue[head], queue[pick] = queue[pick], queue[head]
            tile_id = int(queue[head])
            head += 1

            neighbors = list(self.tiles[tile_id].neighbors)
            self.prng.shuffle(neighbors)
            for neighbor_id in neighbors:
                if not visited[neighbor_id]:
                    visited[neighbor_id] = True
                    plate_of[neighbor_id] = plate_of[tile_id]
                    queue[tail] = neighbor_id
                    tail += 1

        return plate_of

    def recompute_centers(self) -> None:
        """Move each plate center to the normalized mean of its tile centers."""
        n_plates = len(self.plates)
        sums = np.zeros((n_plates, 3))
        counts = np.zeros(n_plates, dtype=np.int64)
        for tile in self.tiles.values():
            sums[tile.plate] += tile.center
            counts[tile.plate] += 1

        for plate in self.plates:
            if counts[plate.id] > 0:
                plate.center = _as_vector3(_normalize(sums[plate.id] / counts[plate.id]))

    def assign(self, plate_count: int) -> List[Plate]:
        """
        Create ``plate_count`` plates and set ``tile.plate`` on every tile.

        Tiles the flood fill cannot reach are put on plate 0.
        """
        logger.info("Assigning tectonic plates", tiles=len(self.tiles), plates=plate_count)
        self.create_plates(plate_count)
        if not self.plates:
            logger.warning("No plates created")
            return self.plates

        plate_of = self.flood_fill()

        unassigned = np.flatnonzero(plate_of < 0)
        if len(unassigned):
            logger.warning(
                "Tiles unreachable from any plate seed, assigning to plate 0",
                count=len(unassigned),
            )
            plate_of[unassigned] = 0

        for tile_id, tile in self.tiles.items():
            tile.plate = int(plate_of[tile_id])

        self.recompute_centers()

        oceanic = sum(1 for plate in self.plates if plate.is_oceanic)
        logger.info(
            "Plates assigned",
            plates=len(self.plates),
            oceanic=oceanic,
            continental=len(self.plates) - oceanic,
        )
        return self.plates
