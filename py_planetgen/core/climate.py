"""
Moisture, temperature and ocean connectivity.

This module implements:
- Latitude moisture bands modulated by a per-plate factor and hash noise
- Temperature falling off with latitude and altitude
- Breadth-first flood marking which below-sea-level tiles reach the ocean
"""

import math
from collections import deque
from dataclasses import dataclass
from typing import List, Mapping, Optional

import numpy as np
import structlog

from .mulberry_prng import SeededRandom
from .planet import Tile
from .plates import Plate
from .terrain import SEA_LEVEL

logger = structlog.get_logger()

SIN_30 = math.sin(math.radians(30))
SIN_60 = math.sin(math.radians(60))

OCEAN_SEED_MODES = ("oceanic_plates", "all_below_sea_level")


@dataclass
class ClimateOptions:
    """Climate constants; moisture and temperature are normalized to [0, 1]."""

    # Moisture
    plate_moisture_min: float = 0.2
    plate_moisture_max: float = 0.8
    equator_moisture: float = 0.9
    lat30_moisture: float = 0.1
    lat60_moisture: float = 0.5
    latitude_weight: float = 0.7
    plate_weight: float = 0.3
    noise_x: float = 23.4
    noise_y: float = 17.8
    noise_z: float = 11.2
    noise_amplitude: float = 0.05

    # Temperature
    altitude_cooling: float = 0.25
    deep_water_elevation: float = -0.5
    deep_water_cooling: float = 0.05

    # Ocean connectivity
    sea_level: float = SEA_LEVEL
    ocean_seeds: str = "all_below_sea_level"

    def __post_init__(self):
        if self.ocean_seeds not in OCEAN_SEED_MODES:
            raise ValueError(
                f"ocean_seeds must be one of {OCEAN_SEED_MODES}, got {self.ocean_seeds!r}"
            )


def noise3(x: float, y: float, z: float) -> float:
    """Deterministic hash noise in [0, 1)."""
    s = math.sin(x * 12.9898 + y * 78.233 + z * 37.719)
    return s - math.floor(s)


def latitude_moisture(abs_y: float, options: ClimateOptions) -> float:
    """
    Moisture baseline by latitude band.

    Wet at the equator, driest at 30°, moderate from 60° to the poles.
    """
    if abs_y <= SIN_30:
        t = abs_y / SIN_30
        return options.equator_moisture - t * (options.equator_moisture - options.lat30_moisture)
    if abs_y <= SIN_60:
        t = (abs_y - SIN_30) / (SIN_60 - SIN_30)
        return options.lat30_moisture + t * (options.lat60_moisture - options.lat30_moisture)
    return options.lat60_moisture


def tile_temperature(y: float, elevation: float, options: ClimateOptions) -> float:
    temperature = 1.0 - abs(y) - options.altitude_cooling * max(elevation, 0.0)
    if elevation < options.deep_water_elevation:
        temperature -= options.deep_water_cooling
    return max(0.0, min(1.0, temperature))


class ClimateModel:
    """Assigns moisture, temperature and ocean connectivity to tiles in place."""

    def __init__(
        self,
        tiles: Mapping[int, Tile],
        plates: List[Plate],
        prng: SeededRandom,
        options: Optional[ClimateOptions] = None,
    ):
        self.tiles = tiles
        self.plates = plates
        self.prng = prng
        self.options = options or ClimateOptions()
        self.plate_moisture_factors: List[float] = []

    def draw_plate_moisture_factors(self) -> List[float]:
        opts = self.options
        span = opts.plate_moisture_max - opts.plate_moisture_min
        self.plate_moisture_factors = [
            self.prng.next_float() * span + opts.plate_moisture_min
            for _ in self.plates
        ]
        return self.plate_moisture_factors

    def tile_moisture(self, tile: Tile) -> float:
        opts = self.options
        x, y, z = tile.center
        baseline = latitude_moisture(abs(y), opts)
        factor = self.plate_moisture_factors[tile.plate]
        noise = (noise3(x * opts.noise_x, y * opts.noise_y, z * opts.noise_z) - 0.5) * opts.noise_amplitude
        moisture = opts.latitude_weight * baseline + opts.plate_weight * factor + noise
        return max(0.0, min(1.0, moisture))

    def assign_moisture(self) -> None:
        self.draw_plate_moisture_factors()
        for tile in self.tiles.values():
            tile.moisture = self.tile_moisture(tile)

    def assign_temperature(self) -> None:
        for tile in self.tiles.values():
            tile.temperature = tile_temperature(tile.center[1], tile.elevation, self.options)

    def mark_ocean_connectivity(self) -> int:
        """
        Flood from the ocean seeds through below-sea-level tiles.

        Below-sea-level tiles left unreached are lakes.

        Returns:
            Number of ocean-connected tiles
        """
        opts = self.options
        below = {
            tile_id for tile_id, tile in self.tiles.items()
            if tile.elevation < opts.sea_level
        }
        if opts.ocean_seeds == "oceanic_plates":
            seeds = [
                tile_id for tile_id in sorted(below)
                if self.plates[self.tiles[tile_id].plate].is_oceanic
            ]
        else:
            seeds = sorted(below)

        for tile in self.tiles.values():
            tile.is_ocean_connected = False

        queue = deque(seeds)
        reached = set(seeds)
        while queue:
            tile_id = queue.popleft()
            self.tiles[tile_id].is_ocean_connected = True
            for neighbor_id in self.tiles[tile_id].neighbors:
                if neighbor_id in below and neighbor_id not in reached:
                    reached.add(neighbor_id)
                    queue.append(neighbor_id)

        logger.info(
            "Ocean connectivity marked",
            below_sea_level=len(below),
            ocean_connected=len(reached),
            lake_tiles=len(below) - len(reached),
        )
        return len(reached)

    def run(self) -> None:
        logger.info("Computing climate", tiles=len(self.tiles), plates=len(self.plates))
        self.assign_moisture()
        self.assign_temperature()
        self.mark_ocean_connectivity()

        if self.tiles:
            moisture = np.array([tile.moisture for tile in self.tiles.values()])
            temperature = np.array([tile.temperature for tile in self.tiles.values()])
            logger.info(
                "Climate computed",
                mean_moisture=float(moisture.mean()),
                mean_temperature=float(temperature.mean()),
            )
