"""
Planet data model: generation config, tiles and the published Planet.

Tiles are created during tessellation and mutated in place by the later
pipeline stages. A Planet is only constructed once every stage has run, so
consumers never see a half-generated tile map.
"""

import math
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import numpy as np

from .terrain import TERRAIN_COLORS, TERRAIN_NAMES, TerrainType, is_water_terrain

if TYPE_CHECKING:
    from .plates import Plate

Vector3 = Tuple[float, float, float]

SUPPORTED_ALGORITHMS = (1, 2)


class PlanetConfigError(ValueError):
    """Raised when generation parameters are rejected before any stage runs."""


@dataclass(frozen=True)
class PlanetConfig:
    """Generation parameters for one planet."""

    tile_count: int = 1280
    jitter: float = 0.5
    algorithm: int = 1
    plate_count: int = 16
    radius: float = 6400.0  # km
    seed: str = "19831108"

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if self.tile_count < 4:
            raise PlanetConfigError(
                f"tile_count must be at least 4, got {self.tile_count}"
            )
        if self.plate_count < 1:
            raise PlanetConfigError(
                f"plate_count must be at least 1, got {self.plate_count}"
            )
        if self.plate_count > self.tile_count:
            raise PlanetConfigError(
                f"plate_count ({self.plate_count}) cannot exceed "
                f"tile_count ({self.tile_count})"
            )
        if not 0.0 <= self.jitter <= 1.0:
            raise PlanetConfigError(f"jitter must be within [0, 1], got {self.jitter}")
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise PlanetConfigError(
                f"algorithm must be one of {SUPPORTED_ALGORITHMS}, got {self.algorithm}"
            )
        if not self.radius > 0:
            raise PlanetConfigError(f"radius must be positive, got {self.radius}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tile_count": self.tile_count,
            "jitter": self.jitter,
            "algorithm": self.algorithm,
            "plate_count": self.plate_count,
            "radius": self.radius,
            "seed": self.seed,
        }


@dataclass
class Tile:
    """One Voronoi cell of the planet surface. Areas are in km²."""

    id: int
    center: Vector3
    neighbors: List[int] = field(default_factory=list)
    area: float = 0.0
    polygon: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    terrain: TerrainType = TerrainType.GRASSLAND
    elevation: float = 0.0  # -1.0 .. 1.0
    plate: int = 0
    moisture: float = 0.0  # 0.0 .. 1.0
    temperature: float = 0.0  # 0.0 .. 1.0
    is_ocean_connected: bool = False

    @property
    def lat_rad(self) -> float:
        return math.asin(max(-1.0, min(1.0, self.center[1])))

    @property
    def lon_rad(self) -> float:
        return math.atan2(self.center[2], self.center[0])

    @property
    def lat(self) -> float:
        """Latitude in degrees."""
        return math.degrees(self.lat_rad)

    @property
    def lon(self) -> float:
        """Longitude in degrees."""
        return math.degrees(self.lon_rad)

    @property
    def is_water(self) -> bool:
        return is_water_terrain(self.terrain)

    def to_dict(self, include_polygon: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "terrain": self.terrain.name,
            "terrain_name": TERRAIN_NAMES[self.terrain],
            "color": TERRAIN_COLORS[self.terrain],
            "center": list(self.center),
            "lat": self.lat,
            "lon": self.lon,
            "neighbors": list(self.neighbors),
            "area": self.area,
            "elevation": self.elevation,
            "plate": self.plate,
            "moisture": self.moisture,
            "temperature": self.temperature,
            "is_ocean_connected": self.is_ocean_connected,
        }
        if include_polygon:
            data["polygon"] = self.polygon.tolist()
        return data


@dataclass(frozen=True)
class Planet:
    """
    A fully generated planet.

    Holds the tile map keyed by id, the tectonic plates, the boundary
    segments between neighboring tiles (as pairs of Voronoi vertex ids into
    ``vertex_coordinates``) and the config that produced it.
    """

    config: PlanetConfig
    tiles: Dict[int, Tile]
    plates: List["Plate"]
    vertex_coordinates: np.ndarray
    boundary_segments: Dict[Tuple[int, int], List[Tuple[int, int]]]
    generation_time_seconds: Optional[float] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def tile_count(self) -> int:
        return len(self.tiles)

    @property
    def radius(self) -> float:
        return self.config.radius

    def get_tile(self, tile_id: int) -> Optional[Tile]:
        return self.tiles.get(tile_id)

    def plate_members(self, plate_id: int) -> List[int]:
        return [tile.id for tile in self.tiles.values() if tile.plate == plate_id]

    def total_area(self) -> float:
        return float(sum(tile.area for tile in self.tiles.values()))

    @property
    def terrain_stats(self) -> Dict[str, int]:
        """Tile count per terrain id."""
        counts = Counter(tile.terrain.name for tile in self.tiles.values())
        return dict(sorted(counts.items()))

    def adjacency(self) -> Dict[int, List[int]]:
        return {tile_id: list(tile.neighbors) for tile_id, tile in self.tiles.items()}

    def to_dict(self, include_polygons: bool = True) -> Dict[str, Any]:
        """Read-only snapshot for rendering and other external consumers."""
        return {
            "id": self.id,
            "config": self.config.to_dict(),
            "generation_time_seconds": self.generation_time_seconds,
            "tiles": [
                self.tiles[tile_id].to_dict(include_polygon=include_polygons)
                for tile_id in sorted(self.tiles)
            ],
            "plates": [plate.to_dict() for plate in self.plates],
            "adjacency": {str(k): v for k, v in self.adjacency().items()},
        }
