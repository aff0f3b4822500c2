"""
Terrain classification from per-tile physical fields.

This module implements:
- The terrain catalogue (ids, display names, base categories)
- Closed intervals with infinite sentinels for rule bounds
- A priority-ordered decision table, first full match wins
"""

import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Sequence, Tuple

import structlog

if TYPE_CHECKING:
    from .planet import Tile

logger = structlog.get_logger()

SEA_LEVEL = -0.05


class TerrainType(IntEnum):
    """Terrain ids in catalogue order."""

    OCEAN = 0
    LAKE = 1
    LAKESHORE = 2
    ICE = 3
    SNOW = 4
    TUNDRA = 5
    BARE = 6
    SCORCHED = 7
    BEACH = 8
    MARSH = 9
    TEMPERATE_DESERT = 10
    SUBTROPICAL_DESERT = 11
    GRASSLAND = 12
    PLAINS = 13
    TAIGA = 14
    JUNGLE = 15
    RAINFOREST = 16
    FOREST = 17


class BaseType(str, Enum):
    WATER = "WATER"
    LAND = "LAND"
    ICE = "ICE"


TERRAIN_NAMES = {
    TerrainType.OCEAN: "Ocean",
    TerrainType.LAKE: "Lake",
    TerrainType.LAKESHORE: "Lakeshore",
    TerrainType.ICE: "Ice",
    TerrainType.SNOW: "Snow",
    TerrainType.TUNDRA: "Tundra",
    TerrainType.BARE: "Bare Rock/Soil",
    TerrainType.SCORCHED: "Scorched",
    TerrainType.BEACH: "Beach",
    TerrainType.MARSH: "Marsh",
    TerrainType.TEMPERATE_DESERT: "Temperate Desert",
    TerrainType.SUBTROPICAL_DESERT: "Subtropical Desert",
    TerrainType.GRASSLAND: "Grassland",
    TerrainType.PLAINS: "Plains",
    TerrainType.TAIGA: "Taiga",
    TerrainType.JUNGLE: "Jungle",
    TerrainType.RAINFOREST: "Rainforest",
    TerrainType.FOREST: "Forest",
}

TERRAIN_BASE_TYPES = {
    TerrainType.OCEAN: BaseType.WATER,
    TerrainType.LAKE: BaseType.WATER,
    TerrainType.ICE: BaseType.ICE,
    TerrainType.SNOW: BaseType.ICE,
}

# Default display colors; consumers may shade by elevation.
TERRAIN_COLORS = {
    TerrainType.OCEAN: "#1d4179",
    TerrainType.LAKE: "#336699",
    TerrainType.LAKESHORE: "#225588",
    TerrainType.ICE: "#ffffff",
    TerrainType.SNOW: "#ffffff",
    TerrainType.TUNDRA: "#bbbbaa",
    TerrainType.BARE: "#888888",
    TerrainType.SCORCHED: "#555555",
    TerrainType.BEACH: "#a09077",
    TerrainType.MARSH: "#2f6666",
    TerrainType.TEMPERATE_DESERT: "#c9d29b",
    TerrainType.SUBTROPICAL_DESERT: "#d2b98b",
    TerrainType.GRASSLAND: "#88aa55",
    TerrainType.PLAINS: "#9acd32",
    TerrainType.TAIGA: "#99aa77",
    TerrainType.JUNGLE: "#2e8b57",
    TerrainType.RAINFOREST: "#448855",
    TerrainType.FOREST: "#556b2f",
}


def base_type(terrain: TerrainType) -> BaseType:
    return TERRAIN_BASE_TYPES.get(terrain, BaseType.LAND)


def is_water_terrain(terrain: TerrainType) -> bool:
    return base_type(terrain) is BaseType.WATER


@dataclass(frozen=True)
class Interval:
    """Closed interval; open ends are represented by infinities."""

    low: float = -math.inf
    high: float = math.inf

    def contains(self, value: float) -> bool:
        # NaN never matches
        return self.low <= value <= self.high


UNBOUNDED = Interval()


@dataclass(frozen=True)
class TileConditions:
    """The inputs a terrain rule is evaluated against."""

    elevation: float
    moisture: float
    temperature: float
    is_ocean_connected: bool = False
    borders_lake: bool = False
    sea_level: float = SEA_LEVEL

    @property
    def is_lake(self) -> bool:
        return not self.is_ocean_connected and self.elevation < self.sea_level


@dataclass(frozen=True)
class TerrainRule:
    """
    One row of the terrain decision table.

    Lower priority values are evaluated first. ``requires_ocean`` restricts
    the rule to ocean-connected tiles, ``requires_lake`` to below-sea-level
    tiles cut off from the ocean, and ``requires_lake_neighbor`` to tiles
    bordering such a lake.
    """

    terrain: TerrainType
    priority: int
    elevation: Interval = UNBOUNDED
    moisture: Interval = UNBOUNDED
    temperature: Interval = UNBOUNDED
    requires_lake: bool = False
    requires_ocean: bool = False
    requires_lake_neighbor: bool = False

    def matches(self, conditions: TileConditions) -> bool:
        if not self.elevation.contains(conditions.elevation):
            return False
        if not self.moisture.contains(conditions.moisture):
            return False
        if not self.temperature.contains(conditions.temperature):
            return False
        if self.requires_lake and not conditions.is_lake:
            return False
        if self.requires_ocean and not conditions.is_ocean_connected:
            return False
        if self.requires_lake_neighbor and not conditions.borders_lake:
            return False
        return True


# Water first, then ice, then land biomes from specific to general.
# Together the land rows cover every moisture/temperature pair in [0, 1].
DEFAULT_TERRAIN_RULES: Tuple[TerrainRule, ...] = (
    TerrainRule(TerrainType.OCEAN, 0, elevation=Interval(high=SEA_LEVEL), requires_ocean=True),
    TerrainRule(TerrainType.LAKE, 2, elevation=Interval(high=SEA_LEVEL), requires_lake=True),
    TerrainRule(TerrainType.ICE, 5, temperature=Interval(high=0.1), moisture=Interval(low=0.1)),
    TerrainRule(TerrainType.SNOW, 6, elevation=Interval(low=0.7), temperature=Interval(high=0.25)),
    TerrainRule(
        TerrainType.LAKESHORE, 10,
        elevation=Interval(high=0.05), requires_lake_neighbor=True,
    ),
    TerrainRule(
        TerrainType.TUNDRA, 10,
        elevation=Interval(low=0.2), temperature=Interval(high=0.3),
        moisture=Interval(0.05, 0.5),
    ),
    TerrainRule(TerrainType.BARE, 11, elevation=Interval(low=0.5), moisture=Interval(high=0.1)),
    TerrainRule(TerrainType.SCORCHED, 12, temperature=Interval(low=0.9), moisture=Interval(high=0.05)),
    TerrainRule(TerrainType.BEACH, 13, elevation=Interval(SEA_LEVEL, 0.05), moisture=Interval(high=0.3)),
    TerrainRule(TerrainType.MARSH, 14, elevation=Interval(SEA_LEVEL, 0.1), moisture=Interval(low=0.7)),
    TerrainRule(
        TerrainType.TEMPERATE_DESERT, 15,
        temperature=Interval(high=0.65), moisture=Interval(high=0.2),
    ),
    TerrainRule(
        TerrainType.SUBTROPICAL_DESERT, 15,
        temperature=Interval(low=0.65), moisture=Interval(high=0.2),
    ),
    TerrainRule(TerrainType.GRASSLAND, 20, moisture=Interval(0.18, 0.5)),
    TerrainRule(TerrainType.PLAINS, 21, moisture=Interval(0.25, 0.6), elevation=Interval(high=0.3)),
    TerrainRule(TerrainType.JUNGLE, 28, temperature=Interval(low=0.65), moisture=Interval(low=0.65)),
    TerrainRule(TerrainType.RAINFOREST, 29, temperature=Interval(0.3, 1.0), moisture=Interval(0.65, 1.0)),
    TerrainRule(TerrainType.TAIGA, 30, temperature=Interval(0.1, 0.4), moisture=Interval(0.4, 1.0)),
    TerrainRule(TerrainType.FOREST, 35, moisture=Interval(0.5, 0.8)),
)


class TerrainClassifier:
    """Maps tile fields to a terrain id through an ordered rule table."""

    def __init__(
        self,
        rules: Sequence[TerrainRule] = DEFAULT_TERRAIN_RULES,
        default_terrain: TerrainType = TerrainType.GRASSLAND,
        sea_level: float = SEA_LEVEL,
    ):
        # sorted() is stable, so equal priorities keep table order
        self.rules = tuple(sorted(rules, key=lambda rule: rule.priority))
        self.default_terrain = default_terrain
        self.sea_level = sea_level
        self.fallback_count = 0

    def match(self, conditions: TileConditions) -> Optional[TerrainRule]:
        for rule in self.rules:
            if rule.matches(conditions):
                return rule
        return None

    def classify(self, conditions: TileConditions, tile_id: Optional[int] = None) -> TerrainType:
        rule = self.match(conditions)
        if rule is not None:
            return rule.terrain

        self.fallback_count += 1
        logger.warning(
            "No terrain rule matched, using default terrain",
            tile_id=tile_id,
            default=self.default_terrain.name,
            elevation=conditions.elevation,
            moisture=conditions.moisture,
            temperature=conditions.temperature,
        )
        return self.default_terrain

    def conditions_for(self, tile: "Tile", tiles: Mapping[int, "Tile"]) -> TileConditions:
        borders_lake = any(
            self._is_lake(tiles[neighbor_id])
            for neighbor_id in tile.neighbors
            if neighbor_id in tiles
        )
        return TileConditions(
            elevation=tile.elevation,
            moisture=tile.moisture,
            temperature=tile.temperature,
            is_ocean_connected=tile.is_ocean_connected,
            borders_lake=borders_lake,
            sea_level=self.sea_level,
        )

    def _is_lake(self, tile: "Tile") -> bool:
        return not tile.is_ocean_connected and tile.elevation < self.sea_level

    def classify_tiles(self, tiles: Mapping[int, "Tile"], tile_ids: Optional[Iterable[int]] = None) -> None:
        """Assign ``terrain`` on every tile in place."""
        logger.info("Classifying terrain", tiles=len(tiles))
        self.fallback_count = 0
        for tile_id in tile_ids if tile_ids is not None else sorted(tiles):
            tile = tiles[tile_id]
            tile.terrain = self.classify(self.conditions_for(tile, tiles), tile_id=tile.id)

        if self.fallback_count:
            logger.warning("Terrain rule coverage gaps", fallback_tiles=self.fallback_count)
        logger.info("Terrain classified")
