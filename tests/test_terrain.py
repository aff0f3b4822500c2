"""Tests for terrain classification."""

import math

import numpy as np
import pytest
from structlog.testing import capture_logs

from py_planetgen.core.planet import Tile
from py_planetgen.core.terrain import (
    DEFAULT_TERRAIN_RULES,
    TERRAIN_COLORS,
    TERRAIN_NAMES,
    Interval,
    TerrainClassifier,
    TerrainRule,
    TerrainType,
    TileConditions,
    is_water_terrain,
)


@pytest.fixture
def classifier():
    return TerrainClassifier()


class TestInterval:

    def test_closed_bounds(self):
        interval = Interval(0.1, 0.5)
        assert interval.contains(0.1)
        assert interval.contains(0.5)
        assert not interval.contains(0.50001)

    def test_unbounded_sides(self):
        assert Interval(high=0.0).contains(-1e9)
        assert Interval(low=0.0).contains(1e9)
        assert Interval().contains(0.0)

    def test_nan_never_matches(self):
        assert not Interval().contains(math.nan)


class TestCatalogue:

    def test_every_terrain_has_name_and_color(self):
        for terrain in TerrainType:
            assert terrain in TERRAIN_NAMES
            assert TERRAIN_COLORS[terrain].startswith("#")

    def test_water_terrains(self):
        assert is_water_terrain(TerrainType.OCEAN)
        assert is_water_terrain(TerrainType.LAKE)
        assert not is_water_terrain(TerrainType.LAKESHORE)
        assert not is_water_terrain(TerrainType.ICE)

    def test_rules_sorted_stably(self, classifier):
        priorities = [rule.priority for rule in classifier.rules]
        assert priorities == sorted(priorities)
        same = [r.terrain for r in classifier.rules if r.priority == 15]
        assert same == [TerrainType.TEMPERATE_DESERT, TerrainType.SUBTROPICAL_DESERT]


class TestClassification:
    """Test representative tiles."""

    @pytest.mark.parametrize("conditions,expected", [
        (TileConditions(elevation=0.4, moisture=0.6, temperature=0.5), TerrainType.FOREST),
        (TileConditions(elevation=0.1, moisture=0.1, temperature=0.8), TerrainType.SUBTROPICAL_DESERT),
        (TileConditions(elevation=0.1, moisture=0.1, temperature=0.4), TerrainType.TEMPERATE_DESERT),
        (TileConditions(elevation=0.9, moisture=0.3, temperature=0.2), TerrainType.SNOW),
        (TileConditions(elevation=0.3, moisture=0.5, temperature=0.05), TerrainType.ICE),
        (TileConditions(elevation=-0.5, moisture=0.5, temperature=0.5, is_ocean_connected=True), TerrainType.OCEAN),
        (TileConditions(elevation=-0.6, moisture=0.5, temperature=0.5), TerrainType.LAKE),
        (TileConditions(elevation=0.0, moisture=0.5, temperature=0.5, borders_lake=True), TerrainType.LAKESHORE),
        (TileConditions(elevation=0.0, moisture=0.2, temperature=0.5), TerrainType.BEACH),
        (TileConditions(elevation=0.05, moisture=0.75, temperature=0.5), TerrainType.MARSH),
        (TileConditions(elevation=0.4, moisture=0.9, temperature=0.8), TerrainType.JUNGLE),
        (TileConditions(elevation=0.4, moisture=0.9, temperature=0.5), TerrainType.RAINFOREST),
        (TileConditions(elevation=0.4, moisture=0.9, temperature=0.2), TerrainType.TAIGA),
        (TileConditions(elevation=0.3, moisture=0.3, temperature=0.25), TerrainType.TUNDRA),
        (TileConditions(elevation=0.6, moisture=0.05, temperature=0.5), TerrainType.BARE),
        (TileConditions(elevation=0.2, moisture=0.01, temperature=0.95), TerrainType.SCORCHED),
        (TileConditions(elevation=0.2, moisture=0.55, temperature=0.6), TerrainType.PLAINS),
        (TileConditions(elevation=0.45, moisture=0.3, temperature=0.6), TerrainType.GRASSLAND),
    ])
    def test_examples(self, classifier, conditions, expected):
        assert classifier.classify(conditions) == expected

    def test_lake_requires_disconnection(self, classifier):
        connected = TileConditions(elevation=-0.6, moisture=0.5, temperature=0.5, is_ocean_connected=True)
        assert classifier.classify(connected) == TerrainType.OCEAN

    def test_lakeshore_needs_low_elevation(self, classifier):
        high = TileConditions(elevation=0.4, moisture=0.6, temperature=0.5, borders_lake=True)
        assert classifier.classify(high) == TerrainType.FOREST

    def test_fallback_warns_and_uses_grassland(self):
        ocean_only = [TerrainRule(TerrainType.OCEAN, 0, elevation=Interval(high=-0.05), requires_ocean=True)]
        classifier = TerrainClassifier(ocean_only)
        with capture_logs() as logs:
            result = classifier.classify(TileConditions(elevation=0.3, moisture=0.5, temperature=0.5), tile_id=9)
        assert result == TerrainType.GRASSLAND
        assert classifier.fallback_count == 1
        assert any(e["log_level"] == "warning" and e["tile_id"] == 9 for e in logs)

    def test_default_rules_cover_every_state(self, classifier):
        """No reachable combination of fields falls through the default table."""
        grid = np.linspace(0.0, 1.0, 21)
        for elevation in np.linspace(-1.0, 1.0, 41):
            below = elevation < -0.05
            for moisture in grid:
                for temperature in grid:
                    for ocean, lake_neighbor in ((below, False), (False, True), (False, False)):
                        if not below and ocean:
                            continue
                        conditions = TileConditions(
                            elevation=float(elevation),
                            moisture=float(moisture),
                            temperature=float(temperature),
                            is_ocean_connected=ocean,
                            borders_lake=lake_neighbor,
                        )
                        assert classifier.match(conditions) is not None, conditions


class TestClassifyTiles:

    def test_assigns_terrain_in_place(self, classifier):
        tiles = {
            0: Tile(id=0, center=(1.0, 0.0, 0.0), neighbors=[1], elevation=-0.6, moisture=0.5, temperature=0.5),
            1: Tile(id=1, center=(0.0, 1.0, 0.0), neighbors=[0, 2], elevation=0.0, moisture=0.5, temperature=0.5),
            2: Tile(id=2, center=(0.0, 0.0, 1.0), neighbors=[1], elevation=0.4, moisture=0.6, temperature=0.5),
        }
        classifier.classify_tiles(tiles)
        assert tiles[0].terrain == TerrainType.LAKE
        assert tiles[1].terrain == TerrainType.LAKESHORE
        assert tiles[2].terrain == TerrainType.FOREST
        assert classifier.fallback_count == 0
