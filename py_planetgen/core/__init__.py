"""
Core planet generation functionality.
"""

from .mulberry_prng import SeededRandom
from .planet import Planet, PlanetConfig, PlanetConfigError, Tile
from .plates import Plate, PlateAssigner, TectonicsOptions
from .climate import ClimateModel, ClimateOptions
from .terrain import TerrainType, TerrainRule, TerrainClassifier, Interval, DEFAULT_TERRAIN_RULES
from .generator import generate_planet

__all__ = ['SeededRandom', 'Planet', 'PlanetConfig', 'PlanetConfigError', 'Tile',
           'Plate', 'PlateAssigner', 'TectonicsOptions', 'ClimateModel', 'ClimateOptions',
           'TerrainType', 'TerrainRule', 'TerrainClassifier', 'Interval', 'DEFAULT_TERRAIN_RULES',
           'generate_planet']
