"""Shared fixtures for planet generation tests."""

import pytest

from py_planetgen.core.adjacency import build_adjacency
from py_planetgen.core.generator import build_tiles
from py_planetgen.core.mulberry_prng import SeededRandom
from py_planetgen.core.sphere_points import generate_fibonacci_points
from py_planetgen.core.triangulation import triangulate_sphere
from py_planetgen.core.voronoi_sphere import build_spherical_voronoi


def tessellate(n, jitter=0.0, algorithm=1, seed="tests", radius=1.0):
    """Run the geometry stages and return (tiles, prng) ready for plate assignment."""
    prng = SeededRandom(seed)
    points = generate_fibonacci_points(n, jitter, algorithm, prng)
    graph = build_spherical_voronoi(triangulate_sphere(points))
    adjacency = build_adjacency(graph)
    return build_tiles(graph, adjacency.neighbors, radius), prng


@pytest.fixture
def tile_map():
    """500 jittered tiles on the unit sphere plus the generator that jittered them."""
    return tessellate(500, jitter=0.5, seed="tile_map")


@pytest.fixture
def tessellator():
    """Factory for tile maps of any size."""
    return tessellate
