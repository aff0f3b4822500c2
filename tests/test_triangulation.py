"""Tests for stereographic triangulation and pole stitching."""

from collections import Counter

import numpy as np
import pytest
from structlog.testing import capture_logs

from py_planetgen.core.mulberry_prng import SeededRandom
from py_planetgen.core.sphere_points import generate_fibonacci_points
from py_planetgen.core.triangulation import (
    boundary_cycle,
    expected_triangle_count,
    orient_counter_clockwise,
    stereographic_projection,
    stitch_pole,
    triangulate_sphere,
)


def edge_counts(triangles):
    counts = Counter()
    for a, b, c in triangles:
        for u, v in ((a, b), (b, c), (c, a)):
            counts[(min(u, v), max(u, v))] += 1
    return counts


class TestStereographicProjection:

    def test_pole_is_skipped(self):
        points = generate_fibonacci_points(20)
        projected = stereographic_projection(points)
        assert projected.pole_index == 19
        assert len(projected.coordinates) == 19
        assert 19 not in projected.original_indices

    def test_projection_formula(self):
        points = np.array([[0.6, 0.0, 0.8], [0.0, 1.0, 0.0], [0.0, -1.0, 0.0]])
        projected = stereographic_projection(points)
        np.testing.assert_allclose(projected.coordinates, [[0.6, 0.8], [0.0, 0.0]])
        assert projected.original_indices.tolist() == [0, 1]


class TestOrientation:

    def test_clockwise_triangles_are_flipped_with_neighbors(self):
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        simplices = np.array([[0, 2, 1]])
        neighbors = np.array([[-1, 7, 8]])
        simplices, neighbors = orient_counter_clockwise(simplices, neighbors, coords)
        assert simplices.tolist() == [[0, 1, 2]]
        assert neighbors.tolist() == [[-1, 8, 7]]

    def test_boundary_cycle_of_square(self):
        # two CCW triangles forming the unit square
        simplices = np.array([[0, 1, 2], [0, 2, 3]])
        neighbors = np.array([[-1, 1, -1], [-1, -1, 0]])
        assert boundary_cycle(simplices, neighbors) == [0, 1, 2, 3]

    def test_stitch_pole_fan(self):
        triangles = np.zeros((0, 3), dtype=np.int64)
        fan = stitch_pole(triangles, [1, 2, 3], 9)
        assert fan.tolist() == [[9, 2, 1], [9, 3, 2], [9, 1, 3]]


class TestTriangulateSphere:
    """Test the closed mesh."""

    @pytest.mark.parametrize("n", [4, 12, 100, 1000])
    def test_triangle_count_is_2n_minus_4(self, n):
        points = generate_fibonacci_points(n)
        mesh = triangulate_sphere(points)
        assert mesh.stitched
        assert mesh.triangle_count == expected_triangle_count(n) == 2 * n - 4

    @pytest.mark.parametrize("algorithm", [1, 2])
    def test_jittered_mesh_is_closed(self, algorithm):
        points = generate_fibonacci_points(500, 0.5, algorithm, SeededRandom("closed"))
        mesh = triangulate_sphere(points)
        assert mesh.triangle_count == 2 * 500 - 4
        # every edge of a closed surface borders exactly two triangles
        assert set(edge_counts(mesh.triangles).values()) == {2}

    def test_all_points_used(self):
        points = generate_fibonacci_points(200, 0.3, 1, SeededRandom("used"))
        mesh = triangulate_sphere(points)
        assert set(np.unique(mesh.triangles).tolist()) == set(range(200))

    def test_hull_contains_points_nearest_the_pole(self):
        points = generate_fibonacci_points(100)
        mesh = triangulate_sphere(points)
        assert 98 in mesh.hull
        assert len(mesh.hull) >= 3

    def test_degenerate_input_warns_instead_of_raising(self):
        points = np.array([[0.0, 1.0, 0.0]] * 5 + [[0.0, -1.0, 0.0]])
        with capture_logs() as logs:
            mesh = triangulate_sphere(points)
        assert not mesh.stitched
        assert any(entry["log_level"] == "warning" for entry in logs)

    def test_missing_pole_returns_open_mesh(self):
        points = generate_fibonacci_points(30)[:-1]
        with capture_logs() as logs:
            mesh = triangulate_sphere(points)
        assert not mesh.stitched
        assert mesh.triangle_count > 0
        assert any("No pole" in entry["event"] for entry in logs)
