"""Tests for Fibonacci sphere sampling."""

import math

import numpy as np
import pytest

from py_planetgen.core.mulberry_prng import SeededRandom
from py_planetgen.core.planet import PlanetConfigError
from py_planetgen.core.sphere_points import angular_increment, generate_fibonacci_points


class TestAngularIncrement:

    def test_algorithms(self):
        assert angular_increment(1) == pytest.approx(math.pi * (math.sqrt(5) - 1))
        assert angular_increment(2) == pytest.approx(math.pi * (3 - math.sqrt(5)))

    def test_unknown_algorithm(self):
        with pytest.raises(PlanetConfigError):
            angular_increment(3)


class TestFibonacciPoints:
    """Test point generation."""

    def test_shape_and_poles(self):
        points = generate_fibonacci_points(100)
        assert points.shape == (100, 3)
        np.testing.assert_allclose(points[0], [0, 1, 0])
        np.testing.assert_allclose(points[-1], [0, -1, 0])

    def test_points_are_unit_vectors(self):
        points = generate_fibonacci_points(300, jitter=0.8, prng=SeededRandom("unit"))
        np.testing.assert_allclose(np.linalg.norm(points, axis=1), 1.0, atol=1e-12)

    def test_unjittered_layout(self):
        """Spiral points follow y = 1 - (i+1)*2/(N-1), theta = inc*i."""
        n = 12
        points = generate_fibonacci_points(n, algorithm=1)
        inc = angular_increment(1)
        for i in range(n - 2):
            y = 1 - (i + 1) * 2 / (n - 1)
            r = math.sqrt(1 - y * y)
            np.testing.assert_allclose(
                points[i + 1], [math.cos(inc * i) * r, y, math.sin(inc * i) * r], atol=1e-12
            )

    def test_algorithms_differ(self):
        a = generate_fibonacci_points(50, algorithm=1)
        b = generate_fibonacci_points(50, algorithm=2)
        assert not np.allclose(a, b)

    def test_zero_jitter_consumes_no_randomness(self):
        prng = SeededRandom("quiet")
        generate_fibonacci_points(100, jitter=0.0, prng=prng)
        assert prng.call_count == 0

    def test_jitter_draws_two_floats_per_non_pole_point(self):
        prng = SeededRandom("noisy")
        generate_fibonacci_points(100, jitter=0.5, prng=prng)
        assert prng.call_count == 2 * 98

    def test_jitter_keeps_poles_fixed(self):
        points = generate_fibonacci_points(50, jitter=1.0, prng=SeededRandom("poles"))
        np.testing.assert_allclose(points[0], [0, 1, 0])
        np.testing.assert_allclose(points[-1], [0, -1, 0])

    def test_jitter_is_deterministic(self):
        a = generate_fibonacci_points(80, jitter=0.5, prng=SeededRandom("same"))
        b = generate_fibonacci_points(80, jitter=0.5, prng=SeededRandom("same"))
        np.testing.assert_array_equal(a, b)

    @pytest.mark.parametrize("n", [0, 1, 3])
    def test_too_few_points(self, n):
        with pytest.raises(PlanetConfigError):
            generate_fibonacci_points(n)

    @pytest.mark.parametrize("jitter", [-0.1, 1.5])
    def test_jitter_out_of_range(self, jitter):
        with pytest.raises(PlanetConfigError):
            generate_fibonacci_points(20, jitter=jitter, prng=SeededRandom(1))
