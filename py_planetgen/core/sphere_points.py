"""Fibonacci (golden-angle) point sampling on the unit sphere."""

import math
from typing import Optional

import numpy as np
import structlog

from .mulberry_prng import SeededRandom
from .planet import SUPPORTED_ALGORITHMS, PlanetConfigError

logger = structlog.get_logger()

NORTH_POLE = (0.0, 1.0, 0.0)
SOUTH_POLE = (0.0, -1.0, 0.0)


def angular_increment(algorithm: int) -> float:
    """
    Angle between consecutive spiral points.

    Algorithm 1 uses π(√5 − 1), algorithm 2 the classic golden angle π(3 − √5).
    """
    if algorithm == 1:
        return math.pi * (math.sqrt(5.0) - 1.0)
    if algorithm == 2:
        return math.pi * (3.0 - math.sqrt(5.0))
    raise PlanetConfigError(
        f"algorithm must be one of {SUPPORTED_ALGORITHMS}, got {algorithm}"
    )


def generate_fibonacci_points(
    n: int,
    jitter: float = 0.0,
    algorithm: int = 1,
    prng: Optional[SeededRandom] = None,
) -> np.ndarray:
    """
    Generate ``n`` quasi-uniform unit vectors.

    Index 0 is the north pole and index n-1 the south pole; the n-2 points
    in between follow the spiral. With jitter > 0 every non-pole point is
    pushed sideways in x/z and renormalized, drawing two floats from
    ``prng`` per point (angle first, then amount).

    Args:
        n: Number of points (at least 4)
        jitter: Perturbation amount in [0, 1]
        algorithm: Spiral increment variant, 1 or 2
        prng: Generator consumed only when jitter > 0

    Returns:
        Array of shape (n, 3)
    """
    if n < 4:
        raise PlanetConfigError(f"point count must be at least 4, got {n}")
    if not 0.0 <= jitter <= 1.0:
        raise PlanetConfigError(f"jitter must be within [0, 1], got {jitter}")
    increment = angular_increment(algorithm)

    if jitter > 0 and prng is None:
        raise ValueError("a SeededRandom is required when jitter > 0")

    points = np.empty((n, 3), dtype=np.float64)
    points[0] = NORTH_POLE
    points[n - 1] = SOUTH_POLE

    step = 2.0 / (n - 1)
    for i in range(n - 2):
        y = 1.0 - (i + 1) * step
        r = math.sqrt(max(0.0, 1.0 - y * y))
        theta = increment * i
        x = math.cos(theta) * r
        z = math.sin(theta) * r

        if jitter > 0:
            angle = prng.next_float() * 2.0 * math.pi
            amount = prng.next_float() * jitter
            x += math.cos(angle) * amount
            z += math.sin(angle) * amount
            length = math.sqrt(x * x + y * y + z * z)
            x, y, z = x / length, y / length, z / length

        points[i + 1] = (x, y, z)

    logger.info("Generated sphere points", count=n, jitter=jitter, algorithm=algorithm)
    return points
