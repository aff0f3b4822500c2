"""
Sphere triangulation via stereographic projection.

This module implements:
- Projection of the sample points from the south pole onto a plane
- Planar Delaunay triangulation with scipy
- Stitching the south pole back in with a fan over the planar hull
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import structlog
from scipy.spatial import Delaunay, QhullError

logger = structlog.get_logger()

SOUTH_POLE_THRESHOLD = -0.99999


@dataclass
class ProjectedPoints:
    """Planar images of the sphere points, minus the projection pole."""

    coordinates: np.ndarray  # (m, 2)
    original_indices: np.ndarray  # (m,) index into the sphere points
    pole_index: Optional[int] = None
    skipped: List[int] = field(default_factory=list)


@dataclass
class SphereTriangulation:
    """Closed triangle mesh over the sphere points (indices into ``points``)."""

    points: np.ndarray
    triangles: np.ndarray  # (t, 3) int
    hull: List[int] = field(default_factory=list)
    pole_index: Optional[int] = None
    stitched: bool = False

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)


def expected_triangle_count(n_points: int) -> int:
    """Triangle count of a closed triangulation of ``n_points`` on a sphere."""
    return 2 * n_points - 4


def stereographic_projection(points: np.ndarray) -> ProjectedPoints:
    """
    Project unit vectors from the south pole onto the y = 0 plane.

    (x, y, z) -> (x / (1 + y), z / (1 + y)). Points with
    y <= -0.99999 cannot be projected; the last of them is treated as the
    pole to stitch back in.
    """
    keep = points[:, 1] > SOUTH_POLE_THRESHOLD
    original_indices = np.flatnonzero(keep)
    skipped = np.flatnonzero(~keep).tolist()

    kept = points[keep]
    scale = 1.0 / (1.0 + kept[:, 1])
    coordinates = np.column_stack((kept[:, 0] * scale, kept[:, 2] * scale))

    if len(skipped) > 1:
        logger.warning(
            "Multiple points at the projection pole, only one can be stitched",
            skipped=skipped,
        )

    return ProjectedPoints(
        coordinates=coordinates,
        original_indices=original_indices,
        pole_index=skipped[-1] if skipped else None,
        skipped=skipped,
    )


def orient_counter_clockwise(simplices: np.ndarray, neighbors: np.ndarray, coordinates: np.ndarray):
    """
    Flip clockwise triangles in place.

    ``neighbors[t, k]`` is the triangle opposite vertex k, so the neighbor
    columns are swapped together with the vertex columns.
    """
    a = coordinates[simplices[:, 0]]
    b = coordinates[simplices[:, 1]]
    c = coordinates[simplices[:, 2]]
    cross = (b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0])
    clockwise = cross < 0

    simplices[clockwise, 1], simplices[clockwise, 2] = (
        simplices[clockwise, 2].copy(),
        simplices[clockwise, 1].copy(),
    )
    neighbors[clockwise, 1], neighbors[clockwise, 2] = (
        neighbors[clockwise, 2].copy(),
        neighbors[clockwise, 1].copy(),
    )
    return simplices, neighbors


def boundary_cycle(simplices: np.ndarray, neighbors: np.ndarray) -> List[int]:
    """
    Walk the boundary edges of a CCW triangulation as one CCW cycle.

    Unlike ``convex_hull`` this keeps points lying on a straight hull edge.
    Returns an empty list if the boundary is not a single closed loop.
    """
    successor = {}
    for triangle, opposite in zip(simplices, neighbors):
        for k in range(3):
            if opposite[k] == -1:
                a = int(triangle[(k + 1) % 3])
                b = int(triangle[(k + 2) % 3])
                successor[a] = b

    if not successor:
        return []

    start = min(successor)
    cycle = [start]
    current = successor[start]
    while current != start:
        if current not in successor or len(cycle) > len(successor):
            return []
        cycle.append(current)
        current = successor[current]

    if len(cycle) != len(successor):
        return []
    return cycle


def stitch_pole(triangles: np.ndarray, hull: List[int], pole_index: int) -> np.ndarray:
    """Close the mesh with one (pole, hull[j+1], hull[j]) triangle per hull edge."""
    hull_array = np.asarray(hull, dtype=np.int64)
    fan = np.column_stack((
        np.full(len(hull_array), pole_index, dtype=np.int64),
        np.roll(hull_array, -1),
        hull_array,
    ))
    return np.vstack((triangles, fan))


def triangulate_sphere(points: np.ndarray) -> SphereTriangulation:
    """
    Triangulate unit-sphere points into a closed mesh.

    Degenerate input never raises: a Qhull failure, a missing pole or a
    hull with fewer than 3 points is logged and the unstitched (possibly
    empty) mesh is returned.

    Args:
        points: Array of shape (n, 3) of unit vectors

    Returns:
        SphereTriangulation with triangles indexed into ``points``
    """
    n_points = len(points)
    projected = stereographic_projection(points)
    logger.info(
        "Projected sphere points",
        projected=len(projected.original_indices),
        pole_index=projected.pole_index,
    )

    empty = np.zeros((0, 3), dtype=np.int64)
    try:
        delaunay = Delaunay(projected.coordinates)
    except (QhullError, ValueError) as e:
        logger.warning("Planar triangulation failed", error=str(e))
        return SphereTriangulation(points=points, triangles=empty, pole_index=projected.pole_index)

    simplices = delaunay.simplices.astype(np.int64)
    neighbors = delaunay.neighbors.astype(np.int64)
    simplices, neighbors = orient_counter_clockwise(simplices, neighbors, projected.coordinates)

    used = np.unique(simplices)
    if len(used) < len(projected.original_indices):
        logger.warning(
            "Points dropped by planar triangulation",
            dropped=len(projected.original_indices) - len(used),
        )

    hull_local = boundary_cycle(simplices, neighbors)
    triangles = projected.original_indices[simplices]
    hull = [int(projected.original_indices[i]) for i in hull_local]

    if projected.pole_index is None:
        logger.warning("No pole point to stitch, returning open mesh")
        return SphereTriangulation(points=points, triangles=triangles, hull=hull)

    if len(hull) < 3:
        logger.warning("Not enough hull points to stitch the pole", hull_points=len(hull))
        return SphereTriangulation(
            points=points, triangles=triangles, hull=hull, pole_index=projected.pole_index
        )

    triangles = stitch_pole(triangles, hull, projected.pole_index)
    expected = expected_triangle_count(n_points)
    if len(triangles) != expected:
        logger.warning(
            "Unexpected triangle count after stitching",
            triangles=len(triangles),
            expected=expected,
        )

    logger.info("Triangulated sphere", triangles=len(triangles), hull_points=len(hull))
    return SphereTriangulation(
        points=points,
        triangles=triangles,
        hull=hull,
        pole_index=projected.pole_index,
        stitched=True,
    )
