"""
Spherical Voronoi dual of a closed triangle mesh.

This module implements:
- Triangle centers (normalized centroids) as Voronoi vertices
- Angular ordering of each point's incident triangle centers
- Spherical excess of the resulting cell polygons
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import structlog

from .triangulation import SphereTriangulation

logger = structlog.get_logger()

DEGENERATE_DENOMINATOR = 1e-9
DEGENERATE_TANGENT = 1e-6

_Z_AXIS = np.array([0.0, 0.0, 1.0])
_Y_AXIS = np.array([0.0, 1.0, 0.0])


@dataclass
class SphereVoronoiGraph:
    """
    Voronoi cells on the unit sphere.

    ``vertex_coordinates[t]`` is the center of triangle t. ``cell_vertices[i]``
    lists the triangle ids around point i in angular order, or is empty for
    points that have no cell. ``cell_steradians[i]`` is the cell area on the
    unit sphere.
    """

    points: np.ndarray
    triangles: np.ndarray
    vertex_coordinates: np.ndarray
    cell_vertices: List[List[int]] = field(default_factory=list)
    cell_steradians: Optional[np.ndarray] = None

    @property
    def n_cells(self) -> int:
        return len(self.points)

    def cell_polygon(self, cell_id: int) -> np.ndarray:
        return self.vertex_coordinates[self.cell_vertices[cell_id]]

    def has_cell(self, cell_id: int) -> bool:
        return len(self.cell_vertices[cell_id]) >= 3


def normalize_rows(vectors: np.ndarray) -> np.ndarray:
    lengths = np.linalg.norm(vectors, axis=1, keepdims=True)
    lengths[lengths == 0] = 1.0
    return vectors / lengths


def compute_triangle_centers(points: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """Centroid of each triangle pushed back onto the unit sphere."""
    if len(triangles) == 0:
        return np.zeros((0, 3))
    centroids = points[triangles].sum(axis=1) / 3.0
    return normalize_rows(centroids)


def build_vertex_triangles(n_points: int, triangles: np.ndarray) -> List[List[int]]:
    """Unique incident triangle ids per point, in first-seen order."""
    incident = [[] for _ in range(n_points)]
    for t, triangle in enumerate(triangles):
        for v in triangle:
            bucket = incident[int(v)]
            if t not in bucket:
                bucket.append(t)
    return incident


def tangent_basis(normal: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Tangent plane basis at ``normal``.

    tangent = z × n, falling back to y × n when n is (anti)parallel to z;
    bitangent = n × tangent.
    """
    tangent = np.cross(_Z_AXIS, normal)
    if np.dot(tangent, tangent) < DEGENERATE_TANGENT:
        tangent = np.cross(_Y_AXIS, normal)
    tangent = tangent / np.linalg.norm(tangent)
    bitangent = np.cross(normal, tangent)
    return tangent, bitangent


def order_cell_vertices(normal: np.ndarray, triangle_ids: List[int], centers: np.ndarray) -> List[int]:
    """Sort triangle ids by the angle of their centers around ``normal``."""
    tangent, bitangent = tangent_basis(normal)
    ids = np.asarray(triangle_ids, dtype=np.int64)
    vectors = centers[ids]
    projected = vectors - np.outer(vectors @ normal, normal)
    angles = np.arctan2(projected @ bitangent, projected @ tangent)
    return ids[np.argsort(angles, kind="stable")].tolist()


def spherical_triangle_excess(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
    """
    Spherical excess (solid angle) of the unit-sphere triangle a, b, c.

    E = 2·atan2(|a·(b×c)|, 1 + a·b + b·c + c·a); near-zero denominators
    count as a degenerate triangle with no area.
    """
    triple = float(np.dot(a, np.cross(b, c)))
    denominator = 1.0 + float(np.dot(a, b)) + float(np.dot(b, c)) + float(np.dot(c, a))
    if abs(denominator) < DEGENERATE_DENOMINATOR:
        return 0.0
    return 2.0 * float(np.arctan2(abs(triple), denominator))


def spherical_polygon_excess(center: np.ndarray, polygon: np.ndarray) -> float:
    """Area of a cell as a fan of triangles from ``center`` over its polygon."""
    k = len(polygon)
    if k < 3:
        return 0.0

    a = np.broadcast_to(center, polygon.shape)
    b = polygon
    c = np.roll(polygon, -1, axis=0)
    triple = np.einsum("ij,ij->i", a, np.cross(b, c))
    denominator = (
        1.0
        + np.einsum("ij,ij->i", a, b)
        + np.einsum("ij,ij->i", b, c)
        + np.einsum("ij,ij->i", c, a)
    )
    excess = 2.0 * np.arctan2(np.abs(triple), denominator)
    excess[np.abs(denominator) < DEGENERATE_DENOMINATOR] = 0.0
    return float(excess.sum())


def build_spherical_voronoi(triangulation: SphereTriangulation) -> SphereVoronoiGraph:
    """
    Build the Voronoi dual of a sphere triangulation.

    Points with fewer than three incident triangles get no cell; a warning
    is logged for each of them.

    Args:
        triangulation: Closed mesh from ``triangulate_sphere``

    Returns:
        SphereVoronoiGraph with ordered cell vertices and unit-sphere areas
    """
    points = triangulation.points
    triangles = triangulation.triangles
    n_points = len(points)

    centers = compute_triangle_centers(points, triangles)
    incident = build_vertex_triangles(n_points, triangles)

    cell_vertices: List[List[int]] = []
    steradians = np.zeros(n_points)
    missing = 0

    for i in range(n_points):
        triangle_ids = incident[i]
        if len(triangle_ids) < 3:
            logger.warning(
                "Point has too few incident triangles for a cell",
                point=i,
                incident=len(triangle_ids),
            )
            cell_vertices.append([])
            missing += 1
            continue

        normal = points[i] / np.linalg.norm(points[i])
        ordered = order_cell_vertices(normal, triangle_ids, centers)
        cell_vertices.append(ordered)
        steradians[i] = spherical_polygon_excess(normal, centers[ordered])

    logger.info(
        "Built spherical Voronoi cells",
        cells=n_points - missing,
        missing=missing,
        total_steradians=float(steradians.sum()),
    )
    return SphereVoronoiGraph(
        points=points,
        triangles=triangles,
        vertex_coordinates=centers,
        cell_vertices=cell_vertices,
        cell_steradians=steradians,
    )
