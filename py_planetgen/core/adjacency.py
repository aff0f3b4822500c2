"""Tile adjacency from shared Voronoi cell edges."""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Tuple

import numpy as np
import structlog

from .voronoi_sphere import SphereVoronoiGraph

logger = structlog.get_logger()

COORDINATE_DECIMALS = 5
KEY_MODES = ("index", "coordinates")


@dataclass
class TileAdjacency:
    """Symmetric neighbor lists plus the boundary segments between tiles."""

    neighbors: List[List[int]]
    boundary_segments: Dict[Tuple[int, int], List[Tuple[int, int]]] = field(default_factory=dict)

    def degree(self, tile_id: int) -> int:
        return len(self.neighbors[tile_id])

    def is_symmetric(self) -> bool:
        return all(
            tile_id in self.neighbors[other]
            for tile_id, others in enumerate(self.neighbors)
            for other in others
        )


def edge_key_by_index(u: int, v: int) -> Tuple[int, int]:
    return (u, v) if u < v else (v, u)


def edge_key_by_coordinates(a: np.ndarray, b: np.ndarray) -> Tuple[Tuple[float, ...], Tuple[float, ...]]:
    """Order-independent key from endpoint coordinates rounded to 5 decimals."""
    ka = tuple(round(float(x), COORDINATE_DECIMALS) for x in a)
    kb = tuple(round(float(x), COORDINATE_DECIMALS) for x in b)
    return (ka, kb) if ka <= kb else (kb, ka)


def build_adjacency(graph: SphereVoronoiGraph, key_mode: str = "index") -> TileAdjacency:
    """
    Find neighboring tiles by matching polygon edges.

    Two cells are neighbors when the same edge appears in both polygons.
    Edges are identified by their Voronoi vertex ids (``key_mode="index"``)
    or, when ids are not shared, by rounded endpoint coordinates
    (``key_mode="coordinates"``).

    Args:
        graph: Spherical Voronoi graph
        key_mode: "index" or "coordinates"

    Returns:
        TileAdjacency with sorted neighbor lists
    """
    if key_mode not in KEY_MODES:
        raise ValueError(f"key_mode must be one of {KEY_MODES}, got {key_mode!r}")

    n_cells = graph.n_cells
    neighbor_sets = [set() for _ in range(n_cells)]
    segments: Dict[Tuple[int, int], List[Tuple[int, int]]] = defaultdict(list)
    edge_owner: Dict[Hashable, int] = {}
    coordinates = graph.vertex_coordinates

    for tile_id, ring in enumerate(graph.cell_vertices):
        k = len(ring)
        if k < 3:
            continue
        for j in range(k):
            u = ring[j]
            v = ring[(j + 1) % k]
            if key_mode == "index":
                key = edge_key_by_index(u, v)
            else:
                key = edge_key_by_coordinates(coordinates[u], coordinates[v])

            owner = edge_owner.get(key)
            if owner is None:
                edge_owner[key] = tile_id
            elif owner != tile_id:
                neighbor_sets[tile_id].add(owner)
                neighbor_sets[owner].add(tile_id)
                segments[edge_key_by_index(owner, tile_id)].append((u, v))

    neighbors = [sorted(s) for s in neighbor_sets]
    isolated = [i for i, n in enumerate(neighbors) if not n]
    if isolated:
        logger.warning("Tiles without neighbors", count=len(isolated))

    logger.info(
        "Built tile adjacency",
        tiles=n_cells,
        edges=len(segments),
        key_mode=key_mode,
    )
    return TileAdjacency(neighbors=neighbors, boundary_segments=dict(segments))
