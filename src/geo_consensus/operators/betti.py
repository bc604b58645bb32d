"""
Betti Numbers of a Vote Graph
=============================

Topological invariants of an arbitrary vertex/edge graph:

    β₀ = number of connected components   (partition count)
    β₁ = max(0, E - V + β₀)               (independent cycles, Euler identity)
    β₂ = 0                                (no void detection)

β₂ is ALWAYS 0. The consensus graphs handled here are 1-skeletons; nothing
computes enclosed voids. This is a deliberate simplification, not a general
topology engine.

EDGE CASES:
    - Self-loops and duplicate edges are collapsed before counting (E is the
      collapsed edge count).
    - Zero vertices → (0, 0, 0), reported as NOT partitioned even though there
      are zero components. Callers must special-case empty vote sets.

PARTITION:
    is_partitioned(β) = β₀ > 1
"""

import logging

import numpy as np
from dataclasses import dataclass
from scipy.sparse import csgraph
from typing import FrozenSet, Hashable, List, Sequence, Tuple, Union

from ..spec.constants import BETA_1_TOLERANCE
from ..spec.shapes import ShapeKind
from ..spec.structures import TopologicalInvariants
from .incidence import (
    index_vertices,
    collapse_edges,
    build_d0,
    build_adjacency,
    count_connected_components,
    cycle_space_dimension,
)

logger = logging.getLogger(__name__)


def _component_labels(n_vertices: int, edges: List[Tuple[int, int]]) -> Tuple[int, np.ndarray]:
    adj = build_adjacency(n_vertices, edges)
    n_comp, labels = csgraph.connected_components(adj, directed=False)
    return int(n_comp), labels


def compute_invariants(vertex_ids: Sequence[Hashable],
                       edges: Sequence[Tuple[Hashable, Hashable]],
                       strict: bool = False) -> TopologicalInvariants:
    """
    Compute (β₀, β₁, β₂) of a graph.

    Args:
        vertex_ids: vertex identifiers (repeats collapse to one vertex)
        edges: (id, id) pairs; unknown endpoints are ignored
        strict: If True, cross-check β₀ against an independent BFS and β₁
                against rank-nullity on d₀. Raises ValueError on mismatch.
                Builds a dense E × V d₀, so keep it to small graphs.

    Returns:
        TopologicalInvariants
    """
    v_to_idx = index_vertices(vertex_ids)
    V = len(v_to_idx)
    if V == 0:
        return TopologicalInvariants(0, 0, 0)

    idx_edges = collapse_edges(edges, v_to_idx)
    E = len(idx_edges)

    beta_0, _ = _component_labels(V, idx_edges)
    beta_1 = max(0, E - V + beta_0)
    beta_2 = 0

    if strict:
        d0 = build_d0(V, idx_edges)
        c_bfs = count_connected_components(d0)
        if c_bfs != beta_0:
            raise ValueError(f"β₀ mismatch: csgraph={beta_0}, BFS={c_bfs}")
        dim_h = cycle_space_dimension(d0)
        if dim_h != beta_1:
            raise ValueError(
                f"β₁ = {beta_1}, but dim ker(d₀ᵀ) = E - rank(d₀) = {dim_h}"
            )

    logger.debug("invariants: V=%d E=%d → β=(%d, %d, %d)", V, E, beta_0, beta_1, beta_2)
    return TopologicalInvariants(beta_0, beta_1, beta_2)


def is_partitioned(invariants: TopologicalInvariants) -> bool:
    return invariants.beta_0 > 1


def piece_count(invariants: TopologicalInvariants) -> int:
    return invariants.beta_0


def connected_components(vertex_ids: Sequence[Hashable],
                         edges: Sequence[Tuple[Hashable, Hashable]]) -> List[FrozenSet[Hashable]]:
    """
    Vertex-id sets of each connected piece.

    Pieces are ordered by the first vertex (in input order) they contain.
    """
    v_to_idx = index_vertices(vertex_ids)
    if not v_to_idx:
        return []

    idx_edges = collapse_edges(edges, v_to_idx)
    _, labels = _component_labels(len(v_to_idx), idx_edges)

    groups = {}
    for vid, idx in v_to_idx.items():
        groups.setdefault(int(labels[idx]), []).append(vid)
    # dict preserves insertion order = order of first appearance
    return [frozenset(members) for members in groups.values()]


def verify_invariants(invariants: TopologicalInvariants,
                      vertex_ids: Sequence[Hashable],
                      edges: Sequence[Tuple[Hashable, Hashable]]) -> bool:
    """
    Sanity-check Betti numbers against the raw graph.

    Checks:
        - all β ≥ 0
        - β₀ ≤ V
        - connected (β₀ = 1): |β₁ - (E - V + 1)| ≤ 1, with E the RAW edge
          count, so non-simple inputs get one unit of slack
    """
    b0, b1, b2 = invariants.as_tuple()
    if b0 < 0 or b1 < 0 or b2 < 0:
        return False

    n_vertices = len(vertex_ids)
    if b0 > n_vertices:
        return False

    if b0 == 1:
        expected = max(0, len(edges) - n_vertices + 1)
        if abs(b1 - expected) > BETA_1_TOLERANCE:
            return False

    return True


# =============================================================================
# SHAPE → SIMPLICIAL COMPLEX
# =============================================================================

@dataclass(frozen=True)
class SimplicialComplex:
    """Vertex ids + skeleton edges + triangular faces (index triples)."""
    vertex_ids: Tuple[Hashable, ...]
    edges: Tuple[Tuple[Hashable, Hashable], ...]
    faces: Tuple[Tuple[int, int, int], ...]


def build_simplicial_complex(kind: Union[ShapeKind, str],
                             vertex_ids: Sequence[Hashable]) -> SimplicialComplex:
    """
    Lay vertex_ids onto a shape's skeleton.

    Kinds with a fixed skeleton (see builders.SKELETON_BUILDERS) use its edges
    and fan-triangulated faces and require exactly V vertex ids. Any other
    kind becomes the complete graph on vertex_ids with no faces.

    Raises:
        ValueError: vertex count does not match a fixed skeleton
    """
    from ..builders.polyhedra import SKELETON_BUILDERS, triangulate

    vertex_ids = tuple(vertex_ids)
    try:
        resolved = ShapeKind(kind)
    except ValueError:
        resolved = None

    builder = SKELETON_BUILDERS.get(resolved)
    if builder is None:
        edges = tuple(
            (vertex_ids[i], vertex_ids[j])
            for i in range(len(vertex_ids))
            for j in range(i + 1, len(vertex_ids))
        )
        return SimplicialComplex(vertex_ids, edges, ())

    coords, idx_edges, faces = builder()
    if len(vertex_ids) != len(coords):
        raise ValueError(
            f"{resolved} requires exactly {len(coords)} vertices, got {len(vertex_ids)}"
        )
    edges = tuple((vertex_ids[i], vertex_ids[j]) for i, j in idx_edges)
    tris = tuple(tuple(int(x) for x in t) for t in triangulate(faces))
    return SimplicialComplex(vertex_ids, edges, tris)
