"""
Incidence Matrix of a Vote Graph
================================

Pure combinatorics - NO consensus semantics beyond the agreement edge rule.

DEFINITIONS:
    d₀: E × V  oriented edge-vertex incidence
        d₀[e, i] = -1, d₀[e, j] = +1 for edge e = (i, j), i < j

    A[i, j] = A[j, i] = 1 for edge (i, j)   (undirected adjacency, sparse)

CYCLE SPACE:
    dim ker(d₀ᵀ) = E - rank(d₀) = E - V + c

    where c = number of connected components. This is β₁ of the graph.

CONSENSUS GRAPH:
    One vertex per vote id; an edge joins every pair of votes with the SAME
    agreement value. The result is at most two cliques (agreers, dissenters),
    so c ∈ {1, 2} for any non-empty vote set.
"""

import itertools
import logging
from collections import deque

import numpy as np
from scipy import sparse
from typing import Dict, Hashable, List, Sequence, Tuple

from ..spec.constants import EPS_RANK
from ..spec.structures import Vote

logger = logging.getLogger(__name__)


def index_vertices(vertex_ids: Sequence[Hashable]) -> Dict[Hashable, int]:
    """Vertex id → column index. Repeated ids keep their first index."""
    v_to_idx = {}
    for vid in vertex_ids:
        if vid not in v_to_idx:
            v_to_idx[vid] = len(v_to_idx)
    return v_to_idx


def collapse_edges(edges: Sequence[Tuple[Hashable, Hashable]],
                   v_to_idx: Dict[Hashable, int]) -> List[Tuple[int, int]]:
    """
    Map id-pairs to index pairs (i < j).

    Dropped:
        - self-loops
        - duplicates (either orientation)
        - edges with an endpoint not in v_to_idx
    """
    seen = set()
    out = []
    dropped = 0
    for a, b in edges:
        if a not in v_to_idx or b not in v_to_idx:
            dropped += 1
            continue
        i, j = v_to_idx[a], v_to_idx[b]
        if i == j:
            dropped += 1
            continue
        key = (min(i, j), max(i, j))
        if key in seen:
            dropped += 1
            continue
        seen.add(key)
        out.append(key)
    if dropped:
        logger.debug("collapse_edges: dropped %d of %d edges", dropped, len(edges))
    return out


def build_d0(n_vertices: int, edges: List[Tuple[int, int]]) -> np.ndarray:
    """
    Build oriented incidence d₀ (E × V).

    Convention: for edge (i, j) with i < j, i is source (-1), j is target (+1).
    Each row has exactly one -1 and one +1.
    """
    d0 = np.zeros((len(edges), n_vertices))
    for e_idx, (i, j) in enumerate(edges):
        d0[e_idx, i] = -1
        d0[e_idx, j] = +1
    return d0


def build_adjacency(n_vertices: int, edges: List[Tuple[int, int]]) -> sparse.csr_matrix:
    """Sparse undirected adjacency (V × V, 0/1) from collapsed index pairs, no d₀."""
    pairs = np.array(edges, dtype=np.int64).reshape(-1, 2)
    rows, cols = pairs[:, 0], pairs[:, 1]
    ones = np.ones(len(pairs))
    upper = sparse.coo_matrix((ones, (rows, cols)), shape=(n_vertices, n_vertices))
    return (upper + upper.T).tocsr()


def count_connected_components(d0: np.ndarray) -> int:
    """
    Count connected components via BFS on d₀.

    Independent of scipy.sparse.csgraph, used as a cross-check.
    """
    E, V = d0.shape

    adj = [[] for _ in range(V)]
    for e in range(E):
        verts = np.where(d0[e, :] != 0)[0]
        if len(verts) == 2:
            i, j = verts
            adj[i].append(j)
            adj[j].append(i)

    visited = [False] * V
    components = 0
    for start in range(V):
        if visited[start]:
            continue
        queue = deque([start])
        visited[start] = True
        while queue:
            v = queue.popleft()
            for neighbor in adj[v]:
                if not visited[neighbor]:
                    visited[neighbor] = True
                    queue.append(neighbor)
        components += 1

    return components


def cycle_space_dimension(d0: np.ndarray, tol: float = None) -> int:
    """
    dim ker(d₀ᵀ) = E - rank(d₀)  (rank-nullity form of β₁).

    Args:
        d0: (E, V) incidence matrix
        tol: singular value cutoff (defaults to EPS_RANK)
    """
    if tol is None:
        tol = EPS_RANK
    E, V = d0.shape
    if E == 0 or V == 0:
        return 0
    return E - int(np.linalg.matrix_rank(d0, tol=tol))


# =============================================================================
# CONSENSUS GRAPH
# =============================================================================

def consensus_edges(votes: Sequence[Vote]) -> List[Tuple[str, str]]:
    """Edge between every pair of votes with identical agreement."""
    return [
        (v1.id, v2.id)
        for v1, v2 in itertools.combinations(votes, 2)
        if v1.agrees == v2.agrees
    ]


def build_consensus_graph(votes: Sequence[Vote]) -> Tuple[List[str], List[Tuple[str, str]]]:
    """
    Vertex ids and agreement edges for a vote set.

    Returns:
        vertex_ids: vote ids in input order
        edges: list of (id, id) pairs
    """
    vertex_ids = [v.id for v in votes]
    edges = consensus_edges(votes)
    return vertex_ids, edges
