"""
Polyhedron Skeletons
====================

Build coordinates, edges and faces for the catalog shapes that have a fixed
skeleton used by the simplicial-complex view of a vote set.

POLYHEDRA INCLUDED:
    - Tetrahedron    (V=4,  E=6,  F=4)
    - Cube           (V=8,  E=12, F=6)
    - Octahedron     (V=6,  E=12, F=8)
    - Truncated Cube (V=24, E=36, F=14)

Every builder derives edges from coordinates (minimum pairwise distance) and
cross-checks (V, E, F) against the catalog entry, so the table in
spec/shapes.py and the geometry can never drift apart silently.

Face vertex lists are ordered counter-clockwise seen from outside.
"""

import itertools

import numpy as np
from typing import Callable, Dict, List, Tuple

from ..spec.constants import EPS_CLOSE
from ..spec.shapes import SHAPES, ShapeKind

Skeleton = Tuple[np.ndarray, List[Tuple[int, int]], List[List[int]]]

EDGE_TOL = 1e-6       # |d - d_min| below this → edge
FACE_TOL = 1e-6       # vertex on face plane


def _order_face(coords: np.ndarray, face_idx: List[int], normal: np.ndarray) -> List[int]:
    """Sort face vertices by angle around the centroid, viewed along normal."""
    pts = coords[face_idx]
    centroid = pts.mean(axis=0)
    normal = normal / np.linalg.norm(normal)

    ref = [1.0, 0.0, 0.0] if abs(normal[0]) < 0.9 else [0.0, 1.0, 0.0]
    u = np.cross(normal, ref)
    u = u / np.linalg.norm(u)
    v = np.cross(normal, u)

    angles = [np.arctan2(np.dot(p - centroid, v), np.dot(p - centroid, u)) for p in pts]
    return [face_idx[o] for o in np.argsort(angles)]


def _min_distance_edges(coords: np.ndarray) -> List[Tuple[int, int]]:
    """All pairs (i < j) at the minimum nonzero distance."""
    n = len(coords)
    dists = {}
    for i, j in itertools.combinations(range(n), 2):
        dists[(i, j)] = float(np.linalg.norm(coords[i] - coords[j]))
    d_min = min(d for d in dists.values() if d > EPS_CLOSE)
    return [pair for pair, d in dists.items() if abs(d - d_min) < EDGE_TOL]


def _check_counts(kind: ShapeKind, coords, edges, faces) -> None:
    shape = SHAPES[kind]
    got = (len(coords), len(edges), len(faces))
    expected = (shape.V, shape.E, shape.F)
    if got != expected:
        raise ValueError(f"{kind}: built (V,E,F)={got}, catalog says {expected}")


def build_tetrahedron() -> Skeleton:
    """
    Regular tetrahedron at alternating cube corners.

    TOPOLOGY:
        V = 4, E = 6 (complete graph K4), F = 4 triangles
        χ = 4 - 6 + 4 = 2
    """
    coords = np.array(sorted([(1, 1, 1), (1, -1, -1), (-1, 1, -1), (-1, -1, 1)]), dtype=float)
    edges = _min_distance_edges(coords)

    faces = []
    for tri in itertools.combinations(range(4), 3):
        pts = coords[list(tri)]
        normal = pts.mean(axis=0)  # outward: centroid points away from origin
        faces.append(_order_face(coords, list(tri), normal))

    _check_counts(ShapeKind.TETRAHEDRON, coords, edges, faces)
    return coords, edges, faces


def build_cube() -> Skeleton:
    """
    Cube with corners at (±1, ±1, ±1).

    TOPOLOGY:
        V = 8, E = 12, F = 6 squares
        χ = 8 - 12 + 6 = 2
    """
    coords = np.array(sorted(itertools.product([-1, 1], repeat=3)), dtype=float)
    edges = _min_distance_edges(coords)

    faces = []
    for axis in range(3):
        for sign in (-1, 1):
            face_idx = [i for i, p in enumerate(coords) if p[axis] == sign]
            normal = np.zeros(3)
            normal[axis] = sign
            faces.append(_order_face(coords, face_idx, normal))

    _check_counts(ShapeKind.CUBE, coords, edges, faces)
    return coords, edges, faces


def build_octahedron() -> Skeleton:
    """
    Octahedron with vertices on the coordinate axes.

    TOPOLOGY:
        V = 6, E = 12, F = 8 triangles (one per octant)
        χ = 6 - 12 + 8 = 2
    """
    axis_pts = []
    for axis in range(3):
        for sign in (-1, 1):
            p = [0, 0, 0]
            p[axis] = sign
            axis_pts.append(tuple(p))
    coords = np.array(sorted(axis_pts), dtype=float)
    edges = _min_distance_edges(coords)

    faces = []
    for octant in itertools.product([-1, 1], repeat=3):
        face_idx = [
            i for i, p in enumerate(coords)
            if any(p[a] == octant[a] for a in range(3))
        ]
        faces.append(_order_face(coords, face_idx, np.array(octant, dtype=float)))

    _check_counts(ShapeKind.OCTAHEDRON, coords, edges, faces)
    return coords, edges, faces


def build_truncated_cube() -> Skeleton:
    """
    Archimedean truncated cube.

    Vertices are the permutations of (±ξ, ±1, ±1) with ξ = √2 - 1.

    TOPOLOGY:
        V = 24, E = 36, F = 14 (8 corner triangles + 6 octagons)
        χ = 24 - 36 + 14 = 2
    """
    xi = np.sqrt(2) - 1
    pts = set()
    for signs in itertools.product([-1, 1], repeat=3):
        for slot in range(3):
            p = [1.0, 1.0, 1.0]
            p[slot] = xi
            pts.add(tuple(round(s * c, 10) for s, c in zip(signs, p)))
    coords = np.array(sorted(pts))
    edges = _min_distance_edges(coords)

    faces = []
    # Octagons: vertices with |coord| = 1 on a fixed axis and matching sign
    for axis in range(3):
        for sign in (-1, 1):
            face_idx = [i for i, p in enumerate(coords) if abs(p[axis] - sign) < FACE_TOL]
            normal = np.zeros(3)
            normal[axis] = sign
            faces.append(_order_face(coords, face_idx, normal))
    # Triangles: the 3 vertices nearest each cube corner
    for corner in itertools.product([-1, 1], repeat=3):
        d = np.linalg.norm(coords - np.array(corner, dtype=float), axis=1)
        face_idx = [int(i) for i in np.argsort(d)[:3]]
        faces.append(_order_face(coords, face_idx, np.array(corner, dtype=float)))

    if len({frozenset(f) for f in faces}) != len(faces):
        raise ValueError("Truncated cube: duplicate faces detected")

    _check_counts(ShapeKind.TRUNCATED_CUBE, coords, edges, faces)
    return coords, edges, faces


SKELETON_BUILDERS: Dict[ShapeKind, Callable[[], Skeleton]] = {
    ShapeKind.TETRAHEDRON: build_tetrahedron,
    ShapeKind.CUBE: build_cube,
    ShapeKind.OCTAHEDRON: build_octahedron,
    ShapeKind.TRUNCATED_CUBE: build_truncated_cube,
}


def triangulate(faces: List[List[int]]) -> List[List[int]]:
    """Fan-triangulate polygon faces (triangles pass through unchanged)."""
    tris = []
    for face in faces:
        for k in range(1, len(face) - 1):
            tris.append([face[0], face[k], face[k + 1]])
    return tris


# Self-test
if __name__ == "__main__":
    print("=" * 60)
    print("POLYHEDRON SKELETONS")
    print("=" * 60)

    for kind, builder in SKELETON_BUILDERS.items():
        coords, edges, faces = builder()
        V, E, F = len(coords), len(edges), len(faces)
        print(f"\n{SHAPES[kind].name}:")
        print(f"  V={V}, E={E}, F={F}, χ={V - E + F}")
        print(f"  triangles after fan split: {len(triangulate(faces))}")
