"""
Geometry builders - pure geometry construction, no operators dependency.

EXPORTS:
- Polyhedra: build_tetrahedron, build_cube, build_octahedron, build_truncated_cube
- SKELETON_BUILDERS: ShapeKind → builder, for kinds with a fixed skeleton
- triangulate: polygon faces → triangles
"""

from .polyhedra import (
    build_tetrahedron,
    build_cube,
    build_octahedron,
    build_truncated_cube,
    SKELETON_BUILDERS,
    triangulate,
)
