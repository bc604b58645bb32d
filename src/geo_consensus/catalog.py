"""
Shape Catalog Queries
=====================

Lookup and derived queries over the static table in spec/shapes.py.
Pure functions, no side effects.

    required_agreement(S) = ⌈V × threshold⌉
    is_satisfied(S, a)    = a ≥ required_agreement(S)
"""

import math
from types import MappingProxyType
from typing import List, Optional, Union

from .spec.constants import EPS_CLOSE, KEYWORD_CUTOFFS, KEYWORD_DEFAULT, CONTEXTS
from .spec.errors import UnknownShapeKind
from .spec.shapes import SHAPES, Shape, ShapeKind


# Vote-count → shape inference. Counts not listed fall back to the cube.
VERTEX_COUNT_TO_KIND = MappingProxyType({
    1: ShapeKind.POINT,
    2: ShapeKind.LINE,
    3: ShapeKind.TRIANGLE,
    4: ShapeKind.TETRAHEDRON,
    5: ShapeKind.FIVE_CELL,
    6: ShapeKind.OCTAHEDRON,
    8: ShapeKind.CUBE,
    12: ShapeKind.ICOSAHEDRON,
    16: ShapeKind.EIGHT_CELL,
    20: ShapeKind.DODECAHEDRON,
    24: ShapeKind.TWENTY_FOUR_CELL,
    120: ShapeKind.SIX_HUNDRED_CELL,
})
DEFAULT_INFERRED_KIND = ShapeKind.CUBE


def resolve_kind(kind: Union[ShapeKind, str]) -> ShapeKind:
    """Coerce an enum member or its string value to ShapeKind."""
    if isinstance(kind, ShapeKind):
        return kind
    try:
        return ShapeKind(kind)
    except ValueError:
        raise UnknownShapeKind(kind) from None


def lookup(kind: Union[ShapeKind, str]) -> Shape:
    """
    Catalog entry for kind.

    Raises:
        UnknownShapeKind: identifier not in the fixed table
    """
    resolved = resolve_kind(kind)
    shape = SHAPES.get(resolved)
    if shape is None:
        raise UnknownShapeKind(kind)
    return shape


def dual_of(shape: Shape) -> Optional[Shape]:
    """Itself if self-dual, the declared dual's entry otherwise, None if no dual."""
    if shape.is_self_dual:
        return shape
    if shape.dual is not None:
        return lookup(shape.dual)
    return None


def required_agreement(shape: Shape) -> int:
    """
    ⌈V × threshold⌉.

    EPS_CLOSE absorbs float noise in the product (e.g. 0.1-step thresholds)
    so exact integers are not bumped up by one.
    """
    return math.ceil(shape.V * shape.threshold - EPS_CLOSE)


def is_satisfied(shape: Shape, agree_count: int) -> bool:
    return agree_count >= required_agreement(shape)


def keyword_for(shape: Shape) -> str:
    """MUST_<TIER> / SHOULD_<TIER> / MAY_<TIER> from threshold magnitude."""
    tier = shape.context.upper()
    for cutoff, prefix in KEYWORD_CUTOFFS:
        if shape.threshold >= cutoff:
            return f"{prefix}_{tier}"
    return f"{KEYWORD_DEFAULT}_{tier}"


def shapes_by_context(context: str) -> List[Shape]:
    if context not in CONTEXTS:
        raise ValueError(f"Unknown context {context!r}, expected one of {CONTEXTS}")
    return [s for s in SHAPES.values() if s.context == context]


def shapes_by_vertex_range(min_vertices: int, max_vertices: int) -> List[Shape]:
    """Shapes with min_vertices ≤ V ≤ max_vertices, catalog order."""
    return [s for s in SHAPES.values() if min_vertices <= s.V <= max_vertices]


def suitable_shapes(participant_count: int) -> List[Shape]:
    """Shapes with room for participant_count voters, smallest V first."""
    fits = [s for s in SHAPES.values() if s.V >= participant_count]
    return sorted(fits, key=lambda s: s.V)


def shape_for_vertex_count(vertex_count: int) -> ShapeKind:
    """Infer the original shape from a vote count (unmapped → cube)."""
    return VERTEX_COUNT_TO_KIND.get(vertex_count, DEFAULT_INFERRED_KIND)
