"""
Partition Detection via Betti Numbers
=====================================

ALGORITHM (detect):
    1. Consensus graph from the votes (same rule as the verifier)
    2. β = (β₀, β₁, β₂) of that graph
    3. partition_count = β₀, split ⇔ β₀ > 1
    4. Original shape inferred from the vote count (unmapped → cube)
    5. If split, decomposed shape from DECOMPOSITION_TABLE
    6. Votes grouped per connected piece

DECOMPOSITION RULE:
    Each original shape has a row {piece count → smaller shape}. The LARGEST
    key ≤ actual piece count wins (never overshoots). Piece counts above
    every key, or below the smallest key, use the generic rule on
    ⌊V_original / pieces⌋:

        ≥20 dodecahedron, ≥12 icosahedron, ≥8 cube, ≥6 octahedron,
        ≥4 tetrahedron,   ≥3 triangle,    ≥2 line, else point

    The table is checked at import for one row per ShapeKind, so adding a
    shape without a decomposition row fails loudly.

INTEGRITY:
    Pieces must be pairwise disjoint by vote id. validate(summary) is a pure
    predicate; check_integrity(summary) raises IntegrityViolation.
"""

import logging
import math
from types import MappingProxyType

from typing import List, Mapping, Sequence, Tuple

from ..catalog import lookup, shape_for_vertex_count
from ..operators.betti import compute_invariants, connected_components, is_partitioned, piece_count
from ..operators.incidence import build_consensus_graph
from ..spec.constants import EPS_CLOSE, PARTITION_CERT_PREFIX
from ..spec.errors import CatalogIntegrityError, IntegrityViolation
from ..spec.shapes import ShapeKind
from ..spec.structures import (
    Certificate,
    PartitionCertificate,
    PartitionImpact,
    PartitionSummary,
    Vote,
    new_id,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

_S = ShapeKind

# piece count → decomposed shape, per original shape
_DECOMPOSITIONS = {
    _S.POINT: {1: _S.POINT},
    _S.LINE: {1: _S.LINE, 2: _S.POINT},
    _S.TRIANGLE: {1: _S.TRIANGLE, 2: _S.LINE, 3: _S.POINT},
    _S.SQUARE: {1: _S.SQUARE, 2: _S.LINE, 4: _S.POINT},

    _S.TETRAHEDRON: {2: _S.LINE, 4: _S.POINT},
    _S.CUBE: {2: _S.TETRAHEDRON, 4: _S.TRIANGLE, 8: _S.POINT},
    _S.OCTAHEDRON: {2: _S.TRIANGLE, 3: _S.LINE, 6: _S.POINT},
    _S.DODECAHEDRON: {2: _S.ICOSAHEDRON, 4: _S.OCTAHEDRON, 5: _S.TETRAHEDRON,
                      10: _S.TRIANGLE, 20: _S.POINT},
    _S.ICOSAHEDRON: {2: _S.DODECAHEDRON, 3: _S.OCTAHEDRON, 4: _S.TETRAHEDRON,
                     6: _S.TRIANGLE, 12: _S.POINT},

    _S.FIVE_CELL: {2: _S.TRIANGLE, 5: _S.POINT},
    _S.EIGHT_CELL: {1: _S.EIGHT_CELL, 2: _S.CUBE, 4: _S.TETRAHEDRON, 8: _S.POINT},
    _S.SIXTEEN_CELL: {1: _S.SIXTEEN_CELL, 2: _S.OCTAHEDRON, 4: _S.TETRAHEDRON,
                      8: _S.TRIANGLE, 16: _S.POINT},
    _S.TWENTY_FOUR_CELL: {2: _S.DODECAHEDRON, 3: _S.OCTAHEDRON, 4: _S.TETRAHEDRON,
                          6: _S.SQUARE, 8: _S.TRIANGLE, 12: _S.LINE, 24: _S.POINT},
    _S.SIX_HUNDRED_CELL: {1: _S.SIX_HUNDRED_CELL, 2: _S.ICOSAHEDRON, 3: _S.DODECAHEDRON,
                          4: _S.OCTAHEDRON, 5: _S.TETRAHEDRON, 6: _S.TRIANGLE,
                          10: _S.LINE, 20: _S.POINT},

    _S.TRUNCATED_TETRAHEDRON: {1: _S.TRUNCATED_TETRAHEDRON, 2: _S.TRIANGLE, 4: _S.POINT},
    _S.CUBOCTAHEDRON: {1: _S.CUBOCTAHEDRON, 2: _S.TETRAHEDRON, 3: _S.TRIANGLE, 6: _S.POINT},
    _S.TRUNCATED_CUBE: {1: _S.TRUNCATED_CUBE, 2: _S.CUBE, 4: _S.TETRAHEDRON, 8: _S.POINT},
    _S.TRUNCATED_OCTAHEDRON: {1: _S.TRUNCATED_OCTAHEDRON, 2: _S.OCTAHEDRON,
                              3: _S.TETRAHEDRON, 6: _S.POINT},
    _S.RHOMBICUBOCTAHEDRON: {1: _S.RHOMBICUBOCTAHEDRON, 2: _S.CUBE, 4: _S.TETRAHEDRON,
                             8: _S.POINT},
    _S.TRUNCATED_CUBOCTAHEDRON: {1: _S.TRUNCATED_CUBOCTAHEDRON, 2: _S.CUBOCTAHEDRON,
                                 3: _S.TETRAHEDRON, 6: _S.POINT},
    _S.SNUB_CUBE: {1: _S.SNUB_CUBE, 2: _S.CUBE, 4: _S.TETRAHEDRON, 8: _S.POINT},
    _S.ICOSIDODECAHEDRON: {1: _S.ICOSIDODECAHEDRON, 2: _S.DODECAHEDRON, 3: _S.ICOSAHEDRON,
                           6: _S.TETRAHEDRON, 12: _S.POINT},
    _S.TRUNCATED_DODECAHEDRON: {1: _S.TRUNCATED_DODECAHEDRON, 2: _S.DODECAHEDRON,
                                3: _S.ICOSAHEDRON, 6: _S.TETRAHEDRON, 12: _S.POINT},
    _S.TRUNCATED_ICOSAHEDRON: {1: _S.TRUNCATED_ICOSAHEDRON, 2: _S.ICOSAHEDRON,
                               3: _S.DODECAHEDRON, 6: _S.TETRAHEDRON, 12: _S.POINT},
    _S.RHOMBICOSIDODECAHEDRON: {1: _S.RHOMBICOSIDODECAHEDRON, 2: _S.DODECAHEDRON,
                                3: _S.ICOSAHEDRON, 6: _S.TETRAHEDRON, 12: _S.POINT},
    _S.TRUNCATED_ICOSIDODECAHEDRON: {1: _S.TRUNCATED_ICOSIDODECAHEDRON, 2: _S.ICOSAHEDRON,
                                     3: _S.DODECAHEDRON, 6: _S.TETRAHEDRON, 12: _S.POINT},
    _S.SNUB_DODECAHEDRON: {1: _S.SNUB_DODECAHEDRON, 2: _S.DODECAHEDRON, 3: _S.ICOSAHEDRON,
                           6: _S.TETRAHEDRON, 12: _S.POINT},
}

# Generic rule: ⌊V / pieces⌋ ≥ bound → kind (first match, top-down)
GENERIC_DECOMPOSITION = (
    (20, _S.DODECAHEDRON),
    (12, _S.ICOSAHEDRON),
    (8, _S.CUBE),
    (6, _S.OCTAHEDRON),
    (4, _S.TETRAHEDRON),
    (3, _S.TRIANGLE),
    (2, _S.LINE),
)
GENERIC_FLOOR = _S.POINT


def validate_decomposition_table(table: Mapping, strict: bool = True) -> tuple[bool, list[str]]:
    """
    Every ShapeKind has a row; keys are positive ints; targets are ShapeKinds.

    Returns:
        (is_valid, list of error messages)
    """
    errors = []
    missing = [k.value for k in ShapeKind if k not in table]
    if missing:
        errors.append(f"Decomposition rows missing for: {missing}")
    for kind, row in table.items():
        if not row:
            errors.append(f"{kind}: empty decomposition row")
        for count, target in row.items():
            if not isinstance(count, int) or count < 1:
                errors.append(f"{kind}: invalid piece-count key {count!r}")
            if not isinstance(target, ShapeKind):
                errors.append(f"{kind}: target {target!r} is not a ShapeKind")

    if errors and strict:
        raise CatalogIntegrityError(errors)
    return (len(errors) == 0, errors)


validate_decomposition_table(_DECOMPOSITIONS, strict=True)
DECOMPOSITION_TABLE = MappingProxyType(
    {kind: MappingProxyType(dict(sorted(row.items()))) for kind, row in _DECOMPOSITIONS.items()}
)


def generic_decomposition(original: ShapeKind, partition_count: int) -> ShapeKind:
    """Map ⌊V / pieces⌋ down the Platonic ladder."""
    per_piece = lookup(original).V // partition_count
    for bound, kind in GENERIC_DECOMPOSITION:
        if per_piece >= bound:
            return kind
    return GENERIC_FLOOR


def decompose(original: ShapeKind, partition_count: int) -> ShapeKind:
    """
    Decomposed shape for original split into partition_count pieces.

    Raises:
        ValueError: partition_count < 1
        UnknownShapeKind: original not in catalog
    """
    if partition_count < 1:
        raise ValueError(f"partition_count must be >= 1, got {partition_count}")
    original = lookup(original).kind

    row = DECOMPOSITION_TABLE.get(original)
    if row:
        keys = [k for k in row if k <= partition_count]
        if keys and partition_count <= max(row):
            return row[max(keys)]

    return generic_decomposition(original, partition_count)


def _group_votes(votes: Sequence[Vote], components) -> List[Tuple[Vote, ...]]:
    return [tuple(v for v in votes if v.id in comp) for comp in components]


class PartitionDetector:
    """β₀-based partition detection and decomposition."""

    def detect(self, votes: Sequence[Vote]) -> PartitionSummary:
        votes = tuple(votes)
        vertex_ids, edges = build_consensus_graph(votes)

        invariants = compute_invariants(vertex_ids, edges)
        split = is_partitioned(invariants)
        count = piece_count(invariants)

        components = connected_components(vertex_ids, edges)
        original = shape_for_vertex_count(len(votes))
        decomposed = decompose(original, count) if split else None

        summary = PartitionSummary(
            is_partitioned=split,
            partition_count=count,
            components=components,
            invariants=invariants,
            original_kind=original,
            decomposed_kind=decomposed,
            partition_votes=_group_votes(votes, components),
        )
        if split:
            logger.info("partition detected: β₀=%d, %s → %s",
                        count, original.value, decomposed.value)
        else:
            logger.debug("no partition: β=%s", invariants.as_tuple())
        return summary

    decompose = staticmethod(decompose)

    @staticmethod
    def check_integrity(summary: PartitionSummary) -> None:
        """
        Raise IntegrityViolation if a vote id sits in two pieces.

        Raises:
            IntegrityViolation
        """
        seen = set()
        for piece in summary.partition_votes:
            piece_ids = {v.id for v in piece}
            for vid in piece_ids:
                if vid in seen:
                    raise IntegrityViolation(vid)
            seen |= piece_ids

    def validate(self, summary: PartitionSummary) -> bool:
        """
        Pure predicate over a detection result. Never raises.

        Checks:
            - partition_count ≥ 1 and = β₀
            - one component per piece
            - grouped votes match their component ids
            - no vote id in more than one piece
        """
        if summary.partition_count < 1:
            return False
        if summary.invariants.beta_0 != summary.partition_count:
            return False
        if len(summary.components) != summary.partition_count:
            return False
        if len(summary.partition_votes) != len(summary.components):
            return False
        for piece, comp in zip(summary.partition_votes, summary.components):
            if {v.id for v in piece} != set(comp):
                return False
        try:
            self.check_integrity(summary)
        except IntegrityViolation as err:
            logger.warning("partition integrity: %s", err)
            return False
        return True

    # =========================================================================
    # Certificates and impact
    # =========================================================================

    def create_partition_certificate(self, original_certificate: Certificate,
                                     summary: PartitionSummary) -> PartitionCertificate:
        return PartitionCertificate(
            certificate_id=new_id(PARTITION_CERT_PREFIX),
            original_certificate=original_certificate,
            summary=summary,
            decomposition_proof=render_decomposition_proof(summary),
            timestamp=utc_timestamp(),
        )

    def analyze_impact(self, summary: PartitionSummary) -> PartitionImpact:
        """
        Can every piece reach consensus under the decomposed shape?

        Per piece: required = ⌈|piece| × threshold(decomposed)⌉.
        """
        if summary.decomposed_kind is None:
            return PartitionImpact(
                consensus_possible=False,
                required_per_partition=(),
                total_required=0,
                assessment="No decomposition available for partitioned network",
            )

        threshold = lookup(summary.decomposed_kind).threshold
        required = [
            math.ceil(len(piece) * threshold - EPS_CLOSE) for piece in summary.partition_votes
        ]
        agrees = [sum(1 for v in piece if v.agrees) for piece in summary.partition_votes]
        failed = sum(1 for a, r in zip(agrees, required) if a < r)

        if failed == 0:
            assessment = f"Consensus achievable within all {summary.partition_count} partitions"
        else:
            assessment = f"Consensus failed in {failed}/{summary.partition_count} partitions"

        return PartitionImpact(
            consensus_possible=(failed == 0),
            required_per_partition=tuple(required),
            total_required=sum(required),
            assessment=assessment,
        )


def render_decomposition_proof(summary: PartitionSummary) -> str:
    original = lookup(summary.original_kind)
    decomposed = lookup(summary.decomposed_kind) if summary.decomposed_kind else None
    b0, b1, b2 = summary.invariants.as_tuple()

    dec_name = f"{decomposed.name} ({decomposed.kind.value})" if decomposed else "N/A"
    dec_v = decomposed.V if decomposed else "N/A"
    dec_t = f"{decomposed.threshold * 100:.1f}%" if decomposed else "N/A"

    return "\n".join([
        "Geometric Decomposition Proof:",
        "",
        "Given:",
        f"- Original Geometric Type: {original.name} ({original.kind.value})",
        f"- Partition Count: {summary.partition_count}",
        f"- Betti Numbers: β₀={b0}, β₁={b1}, β₂={b2}",
        "",
        "Decomposition:",
        f"- Network partitioned into {summary.partition_count} components",
        "- Each component requires independent consensus",
        f"- Decomposed Type: {dec_name}",
        "",
        "Verification:",
        f"1. β₀ = {b0} {'>' if b0 > 1 else '≤'} 1 → "
        f"{'network is partitioned' if b0 > 1 else 'network is connected'}",
        f"2. Original: {original.V} vertices, threshold {original.threshold * 100:.1f}%",
        f"3. Decomposed: {dec_v} vertices per partition, threshold {dec_t}",
        f"4. Piece sizes: {[len(p) for p in summary.partition_votes]}",
    ])
