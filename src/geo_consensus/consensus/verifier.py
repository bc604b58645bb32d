"""
Geometric Consensus Verifier
============================

ALGEBRAIC RULE:
    valid ⇔ agree_count ≥ ⌈V × threshold⌉

for the catalog shape chosen by the caller. Every call builds a fresh
certificate from its inputs only; nothing is cached between calls.

STEPS (verify):
    1. Resolve the shape kind. Failure → error certificate (valid=False,
       zero counts, error text in proof). Never raised outward.
    2. Count agreeing votes.
    3. required / valid from the catalog.
    4. Consensus graph: edge between votes with identical agreement.
    5. Betti numbers of that graph → invariants + partition info.
    6. Proof narrative.

EMPTY VOTE SET:
    required_count is still ⌈V × threshold⌉, but valid is forced False: an
    empty set cannot satisfy a threshold on absent participants.

VOTE WEIGHT:
    Not used. Counting is one vote = one unit regardless of Vote.weight.
"""

import dataclasses
import logging

from typing import Sequence, Union

from ..catalog import lookup, required_agreement, is_satisfied, keyword_for
from ..operators.betti import compute_invariants, is_partitioned, piece_count
from ..operators.incidence import build_consensus_graph
from ..spec.constants import CERT_PREFIX
from ..spec.shapes import Shape, ShapeKind
from ..spec.structures import (
    Certificate,
    ConsensusResult,
    PartitionInfo,
    Vote,
    new_id,
    utc_timestamp,
    validate_votes,
)

logger = logging.getLogger(__name__)


def _pct(threshold: float) -> str:
    return f"{threshold * 100:.1f}%"


def render_proof(shape: Shape, agree_count: int, required_count: int, valid: bool,
                 vote_count: int, description: str = "") -> str:
    """Human-readable justification of a consensus decision."""
    keyword = keyword_for(shape)
    ratio = agree_count / shape.V if shape.V else 0.0
    dual = shape.dual.value if shape.dual is not None else "None"
    header = f"Mathematical Proof for {keyword} Consensus:"
    if description:
        header += f"\nDecision: {description}"

    lines = [
        header,
        "",
        "Given:",
        f"- Geometric Type: {shape.name} ({shape.kind.value})",
        f"- Vertices: {shape.V}",
        f"- Threshold: {_pct(shape.threshold)}",
        f"- Votes Cast: {vote_count}",
        f"- Required Agreement: {required_count}/{shape.V}",
        f"- Actual Agreement: {agree_count}/{shape.V}",
        "",
        "Verification:",
        f"1. Threshold Check: {agree_count} ≥ {required_count} = {agree_count >= required_count}",
        f"2. Geometric Constraint: {shape.name} requires {_pct(shape.threshold)} agreement",
        f"3. Algebraic Verification: ({agree_count}/{shape.V}) ≥ {shape.threshold} = "
        f"{ratio:.3f} ≥ {shape.threshold} = {agree_count >= required_count}",
    ]
    if vote_count == 0:
        lines.append("4. Empty vote set: no participant can satisfy the threshold")
    lines += [
        "",
        f"Conclusion: {'CONSENSUS ACHIEVED' if valid else 'CONSENSUS FAILED'}",
        "",
        "Geometric Properties:",
        f"- Schläfli Symbol: {shape.schlaefli or 'N/A'}",
        f"- Dimension: {shape.dimension}D",
        f"- Context: {shape.context}",
        f"- V/E/F: {shape.V}/{shape.E}/{shape.F}",
        f"- Self-dual: {shape.is_self_dual}",
        f"- Dual: {dual}",
    ]
    return "\n".join(lines)


class GeometricConsensus:
    """
    Certificate-producing consensus verifier.

    The must_/should_/may_ methods are fixed bindings of verify() to one
    catalog shape each, not separate algorithms.
    """

    # --- local ---
    def must_local(self, votes: Sequence[Vote]) -> ConsensusResult:
        """Tetrahedron, 4/4 unanimous."""
        return self.verify(votes, ShapeKind.TETRAHEDRON,
                           "MUST (Local) - Unanimous consensus required")

    def should_local(self, votes: Sequence[Vote]) -> ConsensusResult:
        """Octahedron, 5/6 strong."""
        return self.verify(votes, ShapeKind.OCTAHEDRON,
                           "SHOULD (Local) - Strong consensus preferred")

    def may_local(self, votes: Sequence[Vote]) -> ConsensusResult:
        """Cube, 4/8 majority."""
        return self.verify(votes, ShapeKind.CUBE,
                           "MAY (Local) - Majority consensus sufficient")

    # --- federation ---
    def must_federation(self, votes: Sequence[Vote]) -> ConsensusResult:
        """5-cell, 5/5 unanimous."""
        return self.verify(votes, ShapeKind.FIVE_CELL,
                           "MUST (Federation) - Unanimous federation consensus required")

    def should_federation(self, votes: Sequence[Vote]) -> ConsensusResult:
        """24-cell, 20/24 strong."""
        return self.verify(votes, ShapeKind.TWENTY_FOUR_CELL,
                           "SHOULD (Federation) - Strong federation consensus preferred")

    def may_federation(self, votes: Sequence[Vote]) -> ConsensusResult:
        """8-cell, 8/16 majority."""
        return self.verify(votes, ShapeKind.EIGHT_CELL,
                           "MAY (Federation) - Majority federation consensus sufficient")

    # --- global ---
    def must_global(self, votes: Sequence[Vote]) -> ConsensusResult:
        """Truncated tetrahedron, 12/12 unanimous."""
        return self.verify(votes, ShapeKind.TRUNCATED_TETRAHEDRON,
                           "MUST (Global) - Unanimous global consensus required")

    def should_global(self, votes: Sequence[Vote]) -> ConsensusResult:
        """Cuboctahedron, 10/12 strong."""
        return self.verify(votes, ShapeKind.CUBOCTAHEDRON,
                           "SHOULD (Global) - Strong global consensus preferred")

    def may_global(self, votes: Sequence[Vote]) -> ConsensusResult:
        """Truncated cube, 12/24 majority."""
        return self.verify(votes, ShapeKind.TRUNCATED_CUBE,
                           "MAY (Global) - Majority global consensus sufficient")

    # --- generic ---
    def verify(self, votes: Sequence[Vote], kind: Union[ShapeKind, str],
               description: str = "") -> ConsensusResult:
        """
        Verify consensus of votes against the shape kind.

        Never raises for an unknown kind: the result carries an invalid error
        certificate instead.
        """
        votes = tuple(votes)
        ok, problems = validate_votes(votes, strict=False)
        if not ok:
            logger.warning("verify(%s): vote set problems: %s", kind, problems)

        try:
            shape = lookup(kind)
        except ValueError as err:
            logger.warning("verify(%r): %s", kind, err)
            return ConsensusResult(
                certificate=self._error_certificate(votes, kind, err),
                success=False,
                message=f"Consensus verification failed: {err}",
            )

        certificate = self.build_certificate(votes, shape, description)
        pct = _pct(certificate.threshold)
        n = len(votes)
        if certificate.valid:
            message = f"Consensus achieved: {certificate.agree_count}/{n} agree ({pct})"
        else:
            message = (f"Consensus failed: {certificate.agree_count}/{n} agree, "
                       f"need {certificate.required_count} ({pct})")

        logger.info("%s [%s] %s", keyword_for(shape), shape.kind.value, message)
        return ConsensusResult(certificate=certificate, success=certificate.valid, message=message)

    def build_certificate(self, votes: Sequence[Vote], shape: Shape,
                          description: str = "") -> Certificate:
        """Certificate for a resolved shape (steps 2-6)."""
        votes = tuple(votes)
        agree_count = sum(1 for v in votes if v.agrees)
        required_count = required_agreement(shape)
        valid = bool(votes) and is_satisfied(shape, agree_count)

        vertex_ids, edges = build_consensus_graph(votes)
        invariants = compute_invariants(vertex_ids, edges)
        partition_info = PartitionInfo(
            is_partitioned=is_partitioned(invariants),
            partition_count=piece_count(invariants),
        )

        return Certificate(
            certificate_id=new_id(CERT_PREFIX),
            kind=shape.kind,
            shape=shape,
            votes=votes,
            agree_count=agree_count,
            required_count=required_count,
            threshold=shape.threshold,
            valid=valid,
            proof=render_proof(shape, agree_count, required_count, valid,
                               len(votes), description),
            timestamp=utc_timestamp(),
            invariants=invariants,
            partition_info=partition_info,
        )

    def _error_certificate(self, votes, kind, error: Exception) -> Certificate:
        return Certificate(
            certificate_id=new_id(CERT_PREFIX),
            kind=kind,
            shape=None,
            votes=tuple(votes),
            agree_count=0,
            required_count=0,
            threshold=0.0,
            valid=False,
            proof=f"Error in consensus verification: {error}",
            timestamp=utc_timestamp(),
        )

    # --- partition-aware ---
    def verify_with_partition_detection(self, votes: Sequence[Vote],
                                        kind: Union[ShapeKind, str]) -> ConsensusResult:
        """
        verify(), then annotate the result when the vote graph is split.

        The annotated certificate is a new object; the counts are unchanged.
        """
        result = self.verify(votes, kind, "Partition-aware consensus")
        info = result.certificate.partition_info
        if info is None or not info.is_partitioned:
            return result

        count = info.partition_count
        section = (
            "\n\nPARTITION DETECTION:\n"
            f"- Network is partitioned into {count} components\n"
            "- Consensus verification within partitions required\n"
            "- This certificate represents partitioned consensus state"
        )
        certificate = dataclasses.replace(result.certificate,
                                          proof=result.certificate.proof + section)
        logger.info("partition-aware verify: %d components detected", count)
        return ConsensusResult(
            certificate=certificate,
            success=result.success,
            message=f"Partitioned consensus: {result.message} ({count} partitions detected)",
        )


def verify(votes: Sequence[Vote], kind: Union[ShapeKind, str],
           description: str = "") -> ConsensusResult:
    """Module-level shortcut for GeometricConsensus().verify."""
    return GeometricConsensus().verify(votes, kind, description)
