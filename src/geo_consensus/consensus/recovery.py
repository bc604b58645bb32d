"""
Dual Partition Recovery
=======================

Reunify piece certificates into ONE certificate for the original shape,
using the original's dual to fix the unified threshold.

PRECONDITIONS (checked in this order, first failure wins):
    1. at least one piece certificate       → EmptyPartitionInput
    2. every piece certificate valid        → InconsistentPartitionInputs
    3. all pieces share one kind            → InconsistentPartitionInputs
    4. original kind in the catalog         → UnknownShapeKind
    5. original has a dual                  → NoDualAvailable

A failed precondition is NOT raised: recover() returns success=False with a
shell certificate and DualMapping(original, original, 0.0).

UNIFIED THRESHOLD:
    self-mapped (dual.kind = original.kind):  t = threshold(original)
    otherwise:                                t = clamp(V_dual / F_original, 0, 1)

    Cube → octahedron:  6 / 6 = 1.0, so every reunified vote must agree.

RECOVERED CERTIFICATE:
    kind = original, votes = union of piece votes,
    required = ⌈N × t⌉, valid ⇔ Σ agree ≥ required,
    invariants asserted (1, 0, 0), partition info (False, 1).

    The invariants are NOT recomputed from the reunified vote graph.
"""

import logging
import math

from typing import List, Sequence, Union

from ..catalog import dual_of, lookup, resolve_kind
from ..spec.constants import (
    BASE_STEP_TIME_MS,
    DEFAULT_STEP_WEIGHT,
    EPS_CLOSE,
    FEDERATED_QUORUM,
    MAX_THRESHOLD_MAPPING,
    RECOVERED_INVARIANTS,
    RECOVERY_CERT_PREFIX,
    RECOVERY_PLAN_PREFIX,
    STEP_WEIGHTS,
    STRATEGY_CUTOFFS,
    STRATEGY_DUAL,
    STRATEGY_FEDERATED,
    STRATEGY_HIERARCHICAL,
)
from ..spec.errors import (
    EmptyPartitionInput,
    InconsistentPartitionInputs,
    NoDualAvailable,
)
from ..spec.shapes import Shape, ShapeKind
from ..spec.structures import (
    Certificate,
    DualMapping,
    PartitionInfo,
    RecoveryPlan,
    RecoveryResult,
    RecoveryStep,
    TopologicalInvariants,
    new_id,
    utc_timestamp,
)

logger = logging.getLogger(__name__)


def check_piece_certificates(piece_certificates: Sequence[Certificate]) -> None:
    """
    Raise on the first precondition a piece set violates (steps 1-3).

    Raises:
        EmptyPartitionInput: no certificates
        InconsistentPartitionInputs: invalid certificate(s) or mixed kinds
    """
    if len(piece_certificates) == 0:
        raise EmptyPartitionInput()

    invalid = [c for c in piece_certificates if not c.valid]
    if invalid:
        raise InconsistentPartitionInputs(f"Invalid certificates found: {len(invalid)}")

    first = piece_certificates[0].kind
    if any(c.kind != first for c in piece_certificates):
        kinds = sorted({str(c.kind) for c in piece_certificates})
        raise InconsistentPartitionInputs(
            f"Inconsistent geometric types in partition certificates: {kinds}"
        )


class DualPartitionRecovery:
    """Reunification of piece certificates via shape duality."""

    # =========================================================================
    # Threshold mapping
    # =========================================================================

    @staticmethod
    def map_threshold_via_dual(original: Shape, dual: Shape) -> float:
        """Unified threshold in [0, 1]."""
        if dual.kind == original.kind:
            return original.threshold
        if original.F == 0:
            return original.threshold
        return max(0.0, min(1.0, dual.V / original.F))

    @staticmethod
    def threshold_mapping_factor(original: Shape, dual: Shape) -> float:
        """V_dual / F_original, unclamped; 1.0 for a self-mapping."""
        if dual.kind == original.kind:
            return 1.0
        return dual.V / original.F

    # =========================================================================
    # Recovery
    # =========================================================================

    def recover(self, piece_certificates: Sequence[Certificate],
                original_kind: Union[ShapeKind, str]) -> RecoveryResult:
        """
        Reunify piece certificates under original_kind.

        Never raises for precondition failures; see module docstring.
        """
        pieces = tuple(piece_certificates)
        try:
            check_piece_certificates(pieces)
            original = lookup(original_kind)
            dual = dual_of(original)
            if dual is None:
                raise NoDualAvailable(original.kind)
        except ValueError as err:
            logger.warning("recovery failed for %s (%d pieces): %s",
                           original_kind, len(pieces), err)
            return self._failed_result(original_kind, err)

        unified = self.map_threshold_via_dual(original, dual)
        total_agree = sum(c.agree_count for c in pieces)
        total_votes = sum(c.vote_count for c in pieces)
        required = math.ceil(total_votes * unified - EPS_CLOSE)
        valid = total_agree >= required

        logger.debug("recover: %s via %s, t=%.3f, %d/%d agree, need %d",
                     original.kind.value, dual.kind.value, unified,
                     total_agree, total_votes, required)

        certificate = Certificate(
            certificate_id=new_id(RECOVERY_CERT_PREFIX),
            kind=original.kind,
            shape=original,
            votes=tuple(v for c in pieces for v in c.votes),
            agree_count=total_agree,
            required_count=required,
            threshold=unified,
            valid=valid,
            proof=f"Recovered from {len(pieces)} partitions using dual mapping",
            timestamp=utc_timestamp(),
            invariants=TopologicalInvariants(*RECOVERED_INVARIANTS),
            partition_info=PartitionInfo(is_partitioned=False, partition_count=1),
        )
        proof = render_recovery_proof(len(pieces), original, dual,
                                      total_agree, total_votes, unified, valid)

        logger.info("recovered %s from %d pieces: %d/%d agree, need %d → %s",
                    original.kind.value, len(pieces), total_agree, total_votes,
                    required, "valid" if valid else "invalid")
        return RecoveryResult(
            success=True,
            certificate=certificate,
            proof=proof,
            dual_mapping=DualMapping(
                original=original.kind,
                dual=dual.kind,
                threshold_mapping=self.threshold_mapping_factor(original, dual),
            ),
            timestamp=utc_timestamp(),
        )

    def _failed_result(self, original_kind, error: Exception) -> RecoveryResult:
        try:
            shape = lookup(original_kind)
            kind = shape.kind
        except ValueError:
            shape, kind = None, original_kind

        certificate = Certificate(
            certificate_id=new_id(RECOVERY_CERT_PREFIX),
            kind=kind,
            shape=shape,
            votes=(),
            agree_count=0,
            required_count=0,
            threshold=0.0,
            valid=False,
            proof=f"Recovery failed: {error}",
            timestamp=utc_timestamp(),
        )
        return RecoveryResult(
            success=False,
            certificate=certificate,
            proof=f"Recovery failed: {error}",
            dual_mapping=DualMapping(original=kind, dual=kind, threshold_mapping=0.0),
            timestamp=utc_timestamp(),
            error=error,
        )

    @staticmethod
    def validate_recovery_result(result: RecoveryResult) -> bool:
        """
        Structural sanity of a recovery result. Never raises.

        Checks:
            - certificate and mapping present
            - mapping original resolves and equals the certificate kind
            - threshold mapping factor ∈ [0, MAX_THRESHOLD_MAPPING]
        """
        if result.certificate is None or result.dual_mapping is None:
            return False
        try:
            original = resolve_kind(result.dual_mapping.original)
        except ValueError:
            return False
        if original != result.certificate.kind:
            return False
        factor = result.dual_mapping.threshold_mapping
        return 0.0 <= factor <= MAX_THRESHOLD_MAPPING

    # =========================================================================
    # Recovery plan
    # =========================================================================

    @staticmethod
    def choose_strategy(piece_count: int) -> str:
        for cutoff, strategy in STRATEGY_CUTOFFS:
            if piece_count <= cutoff:
                return strategy
        return STRATEGY_FEDERATED

    def create_recovery_plan(self, piece_certificates: Sequence[Certificate],
                             original_kind: Union[ShapeKind, str]) -> RecoveryPlan:
        """
        Descriptive plan for reunifying the pieces.

        Raises:
            UnknownShapeKind: original_kind not in catalog
        """
        pieces = tuple(piece_certificates)
        original = lookup(original_kind)
        strategy = self.choose_strategy(len(pieces))
        steps = build_recovery_steps(len(pieces), original, dual_of(original), strategy)

        plan = RecoveryPlan(
            plan_id=new_id(RECOVERY_PLAN_PREFIX),
            piece_certificates=pieces,
            original_kind=original.kind,
            strategy=strategy,
            estimated_time_ms=estimate_time_ms(steps),
            steps=steps,
        )
        logger.info("recovery plan %s: %s strategy, %d steps, ~%d ms",
                    plan.plan_id, strategy, len(steps), plan.estimated_time_ms)
        return plan


def build_recovery_steps(n: int, original: Shape, dual, strategy: str) -> List[RecoveryStep]:
    """Three dependent steps per strategy."""
    if strategy == STRATEGY_DUAL:
        first_kind = dual.kind if dual is not None else original.kind
        return [
            RecoveryStep("dual-1", "Apply dual mapping to unify threshold semantics",
                         first_kind, n, "Unified threshold calculated"),
            RecoveryStep("dual-2", "Verify geometric constraints are preserved",
                         original.kind, n, "Constraints verified", ("dual-1",)),
            RecoveryStep("dual-3", "Generate unified consensus certificate",
                         original.kind, n, "Recovery complete", ("dual-1", "dual-2")),
        ]

    if strategy == STRATEGY_HIERARCHICAL:
        return [
            RecoveryStep("hier-1", "Group partitions into hierarchical levels",
                         ShapeKind.TETRAHEDRON, math.ceil(n / 2),
                         "Hierarchical structure established"),
            RecoveryStep("hier-2", "Recover consensus at each hierarchical level",
                         ShapeKind.OCTAHEDRON, math.ceil(n / 4),
                         "Level-wise consensus achieved", ("hier-1",)),
            RecoveryStep("hier-3", "Aggregate hierarchical consensus",
                         original.kind, 1, "Final consensus recovered", ("hier-1", "hier-2")),
        ]

    if strategy == STRATEGY_FEDERATED:
        return [
            RecoveryStep("fed-1", "Establish federation protocol",
                         ShapeKind.TWENTY_FOUR_CELL, n, "Federation protocol established"),
            RecoveryStep("fed-2", "Execute federated consensus",
                         ShapeKind.TWENTY_FOUR_CELL, math.ceil(n * FEDERATED_QUORUM),
                         "Federated consensus achieved", ("fed-1",)),
            RecoveryStep("fed-3", "Reconcile with original geometric type",
                         original.kind, n, "Recovery complete", ("fed-1", "fed-2")),
        ]

    raise ValueError(f"Unknown recovery strategy {strategy!r}")


def estimate_time_ms(steps: Sequence[RecoveryStep]) -> int:
    """⌈steps × BASE_STEP_TIME_MS × Σ weight(step kind)⌉ (synthetic)."""
    weight = sum(STEP_WEIGHTS.get(str(s.kind), DEFAULT_STEP_WEIGHT) for s in steps)
    return math.ceil(len(steps) * BASE_STEP_TIME_MS * weight)


def render_recovery_proof(piece_count: int, original: Shape, dual: Shape,
                          total_agree: int, total_votes: int, unified: float,
                          valid: bool) -> str:
    ratio = dual.V / original.F if original.F else 0.0
    required = math.ceil(total_votes * unified - EPS_CLOSE)
    return "\n".join([
        "Dual Recovery Proof:",
        "",
        "Given:",
        f"- Original Geometric Type: {original.name} ({original.kind.value})",
        f"- Dual Geometric Type: {dual.name} ({dual.kind.value})",
        f"- Partition Count: {piece_count}",
        f"- Total Agreements: {total_agree}/{total_votes}",
        f"- Unified Threshold: {unified * 100:.1f}%",
        "",
        "Dual Mapping:",
        f"1. Original: {original.V} vertices, {original.F} faces, "
        f"threshold {original.threshold * 100:.1f}%",
        f"2. Dual: {dual.V} vertices, {dual.F} faces, threshold {dual.threshold * 100:.1f}%",
        f"3. Face-Vertex Ratio: {dual.V}/{original.F} = {ratio:.3f}",
        "",
        "Recovery Process:",
        f"1. Collect consensus from {piece_count} partitions",
        "2. Apply dual mapping to unify threshold semantics",
        "3. Verify geometric constraints are preserved",
        "4. Generate unified consensus certificate",
        "",
        "Mathematical Verification:",
        f"- Required Agreement: ⌈{total_votes} × {unified:g}⌉ = {required}",
        f"- Actual Agreement: {total_agree}",
        f"- Consensus: {'ACHIEVED' if valid else 'FAILED'}",
        "",
        "Geometric Properties:",
        f"- Reunified invariants asserted: β = {RECOVERED_INVARIANTS}",
        "- Recovered certificate references the original shape",
    ])
