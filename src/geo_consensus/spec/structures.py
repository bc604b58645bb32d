"""
Record Contract - the values every component passes around
==========================================================

All records are frozen dataclasses. A certificate never changes after it is
issued; recovery produces a NEW certificate.

Sequence fields (votes, components, steps) are stored as tuples so a record
cannot be mutated through an aliased list.
"""

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional, Sequence, Tuple

from .constants import DEFAULT_VOTE_WEIGHT, ID_RANDOM_BYTES
from .shapes import Shape, ShapeKind


def new_id(prefix: str) -> str:
    """
    Generate a certificate / plan identifier.

    Format: <prefix>-<epoch millis>-<random hex>
    """
    millis = int(time.time() * 1000)
    return f"{prefix}-{millis}-{secrets.token_hex(ID_RANDOM_BYTES)}"


def utc_timestamp() -> str:
    """ISO-8601 UTC issuance time (advisory metadata only)."""
    return datetime.now(timezone.utc).isoformat()


def _freeze(obj, name, value):
    object.__setattr__(obj, name, tuple(value))


# =============================================================================
# Votes
# =============================================================================

@dataclass(frozen=True)
class Vote:
    """One participant's decision."""
    id: str
    name: str
    agrees: bool
    justification: Optional[str] = None
    # NOTE: weight is carried for the protocol layer only. Threshold
    # arithmetic counts votes, it never sums weights.
    weight: float = DEFAULT_VOTE_WEIGHT


def validate_votes(votes: Sequence[Vote], strict: bool = True) -> tuple[bool, list[str]]:
    """
    Validate a vote set.

    Args:
        votes: the vote list
        strict: If True, raise ValueError on any error

    Returns:
        (is_valid, list of error messages)
    """
    errors = []
    seen = set()

    for idx, vote in enumerate(votes):
        if not isinstance(vote, Vote):
            errors.append(f"Vote {idx}: expected Vote, got {type(vote).__name__}")
            continue
        if not vote.id:
            errors.append(f"Vote {idx}: empty id")
        if vote.id in seen:
            errors.append(f"Vote {idx}: duplicate id {vote.id!r}")
        seen.add(vote.id)
        if not isinstance(vote.agrees, bool):
            errors.append(f"Vote {idx}: agrees must be bool, got {vote.agrees!r}")
        if vote.weight < 0:
            errors.append(f"Vote {idx}: negative weight {vote.weight}")

    if errors and strict:
        raise ValueError(f"Vote set contract violation: {errors}")

    return (len(errors) == 0, errors)


# =============================================================================
# Topology
# =============================================================================

@dataclass(frozen=True)
class TopologicalInvariants:
    """Betti numbers of a graph: pieces, independent cycles, voids."""
    beta_0: int
    beta_1: int
    beta_2: int = 0

    @property
    def is_partitioned(self) -> bool:
        return self.beta_0 > 1

    @property
    def piece_count(self) -> int:
        return self.beta_0

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.beta_0, self.beta_1, self.beta_2)


@dataclass(frozen=True)
class PartitionInfo:
    """Split summary embedded in a certificate."""
    is_partitioned: bool
    partition_count: int


# =============================================================================
# Certificates
# =============================================================================

@dataclass(frozen=True)
class Certificate:
    """
    Output of a consensus check.

    INVARIANTS (when shape is resolved and votes non-empty):
        required_count = ⌈V × threshold⌉
        valid ⇔ agree_count ≥ required_count

    shape is None only for error certificates whose kind did not resolve.
    """
    certificate_id: str
    kind: Any  # ShapeKind, or the raw identifier when it failed to resolve
    shape: Optional[Shape]
    votes: Tuple[Vote, ...]
    agree_count: int
    required_count: int
    threshold: float
    valid: bool
    proof: str
    timestamp: str
    invariants: Optional[TopologicalInvariants] = None
    partition_info: Optional[PartitionInfo] = None

    def __post_init__(self):
        _freeze(self, 'votes', self.votes)

    @property
    def vote_count(self) -> int:
        return len(self.votes)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready mapping (for logs and for transport collaborators)."""
        kind = self.kind.value if isinstance(self.kind, ShapeKind) else str(self.kind)
        out = {
            'certificate_id': self.certificate_id,
            'kind': kind,
            'shape': None,
            'votes': [
                {
                    'id': v.id,
                    'name': v.name,
                    'agrees': v.agrees,
                    'justification': v.justification,
                    'weight': v.weight,
                }
                for v in self.votes
            ],
            'agree_count': self.agree_count,
            'required_count': self.required_count,
            'threshold': self.threshold,
            'valid': self.valid,
            'proof': self.proof,
            'timestamp': self.timestamp,
            'invariants': None,
            'partition_info': None,
        }
        if self.shape is not None:
            out['shape'] = {
                'kind': self.shape.kind.value,
                'name': self.shape.name,
                'V': self.shape.V,
                'E': self.shape.E,
                'F': self.shape.F,
                'threshold': self.shape.threshold,
                'dual': self.shape.dual.value if self.shape.dual else None,
                'is_self_dual': self.shape.is_self_dual,
                'dimension': self.shape.dimension,
                'context': self.shape.context,
            }
        if self.invariants is not None:
            out['invariants'] = {
                'beta_0': self.invariants.beta_0,
                'beta_1': self.invariants.beta_1,
                'beta_2': self.invariants.beta_2,
            }
        if self.partition_info is not None:
            out['partition_info'] = {
                'is_partitioned': self.partition_info.is_partitioned,
                'partition_count': self.partition_info.partition_count,
            }
        return out


@dataclass(frozen=True)
class ConsensusResult:
    """Certificate plus a one-line human summary."""
    certificate: Certificate
    success: bool
    message: str


# =============================================================================
# Partitions
# =============================================================================

@dataclass(frozen=True)
class PartitionSummary:
    """
    Output of partition detection.

    INVARIANT: partition_votes are pairwise disjoint and their union is the
    input vote set (see PartitionDetector.validate).
    """
    is_partitioned: bool
    partition_count: int  # = β₀
    components: Tuple[FrozenSet[str], ...]
    invariants: TopologicalInvariants
    original_kind: ShapeKind
    decomposed_kind: Optional[ShapeKind]
    partition_votes: Tuple[Tuple[Vote, ...], ...]

    def __post_init__(self):
        _freeze(self, 'components', (frozenset(c) for c in self.components))
        _freeze(self, 'partition_votes', (tuple(p) for p in self.partition_votes))


@dataclass(frozen=True)
class PartitionCertificate:
    """Original certificate + partition summary + decomposition narrative."""
    certificate_id: str
    original_certificate: Certificate
    summary: PartitionSummary
    decomposition_proof: str
    timestamp: str


@dataclass(frozen=True)
class PartitionImpact:
    """Per-piece requirement analysis under the decomposed shape."""
    consensus_possible: bool
    required_per_partition: Tuple[int, ...]
    total_required: int
    assessment: str

    def __post_init__(self):
        _freeze(self, 'required_per_partition', self.required_per_partition)


# =============================================================================
# Recovery
# =============================================================================

@dataclass(frozen=True)
class DualMapping:
    original: Any
    dual: Any
    threshold_mapping: float


@dataclass(frozen=True)
class RecoveryResult:
    """
    Output of dual recovery.

    A failed recovery still carries a certificate (no votes, valid=False) so
    callers handle both outcomes the same way. error holds the precondition
    failure, if any.
    """
    success: bool
    certificate: Certificate
    proof: str
    dual_mapping: DualMapping
    timestamp: str
    error: Optional[Exception] = field(default=None, compare=False)


@dataclass(frozen=True)
class RecoveryStep:
    step_id: str
    description: str
    kind: ShapeKind
    required_participants: int
    expected_outcome: str
    dependencies: Tuple[str, ...] = ()

    def __post_init__(self):
        _freeze(self, 'dependencies', self.dependencies)


@dataclass(frozen=True)
class RecoveryPlan:
    """Descriptive recovery plan. Does not affect any certificate."""
    plan_id: str
    piece_certificates: Tuple[Certificate, ...]
    original_kind: ShapeKind
    strategy: str  # dual | hierarchical | federated
    estimated_time_ms: int
    steps: Tuple[RecoveryStep, ...]

    def __post_init__(self):
        _freeze(self, 'piece_certificates', self.piece_certificates)
        _freeze(self, 'steps', self.steps)


# =============================================================================
# Statistics
# =============================================================================

@dataclass(frozen=True)
class ConsensusStatistics:
    total: int
    successful: int
    failed: int
    average_agreement: float
    partitioned: int
    kind_distribution: Dict[str, int]
