"""Constants, catalog data, records and errors. Depends on nothing else."""

from .constants import (
    EPS_CLOSE,
    EPS_RANK,
    EULER_CHI_3D,
    CONTEXT_LOCAL,
    CONTEXT_FEDERATION,
    CONTEXT_GLOBAL,
    CONTEXTS,
    STRATEGY_DUAL,
    STRATEGY_HIERARCHICAL,
    STRATEGY_FEDERATED,
    BASE_STEP_TIME_MS,
    RECOVERED_INVARIANTS,
)

from .errors import (
    GeoConsensusError,
    UnknownShapeKind,
    NoDualAvailable,
    InconsistentPartitionInputs,
    EmptyPartitionInput,
    IntegrityViolation,
    CatalogIntegrityError,
)

from .shapes import ShapeKind, Shape, SHAPES, validate_catalog, all_shapes

from .structures import (
    Vote,
    validate_votes,
    TopologicalInvariants,
    PartitionInfo,
    Certificate,
    ConsensusResult,
    PartitionSummary,
    PartitionCertificate,
    PartitionImpact,
    DualMapping,
    RecoveryResult,
    RecoveryStep,
    RecoveryPlan,
    ConsensusStatistics,
    new_id,
    utc_timestamp,
)
