"""
geo_consensus - Geometric Consensus with Partition Detection and Dual Recovery
==============================================================================

Vote sets are checked against the vertex count and threshold of a catalog
shape. Betti numbers of the agreement graph detect splits, and a shape's
dual fixes the threshold used to reunify the pieces.

Layers:
    spec       - constants, shape catalog data, records, errors (no deps)
    builders   - shape skeletons from coordinates
    operators  - incidence matrix, consensus graph, Betti numbers
    consensus  - verifier, partition detector, dual recovery
    analysis   - statistics and certificate checks

Usage:
    from geo_consensus import GeometricConsensus, Vote, ShapeKind

    votes = [Vote(f"v{i}", f"node-{i}", True) for i in range(4)]
    result = GeometricConsensus().verify(votes, ShapeKind.TETRAHEDRON)
    assert result.success
"""

__version__ = "0.1.0"

import sys

import numpy as np
import scipy


def _version_tuple(text):
    """Leading (major, minor) of a version string: "1.11.4" → (1, 11)."""
    return tuple(int(p) for p in text.split(".")[:2] if p.isdigit())


if sys.version_info < (3, 9):
    raise ImportError(f"geo_consensus requires Python >= 3.9, got {sys.version}")

# csgraph.connected_components on sparse adjacency
if _version_tuple(scipy.__version__) < (1, 11):
    raise ImportError(f"geo_consensus requires scipy >= 1.11, got {scipy.__version__}")

if _version_tuple(np.__version__) < (1, 20):
    raise ImportError(f"geo_consensus requires numpy >= 1.20, got {np.__version__}")

from .spec import (
    ShapeKind,
    Shape,
    SHAPES,
    Vote,
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
    GeoConsensusError,
    UnknownShapeKind,
    NoDualAvailable,
    InconsistentPartitionInputs,
    EmptyPartitionInput,
    IntegrityViolation,
    CatalogIntegrityError,
)

from .catalog import (
    lookup,
    dual_of,
    required_agreement,
    is_satisfied,
    keyword_for,
    shapes_by_context,
    shapes_by_vertex_range,
    suitable_shapes,
    shape_for_vertex_count,
)

from .operators import compute_invariants, is_partitioned, piece_count

from .consensus import GeometricConsensus, PartitionDetector, DualPartitionRecovery, verify

from .analysis import consensus_statistics, validate_certificate
