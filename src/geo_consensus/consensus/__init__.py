"""Consensus layer - verifier, partition detector, dual recovery."""

from .verifier import GeometricConsensus, render_proof, verify

from .partition import (
    DECOMPOSITION_TABLE,
    PartitionDetector,
    decompose,
    generic_decomposition,
    render_decomposition_proof,
    validate_decomposition_table,
)

from .recovery import (
    DualPartitionRecovery,
    build_recovery_steps,
    check_piece_certificates,
    estimate_time_ms,
    render_recovery_proof,
)
