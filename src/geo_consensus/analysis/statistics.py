"""
Consensus Statistics
====================

Aggregate counts over a batch of certificates.

    average_agreement = mean(agree_count / vote_count)

A certificate with no votes contributes 0 to the mean. An empty batch gives
all zeros.
"""

from collections import Counter

import numpy as np
from typing import Sequence

from ..spec.structures import Certificate, ConsensusStatistics


def agreement_ratios(certificates: Sequence[Certificate]) -> np.ndarray:
    """agree_count / vote_count per certificate (0 for an empty vote set)."""
    return np.array([
        c.agree_count / c.vote_count if c.vote_count else 0.0
        for c in certificates
    ], dtype=float)


def consensus_statistics(certificates: Sequence[Certificate]) -> ConsensusStatistics:
    certificates = list(certificates)
    total = len(certificates)
    if total == 0:
        return ConsensusStatistics(0, 0, 0, 0.0, 0, {})

    successful = sum(1 for c in certificates if c.valid)
    partitioned = sum(
        1 for c in certificates
        if c.partition_info is not None and c.partition_info.is_partitioned
    )
    distribution = Counter(str(c.kind) for c in certificates)

    return ConsensusStatistics(
        total=total,
        successful=successful,
        failed=total - successful,
        average_agreement=float(np.mean(agreement_ratios(certificates))),
        partitioned=partitioned,
        kind_distribution=dict(distribution),
    )
