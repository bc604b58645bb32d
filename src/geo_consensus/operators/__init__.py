"""Graph operators - incidence matrix, consensus graph, Betti numbers."""

from .incidence import (
    build_d0,
    build_adjacency,
    count_connected_components,
    cycle_space_dimension,
    consensus_edges,
    build_consensus_graph,
)

from .betti import (
    compute_invariants,
    is_partitioned,
    piece_count,
    connected_components,
    verify_invariants,
    SimplicialComplex,
    build_simplicial_complex,
)
