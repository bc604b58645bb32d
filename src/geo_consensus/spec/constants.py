"""
Global constants for geo_consensus
==================================

All tolerances and magic numbers in ONE place.
"""

# Numerical tolerances
EPS_CLOSE = 1e-10      # For "are these equal?" (threshold products like 4 × 0.75)
EPS_RANK = 1e-8        # Singular value cutoff for rank(d₀)

# Euler characteristic of a closed 3D polyhedron surface
EULER_CHI_3D = 2

# Cycle-count slack when checking β₁ = E - V + 1 on connected graphs
BETA_1_TOLERANCE = 1

# Context tiers
CONTEXT_LOCAL = "local"
CONTEXT_FEDERATION = "federation"
CONTEXT_GLOBAL = "global"
CONTEXTS = (CONTEXT_LOCAL, CONTEXT_FEDERATION, CONTEXT_GLOBAL)

MAX_DIMENSION = 4

# Keyword cutoffs (threshold >= cutoff → keyword prefix)
# NOTE: compared top-down, first match wins.
KEYWORD_CUTOFFS = (
    (1.0, "MUST"),
    (0.8, "SHOULD"),
)
KEYWORD_DEFAULT = "MAY"

# Recovery strategy cutoffs (piece count <= cutoff → strategy)
STRATEGY_DUAL = "dual"
STRATEGY_HIERARCHICAL = "hierarchical"
STRATEGY_FEDERATED = "federated"
STRATEGY_CUTOFFS = (
    (4, STRATEGY_DUAL),
    (8, STRATEGY_HIERARCHICAL),
)

# Recovery plan timing (synthetic, milliseconds)
BASE_STEP_TIME_MS = 1000
DEFAULT_STEP_WEIGHT = 1.0
STEP_WEIGHTS = {            # keyed by shape kind value
    "TWENTY_FOUR_CELL": 2.0,
    "OCTAHEDRON": 1.5,
}
FEDERATED_QUORUM = 0.8     # share of pieces in the federated consensus step

# Upper bound for a sane dual threshold-mapping factor
MAX_THRESHOLD_MAPPING = 10.0

# Invariants asserted for a recovered (reunified) certificate: (β₀, β₁, β₂)
RECOVERED_INVARIANTS = (1, 0, 0)

# Identifier prefixes
CERT_PREFIX = "cert"
PARTITION_CERT_PREFIX = "partition-cert"
RECOVERY_CERT_PREFIX = "recovery-cert"
RECOVERY_PLAN_PREFIX = "recovery-plan"
ID_RANDOM_BYTES = 3     # hex suffix length = 2 × this

# Vote defaults
DEFAULT_VOTE_WEIGHT = 1.0
