"""
Analysis functions - depend on consensus and spec layers.

Includes:
- statistics: batch counts and mean agreement
- validators: certificate self-consistency
"""

from .statistics import agreement_ratios, consensus_statistics
from .validators import expected_required, check_certificate, validate_certificate
