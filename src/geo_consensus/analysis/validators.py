"""
Certificate Integrity Checks
============================

Recompute what a certificate claims from what it carries.

Checks (check_certificate):
    - id and kind present, shape resolved
    - agree_count = number of agreeing votes
    - required_count matches the threshold in force
    - valid matches (non-empty votes AND agree ≥ required)

Threshold in force:
    verifier certificates  → catalog threshold, required = ⌈V × t⌉
    recovery certificates  → unified threshold, required = ⌈N × t⌉
"""

import math

from ..catalog import required_agreement
from ..spec.constants import EPS_CLOSE, RECOVERY_CERT_PREFIX
from ..spec.structures import Certificate


def expected_required(certificate: Certificate) -> int:
    if certificate.certificate_id.startswith(RECOVERY_CERT_PREFIX):
        return math.ceil(certificate.vote_count * certificate.threshold - EPS_CLOSE)
    return required_agreement(certificate.shape)


def check_certificate(certificate: Certificate, strict: bool = False) -> tuple[bool, list[str]]:
    """
    Validate a certificate against its own votes and shape.

    Args:
        certificate: the certificate to check
        strict: If True, raise ValueError on any error

    Returns:
        (is_valid, list of error messages)
    """
    errors = []

    if not certificate.certificate_id:
        errors.append("missing certificate_id")
    if certificate.kind is None or certificate.shape is None:
        errors.append(f"unresolved shape for kind {certificate.kind!r}")
    else:
        actual = sum(1 for v in certificate.votes if v.agrees)
        if actual != certificate.agree_count:
            errors.append(f"agree_count {certificate.agree_count} != {actual} agreeing votes")

        required = expected_required(certificate)
        if required != certificate.required_count:
            errors.append(f"required_count {certificate.required_count} != expected {required}")

        valid = bool(certificate.votes) and certificate.agree_count >= required
        if valid != certificate.valid:
            errors.append(f"valid={certificate.valid} but recomputed {valid}")

    if errors and strict:
        raise ValueError(f"Certificate {certificate.certificate_id!r} invalid: {errors}")

    return (len(errors) == 0, errors)


def validate_certificate(certificate: Certificate) -> bool:
    """Boolean form of check_certificate. Never raises."""
    ok, _ = check_certificate(certificate, strict=False)
    return ok
