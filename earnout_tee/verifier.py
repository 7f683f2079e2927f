"""
Attestation verification.

Lets an off-chain party check an attestation the same way the on-chain
verifier does: the Ed25519 signature over the canonical message, and
optionally the signer key, the KPI value, the binding to a document array
and the freshness of the timestamp.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from .attestation import Attestation, computation_hash
from .encoding import decode
from .keys import verify_ed25519
from .util import constant_time_compare, now_millis


@dataclass
class VerificationResult:
    """Result of verifying an attestation."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    attestation: Optional[Attestation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "attestation": self.attestation.to_dict() if self.attestation else None,
        }


def verify_attestation(
    attestation: Attestation,
    trusted_public_key: Optional[bytes] = None,
    expected_kpi: Optional[int] = None,
    documents: Optional[Sequence[Any]] = None,
    max_age_ms: Optional[int] = None,
    now_ms: Optional[int] = None,
) -> VerificationResult:
    """
    Verify an attestation.

    Args:
        attestation: The decoded attestation
        trusted_public_key: Registered TEE key the attestation must carry
        expected_kpi: KPI value in minor units the attestation must carry
        documents: Document array whose computation hash must match
        max_age_ms: Maximum allowed distance between timestamp and now
        now_ms: Current time override, in ms

    Returns:
        VerificationResult listing every failed check
    """
    errors = []

    if not verify_ed25519(attestation.signature, attestation.signing_message(), attestation.tee_public_key):
        errors.append("invalid signature")

    if trusted_public_key is not None and not constant_time_compare(
        attestation.tee_public_key, trusted_public_key
    ):
        errors.append("untrusted tee_public_key")

    if expected_kpi is not None and attestation.kpi_value != expected_kpi:
        errors.append(f"kpi_value mismatch: expected {expected_kpi}, got {attestation.kpi_value}")

    if documents is not None:
        expected_hash = computation_hash(documents, attestation.kpi_value)
        if not constant_time_compare(expected_hash, attestation.computation_hash):
            errors.append("computation_hash does not match documents")

    if max_age_ms is not None:
        now = now_millis() if now_ms is None else now_ms
        if abs(now - attestation.timestamp) > max_age_ms:
            errors.append(f"timestamp outside freshness window of {max_age_ms} ms")

    return VerificationResult(valid=not errors, errors=errors, attestation=attestation)


def verify_attestation_bytes(data: Union[bytes, Sequence[int]], **kwargs) -> VerificationResult:
    """
    Decode and verify attestation bytes.

    Raises:
        EncodingError: if the bytes cannot be decoded
    """
    return verify_attestation(decode(data), **kwargs)
