"""
Compute Service.

Orchestrates the two operations exposed at the HTTP boundary:

- ``compute_simple``: Normalizer -> Aggregator
- ``compute_with_attestation``: Normalizer -> Aggregator -> Attester -> Encoder,
  always from a zero baseline so the attestation certifies an absolute KPI

Each call is a pure pipeline over its own inputs. The only shared state is
the attester's read-only signing identity.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .aggregator import KPIResult, aggregate
from .attestation import Attestation, Attester
from .encoding import encode, to_byte_list
from .errors import ClassificationError, EarnoutTEEError, InternalError, SigningError, ValidationError
from .logging_config import audit_log
from .normalizer import normalize
from .util import to_minor_units

logger = logging.getLogger(__name__)

OPERATION_SIMPLE = "simple"
OPERATION_WITH_ATTESTATION = "with_attestation"
OPERATIONS = (OPERATION_SIMPLE, OPERATION_WITH_ATTESTATION)


@dataclass(frozen=True)
class AttestedKPI:
    kpi_result: KPIResult
    attestation: Attestation
    attestation_bytes: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kpi_result": self.kpi_result.to_dict(),
            "attestation": self.attestation.to_dict(),
            "attestation_bytes": to_byte_list(self.attestation_bytes),
        }


def validate_documents(documents: Any) -> Sequence[Any]:
    """
    Raises:
        ValidationError: unless documents is a non-empty list
    """
    if documents is None:
        raise ValidationError("Invalid request: documents is required")
    if not isinstance(documents, (list, tuple)):
        raise ValidationError("Invalid request: documents must be an array")
    if len(documents) == 0:
        raise ValidationError("Invalid request: documents array is empty")
    return documents


def parse_initial_kpi(value: Any) -> int:
    """Parse the optional simple-mode starting KPI into minor units."""
    if value is None:
        return 0
    try:
        return to_minor_units(value, allow_negative=True)
    except ValueError as e:
        raise ValidationError(f"Invalid request: initial_kpi {e}") from e


class ComputeService:
    """
    KPI computation with optional attestation.

    Args:
        attester: Signs attested results. May be None for a service that
            only serves simple computations; attested calls then fail with
            SigningError.
    """

    def __init__(self, attester: Optional[Attester] = None):
        self._attester = attester

    @property
    def attester(self) -> Optional[Attester]:
        return self._attester

    def _normalize(self, documents: Sequence[Any]):
        try:
            return normalize(documents)
        except ClassificationError as e:
            audit_log.classification_rejected(e.index, e.reason)
            raise

    def compute_simple(self, documents: Any, initial_kpi: int = 0) -> KPIResult:
        documents = validate_documents(documents)
        audit_log.compute_request(OPERATION_SIMPLE, len(documents))

        result = aggregate(self._normalize(documents), initial_kpi)
        audit_log.kpi_computed(OPERATION_SIMPLE, result.kpi, result.entries_processed)
        return result

    def compute_with_attestation(self, documents: Any) -> AttestedKPI:
        documents = validate_documents(documents)
        audit_log.compute_request(OPERATION_WITH_ATTESTATION, len(documents))

        result = aggregate(self._normalize(documents), 0)

        if self._attester is None:
            audit_log.security_event("attester_unavailable", severity="critical")
            raise SigningError("TEE attester is not configured")

        audit_log.kpi_computed(OPERATION_WITH_ATTESTATION, result.kpi, result.entries_processed)

        try:
            attestation = self._attester.attest(result, documents)
        except SigningError:
            audit_log.security_event("signing_failed", severity="critical")
            raise

        attestation_bytes = encode(attestation)
        audit_log.attestation_issued(
            attestation.computation_hash.hex(),
            attestation.kpi_value,
            attestation.timestamp,
            attestation.tee_public_key.hex(),
        )
        return AttestedKPI(kpi_result=result, attestation=attestation, attestation_bytes=attestation_bytes)

    def compute(self, documents: Any, operation: str = OPERATION_WITH_ATTESTATION,
                initial_kpi: Any = None) -> Dict[str, Any]:
        """
        Run the requested operation and build the response ``data`` payload.

        Unexpected exceptions are wrapped in InternalError; the original is
        logged with its traceback.
        """
        if operation not in OPERATIONS:
            raise ValidationError(f"Invalid request: unknown operation {operation!r}")
        try:
            if operation == OPERATION_SIMPLE:
                return {"kpi_result": self.compute_simple(documents, parse_initial_kpi(initial_kpi)).to_dict()}
            if initial_kpi not in (None, 0):
                logger.warning("initial_kpi is ignored for attested computations")
            return self.compute_with_attestation(documents).to_dict()
        except EarnoutTEEError:
            raise
        except Exception as e:
            logger.exception("unexpected failure during KPI computation")
            raise InternalError(cause=e) from e
