"""
Attestation Signer (mock trusted execution).

Binds a KPI result and the exact document array it was computed from to a
signed, timestamped claim. The signed message layout is consumed by the
on-chain verifier and must not change:

    computation_hash = SHA-256(CJE(documents) || int64_be(kpi))
    message          = computation_hash || int64_be(kpi) || uint64_be(timestamp_ms)

The SoftwareAttester below keeps its key in ordinary process memory and
produces no remote-attestation quote. It is a stand-in for a hardware
enclave and can be swapped for one behind the Attester interface.
"""

import logging
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from .aggregator import KPIResult
from .canonicalization import canonicalize
from .errors import EncodingError, SigningError
from .keys import SigningIdentity
from .util import INT64_MAX, INT64_MIN, UINT64_MAX, now_millis, sha256_bytes, to_display_number

logger = logging.getLogger(__name__)

HASH_LENGTH = 32
PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64


@dataclass(frozen=True)
class Attestation:
    """A signed claim over (kpi_value, computation_hash, timestamp)."""
    kpi_value: int
    computation_hash: bytes
    timestamp: int
    tee_public_key: bytes
    signature: bytes

    def signing_message(self) -> bytes:
        return signing_message(self.computation_hash, self.kpi_value, self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kpi_value": to_display_number(self.kpi_value),
            "kpi_value_minor_units": self.kpi_value,
            "computation_hash": self.computation_hash.hex(),
            "timestamp": self.timestamp,
            "tee_public_key": self.tee_public_key.hex(),
            "signature": self.signature.hex(),
        }


def encode_int64_be(value: int) -> bytes:
    if value < INT64_MIN or value > INT64_MAX:
        raise EncodingError(f"value out of int64 range: {value}", caller_error=False)
    return struct.pack(">q", value)


def encode_uint64_be(value: int) -> bytes:
    if value < 0 or value > UINT64_MAX:
        raise EncodingError(f"value out of uint64 range: {value}", caller_error=False)
    return struct.pack(">Q", value)


def computation_hash(documents: Sequence[Any], kpi: int) -> bytes:
    """
    Hash the documents in submission order together with the KPI.

    Reordering the same documents changes the hash: the attestation certifies
    this exact request, not the multiset of documents.
    """
    try:
        canonical = canonicalize(list(documents))
    except ValueError as e:
        raise EncodingError(f"documents have no canonical JSON form: {e}") from e
    return sha256_bytes(canonical + encode_int64_be(kpi))


def signing_message(computation_hash_: bytes, kpi: int, timestamp: int) -> bytes:
    return computation_hash_ + encode_int64_be(kpi) + encode_uint64_be(timestamp)


class Attester(ABC):
    """Anything that can turn a KPI result into a signed Attestation."""

    @abstractmethod
    def attest(self, kpi_result: KPIResult, documents: Sequence[Any]) -> Attestation:
        """
        Produce an Attestation binding ``kpi_result`` to ``documents``.

        Raises:
            SigningError: if the signing identity is unavailable
        """

    @property
    @abstractmethod
    def public_key(self) -> bytes:
        """The 32-byte public key attestations verify under."""


class SoftwareAttester(Attester):
    """
    In-process Ed25519 attester.

    The identity is shared read-only across requests; the clock is read once
    per attestation.
    """

    def __init__(self, identity: Optional[SigningIdentity], clock: Callable[[], int] = now_millis):
        self._identity = identity
        self._clock = clock

    @property
    def public_key(self) -> bytes:
        if self._identity is None:
            raise SigningError("TEE signing identity is not initialized")
        return self._identity.public_key

    def attest(self, kpi_result: KPIResult, documents: Sequence[Any]) -> Attestation:
        identity = self._identity
        if identity is None:
            raise SigningError("TEE signing identity is not initialized")

        digest = computation_hash(documents, kpi_result.kpi)
        timestamp = self._clock()
        message = signing_message(digest, kpi_result.kpi, timestamp)

        try:
            signature = identity.sign(message)
        except Exception as e:
            raise SigningError(f"signing failed: {e}") from e

        logger.debug("signed attestation over %s at %d", digest.hex(), timestamp)
        return Attestation(
            kpi_value=kpi_result.kpi,
            computation_hash=digest,
            timestamp=timestamp,
            tee_public_key=identity.public_key,
            signature=signature,
        )
