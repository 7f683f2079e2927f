"""
Attestation Encoder.

Fixed 144-byte big-endian layout read directly by the on-chain verifier:

    offset  size  field
    0       32    computation_hash
    32      8     kpi_value        (signed)
    40      8     timestamp        (unsigned, ms since epoch)
    48      32    tee_public_key
    80      64    signature

Any change here is a breaking protocol change.
"""

import struct
from typing import Iterable, Union

from .attestation import HASH_LENGTH, PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH, Attestation
from .errors import EncodingError
from .util import INT64_MAX, INT64_MIN

ATTESTATION_LAYOUT = struct.Struct(">32sqQ32s64s")
ATTESTATION_LENGTH = ATTESTATION_LAYOUT.size  # 144

_FIXED_FIELDS = (
    ("computation_hash", HASH_LENGTH),
    ("tee_public_key", PUBLIC_KEY_LENGTH),
    ("signature", SIGNATURE_LENGTH),
)


def encode(attestation: Attestation) -> bytes:
    """
    Serialize an attestation this process produced.

    Raises:
        EncodingError: (internal) if a field does not fit its slot
    """
    for name, size in _FIXED_FIELDS:
        value = getattr(attestation, name)
        if not isinstance(value, (bytes, bytearray)) or len(value) != size:
            raise EncodingError(f"{name} must be {size} bytes", caller_error=False)
    if not INT64_MIN <= attestation.kpi_value <= INT64_MAX:
        raise EncodingError(f"kpi_value out of int64 range: {attestation.kpi_value}", caller_error=False)
    # The data model types timestamp as int64, so the top half of the uint64 slot is unused.
    if not 0 <= attestation.timestamp <= INT64_MAX:
        raise EncodingError(f"timestamp out of range: {attestation.timestamp}", caller_error=False)

    return ATTESTATION_LAYOUT.pack(
        bytes(attestation.computation_hash),
        attestation.kpi_value,
        attestation.timestamp,
        bytes(attestation.tee_public_key),
        bytes(attestation.signature),
    )


def decode(data: Union[bytes, bytearray, Iterable[int]]) -> Attestation:
    """
    Parse attestation bytes, e.g. as supplied by a caller.

    Accepts raw bytes or a JSON-style array of byte values.

    Raises:
        EncodingError: (caller) on wrong length, non-byte values, or a
            timestamp outside the int64 range
    """
    if isinstance(data, (int, str)):
        raise EncodingError("attestation bytes must be a byte string or an array of byte values")
    if not isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data)
        except (TypeError, ValueError) as e:
            raise EncodingError(f"attestation bytes must be integers in 0..255: {e}") from e

    if len(data) != ATTESTATION_LENGTH:
        raise EncodingError(
            f"attestation must be exactly {ATTESTATION_LENGTH} bytes, got {len(data)}"
        )

    digest, kpi_value, timestamp, public_key, signature = ATTESTATION_LAYOUT.unpack(bytes(data))
    if timestamp > INT64_MAX:
        raise EncodingError(f"timestamp out of range: {timestamp}")

    return Attestation(
        kpi_value=kpi_value,
        computation_hash=digest,
        timestamp=timestamp,
        tee_public_key=public_key,
        signature=signature,
    )


def to_byte_list(data: bytes) -> list:
    """Render bytes as the JSON array of byte values the HTTP API returns."""
    return list(data)
