"""
Utility functions for the earn-out KPI attestation service.

Provides fixed-point money parsing, hashing, encoding, and time utilities.
"""

import base64
import hashlib
import hmac
import math
import time
from decimal import Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP
from typing import Any, Union

# Minor units (cents) per currency unit. All KPI arithmetic is done on
# integers in this scale.
MINOR_UNITS_PER_UNIT = 100

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
UINT64_MAX = 2 ** 64 - 1

_MINOR_QUANTUM = Decimal(1) / Decimal(MINOR_UNITS_PER_UNIT)
# Largest magnitude, in currency units, whose minor units still fit in int64.
_MAX_UNITS = Decimal(INT64_MAX) / Decimal(MINOR_UNITS_PER_UNIT)


def to_minor_units(value: Any, allow_negative: bool = False) -> int:
    """
    Parse a monetary value into integer minor units.

    Accepts ints, floats and numeric strings. Floats go through ``repr`` so
    ``0.1`` parses as exactly ten cents. Precision finer than one minor unit
    is rounded half-up.

    Raises:
        ValueError: if the value is not a finite number, is a bool, or is
            negative while ``allow_negative`` is False, or does not fit
            in int64 minor units.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a numeric amount: {value!r}")

    if isinstance(value, int):
        dec = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"amount must be finite: {value!r}")
        dec = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            dec = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"not a numeric amount: {value!r}") from None
        if not dec.is_finite():
            raise ValueError(f"amount must be finite: {value!r}")
    else:
        raise ValueError(f"not a numeric amount: {value!r}")

    if dec < 0 and not allow_negative:
        raise ValueError(f"amount must be non-negative: {value!r}")

    if abs(dec) > _MAX_UNITS:
        raise ValueError(f"amount out of range: {value!r}")
    try:
        minor = int((dec * MINOR_UNITS_PER_UNIT).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except DecimalException:
        raise ValueError(f"amount out of range: {value!r}") from None
    if minor < INT64_MIN or minor > INT64_MAX:
        raise ValueError(f"amount out of range: {value!r}")
    return minor


def to_display_number(minor: int) -> Union[int, float]:
    """
    Convert minor units to a JSON number in currency units.

    Only used when rendering responses; never before hashing or signing.
    """
    units, rem = divmod(minor, MINOR_UNITS_PER_UNIT)
    if rem == 0:
        return units
    return float(Decimal(minor) * _MINOR_QUANTUM)


def sha256_bytes(data: Union[bytes, str]) -> bytes:
    """Compute SHA-256 hash and return as bytes."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).digest()


def now_millis() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def b64e(b: bytes) -> str:
    """Base64 encode bytes to string."""
    return base64.b64encode(b).decode('ascii')


def b64d(s: str) -> bytes:
    """Base64 decode string to bytes."""
    return base64.b64decode(s.encode('ascii'))


def hex_to_bytes(s: str, expected_length: int, field_name: str) -> bytes:
    """
    Decode a hex string of a fixed byte length.

    Raises:
        ValueError: on invalid hex or wrong length
    """
    try:
        raw = bytes.fromhex(s.strip())
    except (ValueError, AttributeError):
        raise ValueError(f"{field_name} must be valid hexadecimal") from None
    if len(raw) != expected_length:
        raise ValueError(f"{field_name} must be {expected_length} bytes, got {len(raw)}")
    return raw


def constant_time_compare(a: Union[str, bytes], b: Union[str, bytes]) -> bool:
    """
    Compare two strings/bytes in constant time to prevent timing attacks.
    """
    if isinstance(a, str):
        a = a.encode('utf-8')
    if isinstance(b, str):
        b = b.encode('utf-8')
    return hmac.compare_digest(a, b)
