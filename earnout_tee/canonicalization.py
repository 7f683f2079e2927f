"""
Canonical JSON encoding of financial documents.

Two honest executions over the same document array must hash identical
bytes, so incidental formatting differences are removed before hashing:

- Object keys sorted lexicographically (Unicode code point order)
- No whitespace between tokens (compact form)
- UTF-8 encoding, no BOM, no ASCII escaping
- Integral floats written as integers (``50000.0`` -> ``50000``)
- Other floats written in Python's shortest round-trip form
- Lowercase true/false, null
- Arrays preserve order
"""

import json
import math
from typing import Any, Dict, List, Union


def canonicalize(obj: Any) -> bytes:
    """
    Convert an object to canonical JSON bytes.

    Raises:
        ValueError: for values with no JSON representation (NaN, infinity,
            non-string keys, arbitrary objects)
    """
    canonical = _canonicalize_value(obj)
    return json.dumps(
        canonical, separators=(',', ':'), ensure_ascii=False, allow_nan=False
    ).encode('utf-8')


def canonicalize_str(obj: Any) -> str:
    """Return canonical JSON as string."""
    return canonicalize(obj).decode('utf-8')


def _canonicalize_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    elif isinstance(value, int):
        return value
    elif isinstance(value, float):
        return _canonicalize_float(value)
    elif isinstance(value, dict):
        return _canonicalize_object(value)
    elif isinstance(value, (list, tuple)):
        return _canonicalize_array(value)
    else:
        raise ValueError(f"Cannot canonicalize type: {type(value)}")


def _canonicalize_float(value: float) -> Union[int, float]:
    if not math.isfinite(value):
        raise ValueError(f"Cannot canonicalize non-finite number: {value!r}")
    if value.is_integer():
        return int(value)
    return value


def _canonicalize_object(obj: Dict[str, Any]) -> Dict[str, Any]:
    for k in obj:
        if not isinstance(k, str):
            raise ValueError(f"Object keys must be strings, got {type(k)}")
    return {k: _canonicalize_value(obj[k]) for k in sorted(obj.keys())}


def _canonicalize_array(arr: Union[List, tuple]) -> List:
    return [_canonicalize_value(item) for item in arr]
