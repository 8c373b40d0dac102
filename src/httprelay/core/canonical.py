"""
Canonical JSON serialization for request fingerprinting.

Two payloads with the same key-value pairs must serialize identically,
whatever their insertion order. The canonical form:
- Sorts keys recursively
- Normalizes unicode strings (NFC)
- Drops insignificant whitespace
- Encodes bytes as base64 under a type tag

Mapping keys must be strings.
"""

import base64
import hashlib
import json
import unicodedata
from typing import Any, Mapping


BYTES_TAG = "$bytes"


def canonicalize(obj: Any) -> str:
    """
    Canonicalize a Python object to a stable JSON string.
    
    Args:
        obj: The object to canonicalize
        
    Returns:
        Canonical JSON string
        
    Example:
        >>> canonicalize({"b": 1, "a": [2, {"d": 3, "c": 4}]})
        '{"a":[2,{"c":4,"d":3}],"b":1}'
    """
    return json.dumps(
        _normalize_for_canonical(obj),
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=_canonical_default,
    )


def _normalize_for_canonical(obj: Any) -> Any:
    """Recursively normalize an object for canonical serialization."""
    if obj is None:
        return None
    
    if isinstance(obj, str):
        return unicodedata.normalize("NFC", obj)
    
    if isinstance(obj, bool):
        # bool before int (bool is subclass of int)
        return obj
    
    if isinstance(obj, (int, float)):
        return obj
    
    if isinstance(obj, bytes):
        return {BYTES_TAG: base64.b64encode(obj).decode("ascii")}
    
    if isinstance(obj, Mapping):
        normalized = {}
        for k, v in obj.items():
            # 1 and "1" would otherwise share a key
            if not isinstance(k, str):
                raise TypeError(f"Canonical keys must be strings, got {type(k).__name__}: {k!r}")
            normalized[unicodedata.normalize("NFC", k)] = _normalize_for_canonical(v)
        return normalized
    
    if isinstance(obj, (list, tuple)):
        return [_normalize_for_canonical(item) for item in obj]
    
    return unicodedata.normalize("NFC", str(obj))


def _canonical_default(obj: Any) -> Any:
    """Default handler for JSON serialization of non-standard types."""
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    return str(obj)


def digest(obj: Any, algorithm: str = "md5") -> str:
    """
    Hex digest of the canonical form of an object.
    
    Args:
        obj: The object to digest
        algorithm: hashlib algorithm name
        
    Returns:
        Hex-encoded digest string
    """
    return hashlib.new(algorithm, canonicalize(obj).encode("utf-8")).hexdigest()
