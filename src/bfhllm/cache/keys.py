"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Deterministic cache key derivation.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

KEY_DIGEST_SIZE = 8


def generate_cache_key(*args: Any, **values: Any) -> str:
    """
    Hash a bag of named values into a fixed-width hex key.

    Serialization sorts mapping keys, so equal bags always produce equal
    keys regardless of argument order. A single positional mapping may be
    passed instead of keyword arguments. Exclude volatile inputs such as
    timestamps from the bag.

    The digest is an 8-byte blake2b from `hashlib`, which is stable across
    processes and needs no extra dependency. Keys only need collision
    resistance, not secrecy, so its cryptographic strength is incidental.
    """
    if args:
        if len(args) != 1 or values or not isinstance(args[0], dict):
            raise TypeError("generate_cache_key accepts one mapping or keyword values")
        payload = args[0]
    else:
        payload = values

    normalized = json.dumps(
        payload,
        ensure_ascii=True,
        sort_keys=True,
        separators=(",", ":"),
        default=_encode_value,
    )
    digest = hashlib.blake2b(normalized.encode("utf-8"), digest_size=KEY_DIGEST_SIZE)
    return digest.hexdigest()


def _encode_value(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if hasattr(value, "__dataclass_fields__"):
        return {name: getattr(value, name) for name in value.__dataclass_fields__}
    return str(value)
