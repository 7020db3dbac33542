"""
Canonical JSON encoding and hash commitments for vault snapshots.

The encoded form is fixed: UTF-8, sorted keys, no whitespace. Values are
limited to what `state_to_dict` produces (str, int, bool, None, list, dict
with str keys), so two equal states always encode to the same bytes.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

COMMITMENT_PREFIX = b"miniyield"
MAX_DEPTH = 32


def _check(value: Any, path: str, depth: int) -> None:
    if depth > MAX_DEPTH:
        raise ValueError(f"{path}: nesting deeper than {MAX_DEPTH}")
    if value is None or isinstance(value, (bool, int)):
        return
    if isinstance(value, str):
        if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value):
            raise TypeError(f"{path}: lone surrogate in string")
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check(item, f"{path}[{i}]", depth + 1)
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"{path}: non-str key {key!r}")
            _check(key, f"{path}.<key>", depth + 1)
            _check(item, f"{path}.{key}", depth + 1)
        return
    raise TypeError(f"{path}: {type(value).__name__} is not encodable")


def canonical_json_bytes(value: Any) -> bytes:
    """Encode `value` deterministically; floats and other ambiguous types are rejected."""
    _check(value, "$", 0)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def commitment_hex(label: str, version: int, payload: bytes) -> str:
    """
    `0x`-prefixed sha256 over ``miniyield:<label>:v<version>\\0`` + payload.

    The NUL-terminated ASCII tag keeps commitments for different labels and
    versions from colliding.
    """
    if not isinstance(label, str) or not label or not label.isascii() or ":" in label or "\x00" in label:
        raise ValueError(f"invalid commitment label: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError(f"version must be a positive int: {version!r}")
    tag = b":".join((COMMITMENT_PREFIX, label.encode("ascii"), b"v%d" % version)) + b"\x00"
    return "0x" + hashlib.sha256(tag + payload).hexdigest()
