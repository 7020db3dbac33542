"""
Vault state snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / audit trails.
- Round-trippable into the functional-core `VaultState` type.
- Explicit versioning for future formats.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict

from ..core.yield_vault.invariants import check_all
from ..core.yield_vault.state import state_from_dict, state_to_dict
from ..core.yield_vault.types import VaultState
from ..state.canonical import canonical_json_bytes, commitment_hex


VAULT_SNAPSHOT_VERSION = 1
MAX_SNAPSHOT_BYTES = 16 * 1024 * 1024


@dataclass(frozen=True)
class VaultSnapshot:
    """
    Deterministic, versioned snapshot of `VaultState`.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment(self) -> str:
        return commitment_hex("vault_snapshot", self.version, self.canonical_bytes())

    def to_json(self) -> str:
        return json.dumps({"version": self.version, "data": self.data}, sort_keys=True)


def state_to_snapshot(state: VaultState) -> VaultSnapshot:
    return VaultSnapshot(version=VAULT_SNAPSHOT_VERSION, data=state_to_dict(state))


def snapshot_to_state(snapshot: VaultSnapshot) -> VaultState:
    """Decode a snapshot, rejecting unknown versions and invariant-violating states."""
    if snapshot.version != VAULT_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {snapshot.version}")
    state = state_from_dict(snapshot.data)
    violations = check_all(state)
    if violations:
        raise ValueError(f"snapshot violates invariants: {', '.join(violations)}")
    return state


def snapshot_from_json(text: str) -> VaultSnapshot:
    if not isinstance(text, str):
        raise TypeError("snapshot json must be a str")
    if len(text.encode("utf-8")) > MAX_SNAPSHOT_BYTES:
        raise ValueError("snapshot too large")
    obj = json.loads(text)
    if not isinstance(obj, dict):
        raise ValueError("snapshot must be a JSON object")
    version = obj.get("version")
    data = obj.get("data")
    if not isinstance(version, int) or isinstance(version, bool):
        raise ValueError("snapshot.version must be an int")
    if not isinstance(data, dict):
        raise ValueError("snapshot.data must be an object")
    return VaultSnapshot(version=version, data=data)
