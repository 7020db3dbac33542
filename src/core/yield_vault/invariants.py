"""Invariant checkers for `yield_vault`.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass).

Note: these are ledger-only invariants. Properties that depend on adapter
balances (share price monotonicity, single funded adapter after a switch) need
the outside world and are checked by the controller shell and the
property-based tests.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable

from .types import VaultState


def inv_owner_set(s: VaultState) -> bool:
    return isinstance(s.owner, str) and bool(s.owner)


def inv_supported_matches_assets(s: VaultState) -> bool:
    if len(set(s.supported_assets)) != len(s.supported_assets):
        return False
    return set(s.supported_assets) == set(s.assets)


def inv_protocols_nonempty(s: VaultState) -> bool:
    return all(len(a.protocols) > 0 for a in s.assets.values())


def inv_protocols_unique(s: VaultState) -> bool:
    return all(len(set(a.protocols)) == len(a.protocols) for a in s.assets.values())


def inv_active_index_in_range(s: VaultState) -> bool:
    return all(0 <= a.active_index < len(a.protocols) for a in s.assets.values())


def inv_zero_shares_zero_principal(s: VaultState) -> bool:
    return all(a.total_deposited == 0 for a in s.assets.values() if a.total_shares == 0)


def inv_positions_for_supported_assets(s: VaultState) -> bool:
    return all(asset in s.assets for (_user, asset) in s.positions)


def inv_share_conservation(s: VaultState) -> bool:
    sums: dict[str, int] = defaultdict(int)
    for (_user, asset), pos in s.positions.items():
        sums[asset] += pos.shares
    return all(sums.get(asset_id, 0) == a.total_shares for asset_id, a in s.assets.items())


def inv_principal_bounded(s: VaultState) -> bool:
    sums: dict[str, int] = defaultdict(int)
    for (_user, asset), pos in s.positions.items():
        sums[asset] += pos.total_deposited
    return all(a.total_deposited <= sums.get(asset_id, 0) for asset_id, a in s.assets.items())


def inv_non_negative(s: VaultState) -> bool:
    for a in s.assets.values():
        if a.total_shares < 0 or a.total_deposited < 0 or a.active_index < 0:
            return False
    return all(p.shares >= 0 and p.total_deposited >= 0 for p in s.positions.values())


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[VaultState], bool]] = {
    "inv_owner_set": inv_owner_set,
    "inv_supported_matches_assets": inv_supported_matches_assets,
    "inv_protocols_nonempty": inv_protocols_nonempty,
    "inv_protocols_unique": inv_protocols_unique,
    "inv_active_index_in_range": inv_active_index_in_range,
    "inv_zero_shares_zero_principal": inv_zero_shares_zero_principal,
    "inv_positions_for_supported_assets": inv_positions_for_supported_assets,
    "inv_share_conservation": inv_share_conservation,
    "inv_principal_bounded": inv_principal_bounded,
    "inv_non_negative": inv_non_negative,
}


def check_all(state: VaultState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]
