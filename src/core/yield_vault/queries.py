"""Read-only projections over `VaultState`.

Queries never change state. Like the engine they take the observed
``total_value`` of the asset as an argument; unlike the engine they raise the
matching ``VaultError`` directly instead of returning a result object.
"""

from __future__ import annotations

from .errors import InsufficientShares, InvalidAmount, UnsupportedAsset
from .math import calculate_shares, redeem_value
from .types import MAX_AMOUNT, AssetState, VaultState


def _require_asset(state: VaultState, asset: str) -> AssetState:
    entry = state.asset(asset)
    if entry is None:
        raise UnsupportedAsset(f"asset not supported: {asset!r}")
    return entry


def preview_shares(state: VaultState, asset: str, amount: int, total_value: int) -> int:
    """Shares a deposit of `amount` would mint right now."""
    if not isinstance(amount, int) or isinstance(amount, bool) or not (0 < amount <= MAX_AMOUNT):
        raise InvalidAmount(f"amount must be in [1, 2**256-1]: {amount!r}")
    entry = _require_asset(state, asset)
    if entry.total_shares > 0 and total_value == 0:
        return 0
    return calculate_shares(amount, entry.total_shares, total_value)


def preview_redeem(state: VaultState, user: str, asset: str, shares: int, total_value: int) -> int:
    """Asset amount `user` would receive for burning `shares` (floor)."""
    if not isinstance(shares, int) or isinstance(shares, bool) or not (0 <= shares <= MAX_AMOUNT):
        raise InvalidAmount(f"shares must be in [0, 2**256-1]: {shares!r}")
    entry = _require_asset(state, asset)
    if shares > state.position(user, asset).shares:
        raise InsufficientShares(f"{user!r} holds fewer than {shares} shares of {asset!r}")
    return redeem_value(shares, entry.total_shares, total_value)


def user_total_value(state: VaultState, user: str, asset: str, total_value: int) -> int:
    """Current redeemable value of all of `user`'s shares; 0 without a position."""
    entry = state.asset(asset)
    if entry is None:
        return 0
    return redeem_value(state.position(user, asset).shares, entry.total_shares, total_value)


def user_balances(state: VaultState, user: str, asset: str) -> tuple[int, int]:
    """`(shares, total_deposited)` for `(user, asset)`."""
    pos = state.position(user, asset)
    return pos.shares, pos.total_deposited
