"""Effect functions for `yield_vault`.

One pure function per action. Each computes the ``Effect`` from the PRE- and
POST-state, so share deltas are read off the ledger rather than recomputed.
"""

from __future__ import annotations

from .math import redeem_value
from .types import ActionParams, Effect, Event, VaultState


def _share_delta(pre: VaultState, post: VaultState, params: ActionParams) -> int:
    before = pre.position(params.caller, params.asset).shares
    after = post.position(params.caller, params.asset).shares
    return abs(after - before)


def effect_add_protocol(pre: VaultState, post: VaultState, params: ActionParams) -> Effect:
    asset = post.assets[params.asset]
    return Effect(
        event=Event.PROTOCOL_ADDED,
        asset=params.asset,
        new_adapter=params.adapter_id,
        new_index=len(asset.protocols) - 1,
        timestamp=params.timestamp,
    )


def effect_switch_protocol(pre: VaultState, post: VaultState, params: ActionParams) -> Effect:
    old = pre.assets[params.asset]
    new = post.assets[params.asset]
    return Effect(
        event=Event.PROTOCOL_SWITCH,
        asset=params.asset,
        old_adapter=old.active_adapter,
        new_adapter=new.active_adapter,
        old_index=old.active_index,
        new_index=new.active_index,
        timestamp=params.timestamp,
    )


def effect_deposit(pre: VaultState, post: VaultState, params: ActionParams) -> Effect:
    return Effect(
        event=Event.DEPOSIT,
        user=params.caller,
        asset=params.asset,
        amount=params.amount,
        shares=_share_delta(pre, post, params),
        timestamp=params.timestamp,
    )


def effect_withdraw(pre: VaultState, post: VaultState, params: ActionParams) -> Effect:
    # Burning the last shares releases everything, rounding residue included.
    drained = post.assets[params.asset].total_shares == 0
    return Effect(
        event=Event.WITHDRAW,
        user=params.caller,
        asset=params.asset,
        amount=params.total_value if drained else params.amount,
        shares=_share_delta(pre, post, params),
        timestamp=params.timestamp,
    )


def effect_withdraw_all(pre: VaultState, post: VaultState, params: ActionParams) -> Effect:
    shares = pre.position(params.caller, params.asset).shares
    asset = pre.assets[params.asset]
    return Effect(
        event=Event.WITHDRAW,
        user=params.caller,
        asset=params.asset,
        amount=redeem_value(shares, asset.total_shares, params.total_value),
        shares=shares,
        timestamp=params.timestamp,
    )


def effect_pause(pre: VaultState, post: VaultState, params: ActionParams) -> Effect:
    return Effect(event=Event.PAUSED, user=params.caller, timestamp=params.timestamp)


def effect_unpause(pre: VaultState, post: VaultState, params: ActionParams) -> Effect:
    return Effect(event=Event.UNPAUSED, user=params.caller, timestamp=params.timestamp)


def effect_transfer_ownership(pre: VaultState, post: VaultState, params: ActionParams) -> Effect:
    return Effect(
        event=Event.OWNERSHIP_TRANSFERRED,
        previous_owner=pre.owner,
        new_owner=post.owner,
        timestamp=params.timestamp,
    )
