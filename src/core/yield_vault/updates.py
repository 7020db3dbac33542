"""State transition functions for `yield_vault`.

One pure function per action. Each returns a new `VaultState` with the
action's updates applied.

Semantics:
- updates evaluate against the PRE-state (guards have already passed),
- mapping fields are copied, never mutated in place,
- we implement updates via `dataclasses.replace()` on frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import replace

from .math import calculate_shares, principal_released, shares_for_withdrawal
from .types import ActionParams, AssetState, UserPosition, VaultConfig, VaultState


def _with_asset(state: VaultState, asset_id: str, asset: AssetState) -> dict[str, AssetState]:
    assets = dict(state.assets)
    assets[asset_id] = asset
    return assets


def _with_position(state: VaultState, user: str, asset_id: str, pos: UserPosition) -> dict:
    positions = dict(state.positions)
    positions[(user, asset_id)] = pos
    return positions


def apply_add_protocol(config: VaultConfig, state: VaultState, params: ActionParams) -> VaultState:
    existing = state.asset(params.asset)
    if existing is None:
        return replace(
            state,
            supported_assets=state.supported_assets + (params.asset,),
            assets=_with_asset(state, params.asset, AssetState(protocols=(params.adapter_id,))),
        )
    updated = replace(existing, protocols=existing.protocols + (params.adapter_id,))
    return replace(state, assets=_with_asset(state, params.asset, updated))


def apply_switch_protocol(config: VaultConfig, state: VaultState, params: ActionParams) -> VaultState:
    asset = state.assets[params.asset]
    return replace(
        state,
        assets=_with_asset(state, params.asset, replace(asset, active_index=params.new_index)),
    )


def apply_deposit(config: VaultConfig, state: VaultState, params: ActionParams) -> VaultState:
    asset = state.assets[params.asset]
    pos = state.position(params.caller, params.asset)
    issued = calculate_shares(params.amount, asset.total_shares, params.total_value)

    new_asset = replace(
        asset,
        total_shares=asset.total_shares + issued,
        total_deposited=asset.total_deposited + params.amount,
    )
    new_pos = UserPosition(
        shares=pos.shares + issued,
        total_deposited=pos.total_deposited + params.amount,
    )
    return replace(
        state,
        assets=_with_asset(state, params.asset, new_asset),
        positions=_with_position(state, params.caller, params.asset, new_pos),
    )


def _burn(state: VaultState, params: ActionParams, redeemed: int) -> VaultState:
    asset = state.assets[params.asset]
    pos = state.position(params.caller, params.asset)
    released = principal_released(asset.total_deposited, redeemed, asset.total_shares)

    new_asset = replace(
        asset,
        total_shares=asset.total_shares - redeemed,
        total_deposited=asset.total_deposited - released,
    )
    new_pos = replace(pos, shares=pos.shares - redeemed)
    return replace(
        state,
        assets=_with_asset(state, params.asset, new_asset),
        positions=_with_position(state, params.caller, params.asset, new_pos),
    )


def apply_withdraw(config: VaultConfig, state: VaultState, params: ActionParams) -> VaultState:
    asset = state.assets[params.asset]
    redeemed = shares_for_withdrawal(params.amount, asset.total_shares, params.total_value)
    return _burn(state, params, redeemed)


def apply_withdraw_all(config: VaultConfig, state: VaultState, params: ActionParams) -> VaultState:
    return _burn(state, params, state.position(params.caller, params.asset).shares)


def apply_pause(config: VaultConfig, state: VaultState, params: ActionParams) -> VaultState:
    return replace(state, paused=True)


def apply_unpause(config: VaultConfig, state: VaultState, params: ActionParams) -> VaultState:
    return replace(state, paused=False)


def apply_transfer_ownership(config: VaultConfig, state: VaultState, params: ActionParams) -> VaultState:
    return replace(state, owner=params.new_owner.strip())
