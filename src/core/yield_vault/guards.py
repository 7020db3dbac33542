"""Guard functions for `yield_vault`.

One pure function per action. Each inspects the PRE-state and parameters and
returns ``None`` when the action is allowed, or the rejection code (an error
class name from ``errors.py``) of the first failed check.

Authority (owner) and lifecycle (pause) checks live here and take the vault
state explicitly; there is no ambient owner or pause flag anywhere.

Parameter domains (amount range, identifier shape) are checked by the engine
before any guard runs.
"""

from __future__ import annotations

from .math import calculate_shares, shares_for_withdrawal
from .types import ActionParams, VaultConfig, VaultState


def _is_owner(state: VaultState, params: ActionParams) -> bool:
    return params.caller == state.owner


def guard_add_protocol(config: VaultConfig, state: VaultState, params: ActionParams) -> str | None:
    if not _is_owner(state, params):
        return "NotOwner"
    asset = state.asset(params.asset)
    if asset is None:
        return None
    if params.adapter_id in asset.protocols:
        return "DuplicateProtocol"
    if len(asset.protocols) >= config.max_protocols_per_asset:
        return "ProtocolLimitReached"
    return None


def guard_switch_protocol(config: VaultConfig, state: VaultState, params: ActionParams) -> str | None:
    if not _is_owner(state, params):
        return "NotOwner"
    asset = state.asset(params.asset)
    if asset is None:
        return "UnsupportedAsset"
    if state.paused and not config.allow_switch_while_paused:
        return "ContractPaused"
    idx = params.new_index
    if not isinstance(idx, int) or isinstance(idx, bool):
        return "InvalidIndex"
    if not (0 <= idx < len(asset.protocols)):
        return "InvalidIndex"
    if idx == asset.active_index:
        return "InvalidIndex"
    return None


def guard_deposit(config: VaultConfig, state: VaultState, params: ActionParams) -> str | None:
    asset = state.asset(params.asset)
    if asset is None:
        return "UnsupportedAsset"
    if state.paused:
        return "ContractPaused"
    if asset.total_shares > 0 and params.total_value == 0:
        # Shares outstanding against nothing: pricing is undefined.
        return "AdapterFailure"
    if calculate_shares(params.amount, asset.total_shares, params.total_value) == 0:
        return "InvalidAmount"
    return None


def _guard_withdraw_common(config: VaultConfig, state: VaultState, params: ActionParams) -> str | None:
    asset = state.asset(params.asset)
    if asset is None:
        return "UnsupportedAsset"
    if state.paused and not config.allow_withdraw_while_paused:
        return "ContractPaused"
    if state.position(params.caller, params.asset).shares == 0:
        return "NoBalance"
    return None


def guard_withdraw(config: VaultConfig, state: VaultState, params: ActionParams) -> str | None:
    err = _guard_withdraw_common(config, state, params)
    if err is not None:
        return err
    asset = state.assets[params.asset]
    if params.total_value == 0:
        return "InsufficientShares"
    needed = shares_for_withdrawal(params.amount, asset.total_shares, params.total_value)
    if needed > state.position(params.caller, params.asset).shares:
        return "InsufficientShares"
    return None


def guard_withdraw_all(config: VaultConfig, state: VaultState, params: ActionParams) -> str | None:
    return _guard_withdraw_common(config, state, params)


def guard_pause(config: VaultConfig, state: VaultState, params: ActionParams) -> str | None:
    if not _is_owner(state, params):
        return "NotOwner"
    if state.paused:
        return "ContractPaused"
    return None


def guard_unpause(config: VaultConfig, state: VaultState, params: ActionParams) -> str | None:
    if not _is_owner(state, params):
        return "NotOwner"
    if not state.paused:
        return "NotPaused"
    return None


def guard_transfer_ownership(config: VaultConfig, state: VaultState, params: ActionParams) -> str | None:
    if not _is_owner(state, params):
        return "NotOwner"
    if not isinstance(params.new_owner, str) or not params.new_owner.strip():
        return "InvalidAddress"
    return None
