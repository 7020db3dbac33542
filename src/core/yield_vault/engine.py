"""Dispatch-table engine for `yield_vault`.

``step(state, params, config)`` is the single entry point. It:

1. Validates parameter domains (identifiers, uint256 amounts).
2. Dispatches to the correct guard / update / effect functions.
3. Checks all invariants on the post-state.
4. Returns a ``StepResult`` (accepted or rejected with an error code).

The engine is pure: adapter balances come in through ``params.total_value``
and fund movements go out through the returned ``Effect``.
"""

from __future__ import annotations

from typing import Callable

from .effects import (
    effect_add_protocol,
    effect_deposit,
    effect_pause,
    effect_switch_protocol,
    effect_transfer_ownership,
    effect_unpause,
    effect_withdraw,
    effect_withdraw_all,
)
from .errors import VaultInvariantError, error_for
from .guards import (
    guard_add_protocol,
    guard_deposit,
    guard_pause,
    guard_switch_protocol,
    guard_transfer_ownership,
    guard_unpause,
    guard_withdraw,
    guard_withdraw_all,
)
from .invariants import check_all
from .types import MAX_AMOUNT, Action, ActionParams, Effect, StepResult, VaultConfig, VaultState
from .updates import (
    apply_add_protocol,
    apply_deposit,
    apply_pause,
    apply_switch_protocol,
    apply_transfer_ownership,
    apply_unpause,
    apply_withdraw,
    apply_withdraw_all,
)

GuardFn = Callable[[VaultConfig, VaultState, ActionParams], "str | None"]
UpdateFn = Callable[[VaultConfig, VaultState, ActionParams], VaultState]
EffectFn = Callable[[VaultState, VaultState, ActionParams], Effect]

_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn, EffectFn]] = {
    Action.ADD_PROTOCOL: (
        guard_add_protocol, apply_add_protocol, effect_add_protocol,
    ),
    Action.SWITCH_PROTOCOL: (
        guard_switch_protocol, apply_switch_protocol, effect_switch_protocol,
    ),
    Action.DEPOSIT: (
        guard_deposit, apply_deposit, effect_deposit,
    ),
    Action.WITHDRAW: (
        guard_withdraw, apply_withdraw, effect_withdraw,
    ),
    Action.WITHDRAW_ALL: (
        guard_withdraw_all, apply_withdraw_all, effect_withdraw_all,
    ),
    Action.PAUSE: (
        guard_pause, apply_pause, effect_pause,
    ),
    Action.UNPAUSE: (
        guard_unpause, apply_unpause, effect_unpause,
    ),
    Action.TRANSFER_OWNERSHIP: (
        guard_transfer_ownership, apply_transfer_ownership, effect_transfer_ownership,
    ),
}

DEFAULT_CONFIG = VaultConfig()

_AMOUNT_ACTIONS = frozenset({Action.DEPOSIT, Action.WITHDRAW})
_VALUED_ACTIONS = frozenset({Action.DEPOSIT, Action.WITHDRAW, Action.WITHDRAW_ALL})


def _is_uint(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_AMOUNT


def _is_ident(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _validate_params(params: ActionParams) -> str | None:
    """Check parameter domains. Returns rejection code or None.

    Amount is checked first so a zero amount is reported as such no matter
    who calls or what else is wrong.
    """
    if params.action in _AMOUNT_ACTIONS:
        if not _is_uint(params.amount) or params.amount == 0:
            return "InvalidAmount"
    if not _is_ident(params.caller):
        return "InvalidAddress"
    if params.action is Action.ADD_PROTOCOL:
        if not _is_ident(params.asset) or not _is_ident(params.adapter_id):
            return "InvalidAddress"
    if params.action in _VALUED_ACTIONS and not _is_uint(params.total_value):
        return "AdapterFailure"
    return None


def step(state: VaultState, params: ActionParams, config: VaultConfig = DEFAULT_CONFIG) -> StepResult:
    """Execute one action against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` error code.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return StepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    domain_err = _validate_params(params)
    if domain_err is not None:
        return StepResult(accepted=False, rejection=domain_err)

    guard_fn, update_fn, effect_fn = entry

    rejection = guard_fn(config, state, params)
    if rejection is not None:
        return StepResult(accepted=False, rejection=rejection)

    new_state = update_fn(config, state, params)

    violations = check_all(new_state)
    if violations:
        return StepResult(
            accepted=False,
            rejection=f"invariant:{','.join(violations)}",
        )

    effect = effect_fn(state, new_state, params)
    return StepResult(accepted=True, state=new_state, effect=effect)


def step_or_raise(
    state: VaultState, params: ActionParams, config: VaultConfig = DEFAULT_CONFIG
) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        VaultError: the subclass named by the rejection code.
        VaultInvariantError: Post-state violates one or more invariants.
    """
    result = step(state, params, config)
    if result.accepted:
        return result

    reason = result.rejection or ""
    if reason.startswith("invariant:"):
        violations = reason.removeprefix("invariant:").split(",")
        raise VaultInvariantError(violations)
    raise error_for(reason, f"{params.action.value} rejected: {reason}")
