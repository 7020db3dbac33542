"""
Vault controller: the imperative shell around the `yield_vault` kernel.

Every mutating entry point follows the same shape:
1. observe what the kernel needs from the outside (adapter balances),
2. run the pure `step_or_raise()` to get the next state and the effect,
3. perform the fund movements the effect describes,
4. commit the next state and emit the event.

Nothing is committed until step 3 succeeds. When a later fund movement fails,
the earlier ones are reversed with compensating transfers before the error
propagates, so callers never observe a half-applied operation.

Mutating calls are non-reentrant: an adapter or token hook calling back into
`deposit`, `withdraw`, `switch_protocol` (or any other mutating call) while one
is in progress gets `Reentrancy`. Read-only queries stay available.

The controller is not thread-safe; callers serialize access.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from ..adapters.base import AdapterHandle, YieldAdapter
from ..core.yield_vault import queries
from ..core.yield_vault.engine import step_or_raise
from ..core.yield_vault.errors import (
    AdapterFailure,
    Reentrancy,
    UnsupportedAsset,
    VaultError,
    VaultInvariantError,
)
from ..core.yield_vault.state import initial_state
from ..core.yield_vault.types import (
    Action,
    ActionParams,
    AssetState,
    Effect,
    StepResult,
    VaultConfig,
    VaultState,
)
from ..state.token_ledger import TokenLedger

logger = logging.getLogger(__name__)

EventListener = Callable[[Effect], None]


class VaultController:
    """
    Single-asset-per-position yield-routing vault.

    Custody: the vault's idle funds sit on `ledger` under `account`; between
    operations all of an asset's funds are with its active adapter.
    """

    def __init__(
        self,
        owner: str,
        ledger: TokenLedger,
        *,
        account: str = "vault",
        config: Optional[VaultConfig] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._state: VaultState = initial_state(owner)
        self._ledger = ledger
        self._account = account
        self._config = config if config is not None else VaultConfig()
        self._clock = clock if clock is not None else (lambda: int(time.time()))
        self._handles: dict[tuple[str, str], AdapterHandle] = {}
        self._entered = False
        self.events: List[Effect] = []
        self._listeners: List[EventListener] = []

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @property
    def state(self) -> VaultState:
        return self._state

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def account(self) -> str:
        return self._account

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    @contextmanager
    def _non_reentrant(self, op: str) -> Iterator[None]:
        if self._entered:
            raise Reentrancy(f"reentrant call to {op}")
        self._entered = True
        try:
            yield
        finally:
            self._entered = False

    def _run(self, params: ActionParams) -> StepResult:
        try:
            return step_or_raise(self._state, params, self._config)
        except VaultError as exc:
            logger.warning("%s by %s rejected: %s", params.action.value, params.caller, exc.code)
            raise

    def _commit(self, result: StepResult) -> None:
        if result.state is None or result.effect is None:
            raise VaultInvariantError(["accepted_step_has_state_and_effect"])
        self._state = result.state
        effect = result.effect
        self.events.append(effect)
        logger.info(
            "%s user=%s asset=%s amount=%d shares=%d",
            effect.event.value, effect.user, effect.asset, effect.amount, effect.shares,
        )
        # Committed: listener errors are logged, never raised.
        for listener in self._listeners:
            try:
                listener(effect)
            except Exception:
                logger.exception("event listener %r failed on %s", listener, effect.event.value)

    def _handle(self, asset: str, index: Optional[int] = None) -> AdapterHandle:
        entry = self._require_asset(asset)
        adapter_id = entry.protocols[entry.active_index if index is None else index]
        return self._handles[(asset, adapter_id)]

    def _require_asset(self, asset: str) -> AssetState:
        entry = self._state.asset(asset)
        if entry is None:
            raise UnsupportedAsset(f"asset not supported: {asset!r}")
        return entry

    def _params(self, action: Action, caller: str, **kwargs) -> ActionParams:
        return ActionParams(action=action, caller=caller, timestamp=self._clock(), **kwargs)

    # ------------------------------------------------------------------
    # Fund movements
    # ------------------------------------------------------------------

    def _adapter_balance(self, handle: AdapterHandle) -> int:
        try:
            bal = handle.adapter.current_balance(handle.asset)
        except VaultError:
            raise
        except Exception as exc:
            raise AdapterFailure(f"{handle.adapter_id} failed to report balance for {handle.asset}: {exc}") from exc
        if not isinstance(bal, int) or isinstance(bal, bool) or bal < 0:
            raise AdapterFailure(f"{handle.adapter_id} reported invalid balance {bal!r} for {handle.asset}")
        return bal

    def _push(self, handle: AdapterHandle, amount: int) -> None:
        """Move `amount` from vault custody into `handle`'s adapter."""
        if amount == 0:
            return
        self._ledger.approve(self._account, handle.adapter_id, handle.asset, amount)
        try:
            handle.adapter.deposit_into(handle.asset, amount)
        except VaultError:
            raise
        except Exception as exc:
            raise AdapterFailure(f"{handle.adapter_id} rejected deposit of {amount}: {exc}") from exc
        finally:
            self._ledger.approve(self._account, handle.adapter_id, handle.asset, 0)

    def _pull(self, handle: AdapterHandle, amount: int) -> None:
        """Move exactly `amount` from `handle`'s adapter into vault custody.

        A short (or over-) delivery puts back what arrived and fails.
        """
        if amount == 0:
            return
        try:
            got = handle.adapter.withdraw_from(handle.asset, amount)
        except VaultError:
            raise
        except Exception as exc:
            raise AdapterFailure(f"{handle.adapter_id} rejected withdrawal of {amount}: {exc}") from exc
        if got == amount:
            return
        logger.error(
            "%s returned %r of %d %s; restoring", handle.adapter_id, got, amount, handle.asset,
        )
        if isinstance(got, int) and got > 0:
            self._push(handle, got)
        raise AdapterFailure(f"{handle.adapter_id} returned {got!r} of requested {amount}")

    # ------------------------------------------------------------------
    # Admin operations (owner-only)
    # ------------------------------------------------------------------

    def add_protocol(self, caller: str, asset: str, adapter: YieldAdapter) -> int:
        """Register `adapter` for `asset`; returns its protocol index."""
        with self._non_reentrant("add_protocol"):
            result = self._run(self._params(Action.ADD_PROTOCOL, caller, asset=asset, adapter_id=adapter.adapter_id))
            self._handles[(asset, adapter.adapter_id)] = AdapterHandle(adapter=adapter, asset=asset)
            self._commit(result)
            return result.effect.new_index

    def switch_protocol(self, caller: str, asset: str, new_index: int) -> None:
        """Move all of `asset`'s funds to the adapter at `new_index` and make it active."""
        with self._non_reentrant("switch_protocol"):
            result = self._run(self._params(Action.SWITCH_PROTOCOL, caller, asset=asset, new_index=new_index))
            old = self._handle(asset)
            new = self._handle(asset, new_index)

            balance = self._adapter_balance(old)
            self._pull(old, balance)
            try:
                self._push(new, balance)
            except Exception:
                logger.error("switch of %s to index %d failed; returning %d to %s", asset, new_index, balance, old.adapter_id)
                self._push(old, balance)
                raise
            self._commit(result)

    def pause(self, caller: str) -> None:
        with self._non_reentrant("pause"):
            self._commit(self._run(self._params(Action.PAUSE, caller)))

    def unpause(self, caller: str) -> None:
        with self._non_reentrant("unpause"):
            self._commit(self._run(self._params(Action.UNPAUSE, caller)))

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        with self._non_reentrant("transfer_ownership"):
            self._commit(self._run(self._params(Action.TRANSFER_OWNERSHIP, caller, new_owner=new_owner)))

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    def deposit(self, caller: str, asset: str, amount: int) -> int:
        """Deposit `amount` of `asset` (caller must have approved the vault). Returns shares minted."""
        with self._non_reentrant("deposit"):
            result = self._run(
                self._params(Action.DEPOSIT, caller, asset=asset, amount=amount, total_value=self._total_value(asset))
            )
            self._ledger.transfer_from(self._account, caller, self._account, asset, amount)
            try:
                self._push(self._handle(asset), amount)
            except Exception:
                logger.error("deposit of %d %s by %s failed; refunding", amount, asset, caller)
                self._ledger.transfer(self._account, caller, asset, amount)
                raise
            self._commit(result)
            return result.effect.shares

    def withdraw(self, caller: str, asset: str, amount: int) -> int:
        """Withdraw exactly `amount` of `asset`. Returns shares burned."""
        with self._non_reentrant("withdraw"):
            result = self._run(
                self._params(Action.WITHDRAW, caller, asset=asset, amount=amount, total_value=self._total_value(asset))
            )
            self._pay_out(caller, asset, result)
            return result.effect.shares

    def withdraw_all(self, caller: str, asset: str) -> int:
        """Redeem every share `caller` holds. Returns the amount paid out."""
        with self._non_reentrant("withdraw_all"):
            result = self._run(
                self._params(Action.WITHDRAW_ALL, caller, asset=asset, total_value=self._total_value(asset))
            )
            self._pay_out(caller, asset, result)
            return result.effect.amount

    def _gather(self, asset: str, amount: int) -> None:
        """Pull `amount` of `asset` into vault custody, active adapter first.

        Value held by inactive adapters (late yield, donations) counts toward
        the asset's total value, so payouts draw on it once the active adapter
        runs dry. All-or-nothing: on failure every pull is pushed back.
        """
        active = self._handle(asset)
        entry = self._require_asset(asset)
        others = [self._handles[(asset, a)] for a in entry.protocols if a != active.adapter_id]
        taken: list[tuple[AdapterHandle, int]] = []
        remaining = amount
        try:
            for handle in [active] + others:
                if remaining == 0:
                    break
                part = min(remaining, self._adapter_balance(handle))
                self._pull(handle, part)
                taken.append((handle, part))
                remaining -= part
            if remaining:
                raise AdapterFailure(f"adapters for {asset} hold {amount - remaining} of requested {amount}")
        except Exception:
            for handle, part in reversed(taken):
                self._push(handle, part)
            raise

    def _pay_out(self, caller: str, asset: str, result: StepResult) -> None:
        amount = result.effect.amount
        self._gather(asset, amount)
        self._ledger.transfer(self._account, caller, asset, amount)
        self._commit(result)

    # ------------------------------------------------------------------
    # Queries (read-only)
    # ------------------------------------------------------------------

    @property
    def owner(self) -> str:
        return self._state.owner

    @property
    def paused(self) -> bool:
        return self._state.paused

    def _total_value(self, asset: str) -> int:
        entry = self._state.asset(asset)
        if entry is None:
            return 0
        return sum(self._adapter_balance(self._handles[(asset, a)]) for a in entry.protocols)

    def get_total_value(self, asset: str) -> int:
        """Value of `asset` across all of its adapters, yield included."""
        self._require_asset(asset)
        return self._total_value(asset)

    def get_supported_tokens(self) -> list[str]:
        return list(self._state.supported_assets)

    def get_protocol_count(self, asset: str) -> int:
        entry = self._state.asset(asset)
        return 0 if entry is None else len(entry.protocols)

    def get_protocols(self, asset: str) -> list[YieldAdapter]:
        entry = self._require_asset(asset)
        return [self._handles[(asset, a)].adapter for a in entry.protocols]

    def get_active_protocol(self, asset: str) -> tuple[str, int]:
        entry = self._require_asset(asset)
        return entry.active_adapter, entry.active_index

    def get_asset_state(self, asset: str) -> AssetState:
        return self._require_asset(asset)

    def user_balances(self, user: str, asset: str) -> tuple[int, int]:
        return queries.user_balances(self._state, user, asset)

    def get_user_total_value(self, user: str, asset: str) -> int:
        return queries.user_total_value(self._state, user, asset, self._total_value(asset))

    def calculate_shares(self, asset: str, amount: int) -> int:
        return queries.preview_shares(self._state, asset, amount, self._total_value(asset))

    def redeem_value(self, user: str, asset: str, shares: int) -> int:
        return queries.preview_redeem(self._state, user, asset, shares, self._total_value(asset))

    def funded_adapters(self, asset: str) -> list[str]:
        """Adapter ids currently reporting a nonzero balance for `asset`."""
        entry = self._require_asset(asset)
        return [a for a in entry.protocols if self._adapter_balance(self._handles[(asset, a)]) > 0]
