"""Adapter faults and reentrant callbacks must leave the vault exactly as it was."""

import pytest

from src.adapters.simple_yield import SimpleYieldAdapter
from src.core.yield_vault import AdapterFailure, Event, Reentrancy, StepResult, VaultInvariantError
from tests.vault_doubles import (
    ALICE,
    BOB,
    MINT_AMOUNT,
    OWNER,
    UNIT,
    USDC,
    FlakyAdapter,
    ReentrantAdapter,
    approve_and_deposit,
    make_vault,
)


def _flaky(names=("aave",)):
    vault, ledger, adapters = make_vault(adapters=names, adapter_cls=FlakyAdapter)
    for a in adapters:
        vault.add_protocol(OWNER, USDC, a)
    return vault, ledger, adapters


def _snapshot(vault, ledger, adapters):
    return (
        vault.state,
        len(vault.events),
        ledger.balance_of(ALICE, USDC),
        ledger.balance_of(vault.account, USDC),
        tuple(a.current_balance(USDC) for a in adapters),
    )


class TestDepositFailure:
    def test_adapter_refuses_deposit(self):
        vault, ledger, adapters = _flaky()
        adapters[0].fail_deposits = True
        before = _snapshot(vault, ledger, adapters)

        ledger.approve(ALICE, vault.account, USDC, 10 * UNIT)
        with pytest.raises(AdapterFailure):
            vault.deposit(ALICE, USDC, 10 * UNIT)

        assert _snapshot(vault, ledger, adapters) == before
        assert ledger.allowance(vault.account, adapters[0].adapter_id, USDC) == 0

    def test_recovers_after_fault_clears(self):
        vault, ledger, adapters = _flaky()
        adapters[0].fail_deposits = True
        ledger.approve(ALICE, vault.account, USDC, 10 * UNIT)
        with pytest.raises(AdapterFailure):
            vault.deposit(ALICE, USDC, 10 * UNIT)
        adapters[0].fail_deposits = False
        assert approve_and_deposit(vault, ledger, ALICE, 10 * UNIT) == 10 * UNIT


class TestListenerFailure:
    def test_raising_listener_does_not_undo_deposit(self, caplog):
        vault, ledger, _ = _flaky()
        seen = []

        def broken(effect):
            raise RuntimeError("listener bug")

        vault.subscribe(broken)
        vault.subscribe(seen.append)

        assert approve_and_deposit(vault, ledger, ALICE, 10 * UNIT) == 10 * UNIT
        assert vault.user_balances(ALICE, USDC) == (10 * UNIT, 10 * UNIT)
        assert vault.events[-1].event == Event.DEPOSIT
        assert [e.event for e in seen] == [Event.DEPOSIT]
        assert "listener bug" in caplog.text

    def test_commit_requires_state_and_effect(self):
        vault, _, _ = _flaky()
        with pytest.raises(VaultInvariantError):
            vault._commit(StepResult(accepted=True))
        assert vault.events == []


class TestBalanceFailure:
    def test_balance_fault_is_adapter_failure(self):
        vault, ledger, adapters = _flaky()
        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)
        before = _snapshot(vault, ledger, adapters)
        adapters[0].fail_balance = True

        ledger.approve(ALICE, vault.account, USDC, UNIT)
        with pytest.raises(AdapterFailure, match="rpc down"):
            vault.deposit(ALICE, USDC, UNIT)
        with pytest.raises(AdapterFailure):
            vault.withdraw(ALICE, USDC, UNIT)
        with pytest.raises(AdapterFailure):
            vault.withdraw_all(ALICE, USDC)
        with pytest.raises(AdapterFailure):
            vault.get_total_value(USDC)

        adapters[0].fail_balance = False
        assert _snapshot(vault, ledger, adapters) == before


class TestWithdrawFailure:
    def test_adapter_refuses_withdrawal(self):
        vault, ledger, adapters = _flaky()
        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)
        adapters[0].fail_withdrawals = True
        before = _snapshot(vault, ledger, adapters)

        with pytest.raises(AdapterFailure):
            vault.withdraw(ALICE, USDC, 5 * UNIT)
        with pytest.raises(AdapterFailure):
            vault.withdraw_all(ALICE, USDC)

        assert _snapshot(vault, ledger, adapters) == before

    def test_partial_withdrawal_restored(self):
        vault, ledger, adapters = _flaky()
        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)
        adapters[0].withdraw_shortfall = 1
        before = _snapshot(vault, ledger, adapters)

        with pytest.raises(AdapterFailure):
            vault.withdraw(ALICE, USDC, 5 * UNIT)

        assert _snapshot(vault, ledger, adapters) == before
        assert vault.user_balances(ALICE, USDC) == (10 * UNIT, 10 * UNIT)

    def test_inactive_adapter_fault_restores_active_pull(self):
        vault, ledger, adapters = _flaky(("aave", "comp"))
        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)
        ledger.mint(adapters[1].account, USDC, UNIT)
        adapters[1].fail_withdrawals = True
        before = _snapshot(vault, ledger, adapters)

        with pytest.raises(AdapterFailure):
            vault.withdraw_all(ALICE, USDC)

        assert _snapshot(vault, ledger, adapters) == before


class TestInactiveAdapterPayout:
    def test_withdraw_all_drains_every_adapter(self):
        vault, ledger, (aave, comp) = make_vault(adapters=("aave", "comp"), adapter_cls=SimpleYieldAdapter)
        vault.add_protocol(OWNER, USDC, aave)
        vault.add_protocol(OWNER, USDC, comp)
        approve_and_deposit(vault, ledger, ALICE, 100 * UNIT)
        ledger.mint(comp.account, USDC, 10 * UNIT)
        assert vault.get_user_total_value(ALICE, USDC) == 110 * UNIT

        assert vault.withdraw_all(ALICE, USDC) == 110 * UNIT

        assert aave.current_balance(USDC) == 0
        assert comp.current_balance(USDC) == 0
        assert ledger.balance_of(ALICE, USDC) == MINT_AMOUNT + 10 * UNIT
        assert ledger.balance_of(vault.account, USDC) == 0

    def test_partial_withdraw_spills_into_inactive_adapter(self):
        vault, ledger, (aave, comp) = make_vault(adapters=("aave", "comp"), adapter_cls=SimpleYieldAdapter)
        vault.add_protocol(OWNER, USDC, aave)
        vault.add_protocol(OWNER, USDC, comp)
        approve_and_deposit(vault, ledger, ALICE, 100 * UNIT)
        ledger.mint(comp.account, USDC, 100 * UNIT)

        vault.withdraw(ALICE, USDC, 150 * UNIT)

        assert aave.current_balance(USDC) == 0
        assert comp.current_balance(USDC) == 50 * UNIT
        assert vault.get_total_value(USDC) == 50 * UNIT


class TestSwitchFailure:
    def test_new_adapter_refuses(self):
        vault, ledger, adapters = _flaky(("aave", "comp"))
        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)
        adapters[1].fail_deposits = True
        before = _snapshot(vault, ledger, adapters)

        with pytest.raises(AdapterFailure):
            vault.switch_protocol(OWNER, USDC, 1)

        assert _snapshot(vault, ledger, adapters) == before
        assert vault.get_active_protocol(USDC) == (adapters[0].adapter_id, 0)
        assert vault.funded_adapters(USDC) == [adapters[0].adapter_id]

    def test_old_adapter_refuses(self):
        vault, ledger, adapters = _flaky(("aave", "comp"))
        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)
        adapters[0].fail_withdrawals = True
        before = _snapshot(vault, ledger, adapters)

        with pytest.raises(AdapterFailure):
            vault.switch_protocol(OWNER, USDC, 1)

        assert _snapshot(vault, ledger, adapters) == before

    def test_old_adapter_short_delivery(self):
        vault, ledger, adapters = _flaky(("aave", "comp"))
        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)
        adapters[0].withdraw_shortfall = 3
        before = _snapshot(vault, ledger, adapters)

        with pytest.raises(AdapterFailure):
            vault.switch_protocol(OWNER, USDC, 1)

        assert _snapshot(vault, ledger, adapters) == before

    def test_empty_switch_moves_nothing(self):
        vault, ledger, adapters = _flaky(("aave", "comp"))
        adapters[0].fail_withdrawals = True
        adapters[1].fail_deposits = True
        vault.switch_protocol(OWNER, USDC, 1)
        assert vault.get_active_protocol(USDC)[1] == 1
        assert vault.events[-1].event == Event.PROTOCOL_SWITCH


class TestReentrancy:
    def _setup(self):
        vault, ledger, (adapter,) = make_vault(adapter_cls=ReentrantAdapter)
        vault.add_protocol(OWNER, USDC, adapter)
        adapter.vault = vault
        return vault, ledger, adapter

    def test_deposit_reentry_rejected(self):
        vault, ledger, adapter = self._setup()
        ledger.approve(BOB, vault.account, USDC, UNIT)
        adapter.callback = lambda v: v.deposit(BOB, USDC, UNIT)

        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)

        assert [type(e) for e in adapter.reentry_errors] == [Reentrancy]
        assert vault.user_balances(BOB, USDC) == (0, 0)
        assert ledger.balance_of(BOB, USDC) == MINT_AMOUNT
        assert vault.user_balances(ALICE, USDC) == (10 * UNIT, 10 * UNIT)

    def test_withdraw_reentry_rejected(self):
        vault, ledger, adapter = self._setup()
        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)
        adapter.callback = lambda v: v.withdraw(ALICE, USDC, 5 * UNIT)

        vault.withdraw(ALICE, USDC, 5 * UNIT)

        assert [type(e) for e in adapter.reentry_errors] == [Reentrancy]
        assert vault.user_balances(ALICE, USDC)[0] == 5 * UNIT
        assert ledger.balance_of(ALICE, USDC) == MINT_AMOUNT - 5 * UNIT

    def test_admin_reentry_rejected(self):
        vault, ledger, adapter = self._setup()
        adapter.callback = lambda v: v.pause(OWNER)
        approve_and_deposit(vault, ledger, ALICE, UNIT)
        assert [type(e) for e in adapter.reentry_errors] == [Reentrancy]
        assert vault.paused is False

    def test_queries_available_during_callback(self):
        vault, ledger, adapter = self._setup()
        approve_and_deposit(vault, ledger, ALICE, 10 * UNIT)
        adapter.callback = lambda v: v.get_user_total_value(ALICE, USDC)
        vault.withdraw(ALICE, USDC, UNIT)
        assert adapter.reentry_errors == []
        # Observed mid-operation: nothing has left the adapter yet.
        assert adapter.observed_values[-1] == 10 * UNIT
