"""
Multi-asset fungible token ledger with allowances.

Implements the asset transfer capability the vault depends on:
balances[(account, asset)] -> amount and allowances[(owner, spender, asset)] -> amount.
"""

from typing import Dict, Tuple

from ..core.yield_vault.errors import TransferFailed


# Type aliases
Account = str  # user, vault or adapter identity
AssetId = str
Amount = int  # Non-negative integer (arbitrary precision)


def _require_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"amount must be an int: {amount!r}")
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")


class TokenLedger:
    """
    Balance table mapping (account, asset) -> amount, plus ERC20-style allowances.

    Transfers are all-or-nothing: a failed transfer raises `TransferFailed`
    and leaves both tables untouched.
    """

    def __init__(self):
        # Zero entries are removed to keep the tables sparse.
        self._balances: Dict[Tuple[Account, AssetId], Amount] = {}
        self._allowances: Dict[Tuple[Account, Account, AssetId], Amount] = {}

    def balance_of(self, account: Account, asset: AssetId) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def allowance(self, owner: Account, spender: Account, asset: AssetId) -> Amount:
        return self._allowances.get((owner, spender, asset), 0)

    def _set_balance(self, account: Account, asset: AssetId, amount: Amount) -> None:
        if amount == 0:
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def mint(self, account: Account, asset: AssetId, amount: Amount) -> None:
        """
        Create `amount` new units for `account`.

        Raises:
            ValueError: If amount is negative
        """
        _require_amount(amount)
        self._set_balance(account, asset, self.balance_of(account, asset) + amount)

    def approve(self, owner: Account, spender: Account, asset: AssetId, amount: Amount) -> None:
        """Set (not add to) the allowance `spender` may pull from `owner`."""
        _require_amount(amount)
        if amount == 0:
            self._allowances.pop((owner, spender, asset), None)
        else:
            self._allowances[(owner, spender, asset)] = amount

    def transfer(self, sender: Account, recipient: Account, asset: AssetId, amount: Amount) -> None:
        """
        Move `amount` from `sender` to `recipient`.

        Raises:
            TransferFailed: If sender's balance is insufficient
        """
        _require_amount(amount)
        current = self.balance_of(sender, asset)
        if current < amount:
            raise TransferFailed(
                f"insufficient balance: {sender} holds {current} {asset}, needs {amount}"
            )
        if sender == recipient or amount == 0:
            return
        self._set_balance(sender, asset, current - amount)
        self._set_balance(recipient, asset, self.balance_of(recipient, asset) + amount)

    def transfer_from(
        self, spender: Account, owner: Account, recipient: Account, asset: AssetId, amount: Amount
    ) -> None:
        """
        Move `amount` from `owner` to `recipient` on behalf of `spender`.

        Consumes allowance. Raises:
            TransferFailed: If the allowance or owner's balance is insufficient
        """
        _require_amount(amount)
        allowed = self.allowance(owner, spender, asset)
        if allowed < amount:
            raise TransferFailed(
                f"insufficient allowance: {spender} may pull {allowed} {asset} from {owner}, needs {amount}"
            )
        self.transfer(owner, recipient, asset, amount)
        self.approve(owner, spender, asset, allowed - amount)

    def total_supply(self, asset: AssetId) -> Amount:
        return sum(v for (_acct, a), v in self._balances.items() if a == asset)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Account, Amount]:
        """
        Get all balances for a specific asset.

        Returns:
            Dictionary mapping account -> amount
        """
        result = {}
        for (acct, a), amount in self._balances.items():
            if a == asset:
                result[acct] = amount
        return result

    def __repr__(self) -> str:
        return f"TokenLedger({len(self._balances)} balances, {len(self._allowances)} allowances)"
