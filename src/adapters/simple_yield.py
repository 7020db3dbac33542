"""
In-memory interest-bearing adapter backend.

Funds live on a `TokenLedger` under the adapter's own account. Yield is
simple interest at a fixed APY (basis points), accrued explicitly by calling
`accrue()`; accrued interest is minted into the adapter's account so the
reported balance is always fully backed and withdrawable.
"""

from __future__ import annotations

import logging

from ..core.yield_vault.errors import AdapterFailure, TransferFailed
from ..state.token_ledger import TokenLedger

logger = logging.getLogger(__name__)

BPS_DENOM = 10_000
SECONDS_PER_YEAR = 365 * 24 * 60 * 60
MAX_APY_BPS = 100_000


class SimpleYieldAdapter:
    """
    Yield protocol that serves any asset for a single custodian (the vault).

    `deposit_into` pulls from the custodian via allowance, `withdraw_from`
    pushes back to the custodian. Any other account's funds are untouched.
    """

    def __init__(self, name: str, ledger: TokenLedger, custodian: str, *, apy_bps: int = 0):
        if not isinstance(name, str) or not name.strip():
            raise ValueError("name must be a non-empty string")
        if not isinstance(apy_bps, int) or isinstance(apy_bps, bool) or not (0 <= apy_bps <= MAX_APY_BPS):
            raise ValueError(f"apy_bps must be in [0, {MAX_APY_BPS}]: {apy_bps!r}")
        self.name = name.strip()
        self.apy_bps = apy_bps
        self._ledger = ledger
        self._custodian = custodian
        self._account = f"adapter:{self.name}"

    @property
    def adapter_id(self) -> str:
        return self._account

    @property
    def account(self) -> str:
        return self._account

    def deposit_into(self, asset: str, amount: int) -> None:
        try:
            self._ledger.transfer_from(self._account, self._custodian, self._account, asset, amount)
        except TransferFailed as exc:
            raise AdapterFailure(f"{self.name}: deposit of {amount} {asset} failed: {exc}") from exc

    def withdraw_from(self, asset: str, amount: int) -> int:
        available = self.current_balance(asset)
        sent = min(amount, available)
        if sent > 0:
            self._ledger.transfer(self._account, self._custodian, asset, sent)
        if sent < amount:
            logger.warning("%s: partial withdrawal of %s: sent %d of %d", self.name, asset, sent, amount)
        return sent

    def current_balance(self, asset: str) -> int:
        return self._ledger.balance_of(self._account, asset)

    def accrue(self, asset: str, elapsed_seconds: int) -> int:
        """
        Accrue simple interest on the current balance for `elapsed_seconds`.

        Returns the interest minted (rounded down).
        """
        if not isinstance(elapsed_seconds, int) or isinstance(elapsed_seconds, bool) or elapsed_seconds < 0:
            raise ValueError("elapsed_seconds must be a non-negative int")
        principal = self.current_balance(asset)
        interest = (principal * self.apy_bps * elapsed_seconds) // (BPS_DENOM * SECONDS_PER_YEAR)
        if interest > 0:
            self._ledger.mint(self._account, asset, interest)
            logger.debug("%s: accrued %d %s over %ds", self.name, interest, asset, elapsed_seconds)
        return interest

    def __repr__(self) -> str:
        return f"SimpleYieldAdapter({self.name!r}, apy_bps={self.apy_bps})"
