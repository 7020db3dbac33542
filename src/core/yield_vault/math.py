"""Integer share math for the yield vault.

Rounding policy (all divisions are exact integer ops):
- share issuance on deposit rounds down (depositor gets at most their share),
- share redemption for a requested payout rounds up (withdrawer burns at least
  enough shares),
- value of a share balance rounds down.

Every rounding remainder therefore stays with the remaining holders.
"""

from __future__ import annotations


def _require_uint(value: int, *, name: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def mul_div_floor(a: int, b: int, denom: int) -> int:
    _require_uint(a, name="a")
    _require_uint(b, name="b")
    if denom <= 0:
        raise ZeroDivisionError("denominator must be positive")
    return (a * b) // denom


def mul_div_ceil(a: int, b: int, denom: int) -> int:
    _require_uint(a, name="a")
    _require_uint(b, name="b")
    if denom <= 0:
        raise ZeroDivisionError("denominator must be positive")
    return -((-(a * b)) // denom)


def calculate_shares(amount: int, total_shares: int, total_value: int) -> int:
    """Shares minted for depositing `amount` against the pre-deposit totals.

    The first deposit (no shares outstanding) seeds the ledger 1:1.
    """
    _require_uint(amount, name="amount")
    if total_shares == 0:
        return amount
    return mul_div_floor(amount, total_shares, total_value)


def redeem_value(shares: int, total_shares: int, total_value: int) -> int:
    """Asset value of `shares` (floor). Zero when nothing is outstanding."""
    _require_uint(shares, name="shares")
    if total_shares == 0:
        return 0
    return mul_div_floor(shares, total_value, total_shares)


def shares_for_withdrawal(amount: int, total_shares: int, total_value: int) -> int:
    """Shares that must be burned to pay out `amount` (ceil)."""
    return mul_div_ceil(amount, total_shares, total_value)


def principal_released(total_deposited: int, redeemed: int, total_shares: int) -> int:
    """Outstanding principal that leaves with `redeemed` shares.

    Burning every outstanding share releases all principal so the
    zero-shares-implies-zero-principal invariant holds exactly.
    """
    if redeemed >= total_shares:
        return total_deposited
    return mul_div_floor(total_deposited, redeemed, total_shares)
