"""Adapter capability: one yield-bearing destination for the vault's funds.

The controller only ever talks to adapters through this interface and
references them by `adapter_id` inside the kernel state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class YieldAdapter(Protocol):
    """Accept funds, return funds, report balance.

    Contract:
    - `deposit_into(asset, amount)` pulls `amount` from the vault's custody
      (the vault grants the allowance first); raises on failure.
    - `withdraw_from(asset, amount)` sends funds back to the vault's custody and
      returns the amount actually sent, which may be less than requested.
    - `current_balance(asset)` is the value held for the asset including yield.
    """

    @property
    def adapter_id(self) -> str: ...

    def deposit_into(self, asset: str, amount: int) -> None: ...

    def withdraw_from(self, asset: str, amount: int) -> int: ...

    def current_balance(self, asset: str) -> int: ...


@dataclass(frozen=True)
class AdapterHandle:
    """An adapter registered for one asset. Never mutated after registration."""

    adapter: YieldAdapter
    asset: str

    @property
    def adapter_id(self) -> str:
        return self.adapter.adapter_id
