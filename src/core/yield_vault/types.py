"""Data types for the `yield_vault` share-accounting kernel.

All types are frozen dataclasses (immutable). Mapping-valued fields are treated
as read-only; updates build fresh dicts and wrap them in new state objects.

Units/conventions:
- asset amounts and share counts are non-negative integers (uint256 domain),
- `asset` and `user` identifiers are opaque non-empty strings,
- adapters are referenced by `adapter_id` inside the kernel; the shell keeps the
  id -> adapter object mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Mapping

MAX_AMOUNT: int = 2**256 - 1
DEFAULT_MAX_PROTOCOLS_PER_ASSET: int = 16

AssetId = str
UserId = str
AdapterId = str


@unique
class Action(Enum):
    ADD_PROTOCOL = "add_protocol"
    SWITCH_PROTOCOL = "switch_protocol"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    WITHDRAW_ALL = "withdraw_all"
    PAUSE = "pause"
    UNPAUSE = "unpause"
    TRANSFER_OWNERSHIP = "transfer_ownership"


@unique
class Event(Enum):
    """One member per emitted event type."""
    PROTOCOL_ADDED = "ProtocolAdded"
    PROTOCOL_SWITCH = "ProtocolSwitch"
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    PAUSED = "Paused"
    UNPAUSED = "Unpaused"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"


@dataclass(frozen=True)
class VaultConfig:
    """Policy knobs for the kernel (decided per deployment, not per call)."""

    max_protocols_per_asset: int = DEFAULT_MAX_PROTOCOLS_PER_ASSET
    allow_withdraw_while_paused: bool = True
    allow_switch_while_paused: bool = False

    def __post_init__(self) -> None:
        v = self.max_protocols_per_asset
        if not isinstance(v, int) or isinstance(v, bool):
            raise TypeError("max_protocols_per_asset must be an int")
        if v < 1:
            raise ValueError(f"max_protocols_per_asset must be >= 1: {v}")
        for name in ("allow_withdraw_while_paused", "allow_switch_while_paused"):
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"{name} must be a bool")


@dataclass(frozen=True)
class AssetState:
    """Registry entry plus share-ledger totals for one supported asset."""

    protocols: tuple[AdapterId, ...]
    active_index: int = 0
    total_shares: int = 0
    total_deposited: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.protocols, tuple):
            raise TypeError("protocols must be a tuple")
        for name in ("active_index", "total_shares", "total_deposited"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative")

    @property
    def active_adapter(self) -> AdapterId:
        return self.protocols[self.active_index]


@dataclass(frozen=True)
class UserPosition:
    """Per-(user, asset) ledger record.

    `total_deposited` is a historical counter: it only ever grows.
    """

    shares: int = 0
    total_deposited: int = 0

    def __post_init__(self) -> None:
        if self.shares < 0:
            raise ValueError("shares must be non-negative")
        if self.total_deposited < 0:
            raise ValueError("total_deposited must be non-negative")


EMPTY_POSITION = UserPosition()


@dataclass(frozen=True)
class VaultState:
    """Complete kernel state: authority flags, registry and share ledger."""

    owner: UserId
    paused: bool = False
    supported_assets: tuple[AssetId, ...] = ()
    assets: Mapping[AssetId, AssetState] = field(default_factory=dict)
    positions: Mapping[tuple[UserId, AssetId], UserPosition] = field(default_factory=dict)

    def asset(self, asset: AssetId) -> AssetState | None:
        return self.assets.get(asset)

    def position(self, user: UserId, asset: AssetId) -> UserPosition:
        return self.positions.get((user, asset), EMPTY_POSITION)

    def is_supported(self, asset: AssetId) -> bool:
        return asset in self.assets


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields default to empty/0.

    `total_value` is observed by the shell (sum of adapter balances for
    `asset`) immediately before the step and passed in; the kernel never calls
    out to adapters itself.
    """

    action: Action
    caller: UserId = ""
    asset: AssetId = ""
    amount: int = 0               # deposit / withdraw
    adapter_id: AdapterId = ""    # add_protocol
    new_index: int = 0            # switch_protocol
    new_owner: UserId = ""        # transfer_ownership
    total_value: int = 0          # deposit / withdraw / withdraw_all
    timestamp: int = 0


@dataclass(frozen=True)
class Effect:
    """Observable outcome of an accepted step.

    For deposit/withdraw `amount` is the asset amount the shell must move and
    `shares` the shares issued or redeemed.
    """

    event: Event
    user: UserId = ""
    asset: AssetId = ""
    amount: int = 0
    shares: int = 0
    timestamp: int = 0
    old_adapter: AdapterId = ""
    new_adapter: AdapterId = ""
    old_index: int = 0
    new_index: int = 0
    previous_owner: UserId = ""
    new_owner: UserId = ""


@dataclass(frozen=True)
class StepResult:
    """Result of a single engine step."""

    accepted: bool
    state: VaultState | None = None
    effect: Effect | None = None
    rejection: str | None = None
