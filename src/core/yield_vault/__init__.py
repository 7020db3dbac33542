"""`yield_vault`: pure-Python share-accounting kernel for the yield-routing vault.

The kernel covers the protocol registry, the share ledger and the
owner/pause authority guard:
- deterministic, integer-only transitions,
- immutable state (frozen dataclasses),
- fail-closed guards and invariant checks.

Adapters and token movements live in the shell (`src/integration/vault_controller.py`).

Public API:
- `initial_state(owner) -> VaultState`
- `step(state, params, config) -> StepResult`
- `step_or_raise(state, params, config) -> StepResult` (raises on rejection)
"""

from .engine import DEFAULT_CONFIG, step, step_or_raise
from .errors import (
    AdapterFailure,
    ContractPaused,
    DuplicateProtocol,
    InsufficientShares,
    InvalidAddress,
    InvalidAmount,
    InvalidIndex,
    NoBalance,
    NotOwner,
    NotPaused,
    ProtocolLimitReached,
    Reentrancy,
    TransferFailed,
    UnsupportedAsset,
    VaultError,
    VaultInvariantError,
)
from .state import initial_state, state_from_dict, state_to_dict
from .types import (
    MAX_AMOUNT,
    Action,
    ActionParams,
    AssetState,
    Effect,
    Event,
    StepResult,
    UserPosition,
    VaultConfig,
    VaultState,
)

__all__ = [
    "step",
    "step_or_raise",
    "DEFAULT_CONFIG",
    "initial_state",
    "state_from_dict",
    "state_to_dict",
    "MAX_AMOUNT",
    "Action",
    "ActionParams",
    "AssetState",
    "Effect",
    "Event",
    "StepResult",
    "UserPosition",
    "VaultConfig",
    "VaultState",
    "VaultError",
    "VaultInvariantError",
    "AdapterFailure",
    "ContractPaused",
    "DuplicateProtocol",
    "InsufficientShares",
    "InvalidAddress",
    "InvalidAmount",
    "InvalidIndex",
    "NoBalance",
    "NotOwner",
    "NotPaused",
    "ProtocolLimitReached",
    "Reentrancy",
    "TransferFailed",
    "UnsupportedAsset",
]
