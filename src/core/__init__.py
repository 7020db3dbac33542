"""
Core vault algorithms
"""

from .yield_vault import (
    Action,
    ActionParams,
    StepResult,
    VaultConfig,
    VaultState,
    initial_state,
)
from .yield_vault import step as vault_step

__all__ = [
    "Action",
    "ActionParams",
    "StepResult",
    "VaultConfig",
    "VaultState",
    "initial_state",
    "vault_step",
]
