"""
Vault integration layer: controller shell, configuration and snapshots
"""

from .vault_config import ConfigError, config_from_env, load_config
from .vault_controller import VaultController
from .vault_snapshot import VaultSnapshot, snapshot_to_state, state_to_snapshot

__all__ = [
    "ConfigError",
    "config_from_env",
    "load_config",
    "VaultController",
    "VaultSnapshot",
    "snapshot_to_state",
    "state_to_snapshot",
]
