"""
Vault configuration loading.

Two sources, both producing a `VaultConfig`:
- environment variables (`MINIYIELD_*`), clamped to safe ranges,
- a YAML file with schema `miniyield/vault-config/v1`, validated fail-closed
  (unknown keys and wrong types are errors, not warnings).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..core.yield_vault.types import DEFAULT_MAX_PROTOCOLS_PER_ASSET, VaultConfig

logger = logging.getLogger(__name__)

CONFIG_SCHEMA = "miniyield/vault-config/v1"
MAX_PROTOCOLS_CEILING = 256

ENV_MAX_PROTOCOLS = "MINIYIELD_MAX_PROTOCOLS"
ENV_ALLOW_WITHDRAW_WHILE_PAUSED = "MINIYIELD_ALLOW_WITHDRAW_WHILE_PAUSED"
ENV_ALLOW_SWITCH_WHILE_PAUSED = "MINIYIELD_ALLOW_SWITCH_WHILE_PAUSED"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

_KNOWN_KEYS = {
    "schema",
    "max_protocols_per_asset",
    "allow_withdraw_while_paused",
    "allow_switch_while_paused",
}


class ConfigError(ValueError):
    """Raised for invalid or unsupported configuration input."""


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        logger.warning("ignoring non-integer %s=%r", name, raw)
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    logger.warning("ignoring non-boolean %s=%r", name, raw)
    return default


def config_from_env() -> VaultConfig:
    defaults = VaultConfig()
    return VaultConfig(
        max_protocols_per_asset=_env_int(
            ENV_MAX_PROTOCOLS, DEFAULT_MAX_PROTOCOLS_PER_ASSET, lo=1, hi=MAX_PROTOCOLS_CEILING
        ),
        allow_withdraw_while_paused=_env_bool(
            ENV_ALLOW_WITHDRAW_WHILE_PAUSED, defaults.allow_withdraw_while_paused
        ),
        allow_switch_while_paused=_env_bool(
            ENV_ALLOW_SWITCH_WHILE_PAUSED, defaults.allow_switch_while_paused
        ),
    )


def _require_mapping(obj: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(obj, dict):
        raise ConfigError(f"{name} must be an object")
    return obj


def _optional_bool(obj: Mapping[str, Any], key: str, default: bool) -> bool:
    if key not in obj:
        return default
    v = obj[key]
    if not isinstance(v, bool):
        raise ConfigError(f"{key} must be a boolean")
    return v


def _optional_int(obj: Mapping[str, Any], key: str, default: int, *, lo: int, hi: int) -> int:
    if key not in obj:
        return default
    v = obj[key]
    if not isinstance(v, int) or isinstance(v, bool):
        raise ConfigError(f"{key} must be an integer")
    if not (lo <= v <= hi):
        raise ConfigError(f"{key} must be in [{lo}, {hi}]: {v}")
    return v


def config_from_mapping(raw: Any) -> VaultConfig:
    root = _require_mapping(raw, name="config")
    schema = root.get("schema")
    if schema != CONFIG_SCHEMA:
        raise ConfigError(f"unsupported config schema: {schema!r}")
    unknown = sorted(set(root) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(map(str, unknown))}")

    defaults = VaultConfig()
    return VaultConfig(
        max_protocols_per_asset=_optional_int(
            root, "max_protocols_per_asset", defaults.max_protocols_per_asset, lo=1, hi=MAX_PROTOCOLS_CEILING
        ),
        allow_withdraw_while_paused=_optional_bool(
            root, "allow_withdraw_while_paused", defaults.allow_withdraw_while_paused
        ),
        allow_switch_while_paused=_optional_bool(
            root, "allow_switch_while_paused", defaults.allow_switch_while_paused
        ),
    )


def load_config(path: Path) -> VaultConfig:
    """Load and validate a YAML vault config file."""
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    config = config_from_mapping(raw)
    logger.info("loaded vault config from %s: %s", path, config)
    return config
