#!/usr/bin/env python3
"""
Offline vault scenario runner.

Reads a YAML scenario (accounts, adapters, a list of steps), runs it against an
in-memory token ledger and `SimpleYieldAdapter`s, and prints a JSON summary.

Steps may declare `expect_error: <ErrorCode>`; the run fails (exit 1) when any
step's outcome differs from its expectation.

Example:

    owner: owner
    mint:
      - {account: alice, asset: mUSDC, amount: 1000}
    adapters:
      - {name: aave, apy_bps: 500}
    steps:
      - {op: add_protocol, caller: owner, asset: mUSDC, adapter: aave}
      - {op: approve, caller: alice, asset: mUSDC, amount: 100}
      - {op: deposit, caller: alice, asset: mUSDC, amount: 100}
      - {op: accrue, adapter: aave, asset: mUSDC, seconds: 31536000}
      - {op: withdraw_all, caller: alice, asset: mUSDC}
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.adapters.simple_yield import SimpleYieldAdapter
from src.core.yield_vault.errors import VaultError
from src.core.yield_vault.types import VaultConfig
from src.integration.vault_config import ConfigError, config_from_mapping, load_config
from src.integration.vault_controller import VaultController
from src.integration.vault_snapshot import state_to_snapshot
from src.state.token_ledger import TokenLedger

logger = logging.getLogger("vault_scenario_runner")


class ScenarioError(ValueError):
    """Malformed scenario document."""


def _req(step: Mapping[str, Any], key: str) -> Any:
    if key not in step:
        raise ScenarioError(f"step {step.get('op')!r} missing {key!r}")
    return step[key]


class _Runner:
    def __init__(self, doc: Mapping[str, Any], config: VaultConfig):
        self.now = int(doc.get("start_time", 1_700_000_000))
        self.ledger = TokenLedger()
        self.vault = VaultController(
            str(_req(doc, "owner")), self.ledger, config=config, clock=lambda: self.now,
        )
        self.adapters: Dict[str, SimpleYieldAdapter] = {}
        for spec in doc.get("adapters", []):
            name = str(_req(spec, "name"))
            self.adapters[name] = SimpleYieldAdapter(
                name, self.ledger, self.vault.account, apy_bps=int(spec.get("apy_bps", 0)),
            )
        for spec in doc.get("mint", []):
            self.ledger.mint(str(_req(spec, "account")), str(_req(spec, "asset")), int(_req(spec, "amount")))

        self.ops: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
            "add_protocol": lambda s: self.vault.add_protocol(s["caller"], s["asset"], self._adapter(s)),
            "switch_protocol": lambda s: self.vault.switch_protocol(s["caller"], s["asset"], _req(s, "index")),
            "approve": lambda s: self.ledger.approve(s["caller"], self.vault.account, s["asset"], _req(s, "amount")),
            "deposit": lambda s: self.vault.deposit(s["caller"], s["asset"], _req(s, "amount")),
            "withdraw": lambda s: self.vault.withdraw(s["caller"], s["asset"], _req(s, "amount")),
            "withdraw_all": lambda s: self.vault.withdraw_all(s["caller"], s["asset"]),
            "pause": lambda s: self.vault.pause(s["caller"]),
            "unpause": lambda s: self.vault.unpause(s["caller"]),
            "transfer_ownership": lambda s: self.vault.transfer_ownership(s["caller"], _req(s, "new_owner")),
            "accrue": self._accrue,
        }

    def _adapter(self, step: Mapping[str, Any]) -> SimpleYieldAdapter:
        name = _req(step, "adapter")
        if name not in self.adapters:
            raise ScenarioError(f"unknown adapter {name!r}")
        return self.adapters[name]

    def _accrue(self, step: Mapping[str, Any]) -> int:
        seconds = int(_req(step, "seconds"))
        self.now += seconds
        return self._adapter(step).accrue(_req(step, "asset"), seconds)

    def run_step(self, i: int, step: Mapping[str, Any]) -> Dict[str, Any]:
        op = _req(step, "op")
        fn = self.ops.get(op)
        if fn is None:
            raise ScenarioError(f"steps[{i}]: unknown op {op!r}")
        expected = step.get("expect_error")
        out: Dict[str, Any] = {"index": i, "op": op}
        try:
            out["result"] = fn(step)
            out["error"] = None
        except ScenarioError:
            raise
        except KeyError as exc:
            raise ScenarioError(f"steps[{i}] ({op}) missing field {exc}") from exc
        except VaultError as exc:
            out["error"] = exc.code
        except (TypeError, ValueError) as exc:
            raise ScenarioError(f"steps[{i}] ({op}) bad value: {exc}") from exc
        out["ok"] = out["error"] == expected
        if not out["ok"]:
            logger.warning("steps[%d] %s: expected error %r, got %r", i, op, expected, out["error"])
        return out

    def summary(self) -> Dict[str, Any]:
        assets = {}
        for asset in self.vault.get_supported_tokens():
            entry = self.vault.get_asset_state(asset)
            assets[asset] = {
                "active_protocol": entry.active_adapter,
                "total_shares": entry.total_shares,
                "total_deposited": entry.total_deposited,
                "total_value": self.vault.get_total_value(asset),
            }
        return {
            "owner": self.vault.owner,
            "paused": self.vault.paused,
            "assets": assets,
            "events": [e.event.value for e in self.vault.events],
            "snapshot_commitment": state_to_snapshot(self.vault.state).commitment(),
        }


def run_scenario(doc: Mapping[str, Any], config: VaultConfig | None = None) -> Dict[str, Any]:
    if not isinstance(doc, dict):
        raise ScenarioError("scenario must be a mapping")
    if config is None:
        config = config_from_mapping(doc["config"]) if "config" in doc else VaultConfig()
    try:
        runner = _Runner(doc, config)
    except ScenarioError:
        raise
    except (AttributeError, TypeError, ValueError) as exc:
        raise ScenarioError(f"bad scenario setup: {exc}") from exc
    steps = [runner.run_step(i, s) for i, s in enumerate(doc.get("steps", []))]
    result = runner.summary()
    result["steps"] = steps
    result["ok"] = all(s["ok"] for s in steps)
    return result


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Run a YAML vault scenario offline and print a JSON summary.")
    ap.add_argument("scenario", type=Path, help="path to the scenario YAML file")
    ap.add_argument("--config", type=Path, default=None, help="vault config YAML (overrides scenario config)")
    ap.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    args = ap.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        doc = yaml.safe_load(args.scenario.read_text(encoding="utf-8"))
        config = load_config(args.config) if args.config is not None else None
        result = run_scenario(doc, config)
    except (OSError, ScenarioError, ConfigError, yaml.YAMLError) as exc:
        print(f"[vault-scenario] FAIL: {exc}", file=sys.stderr)
        return 2

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0 if result["ok"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
