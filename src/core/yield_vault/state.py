"""State construction and serialization for `yield_vault`.

`initial_state(owner)` returns the state of a freshly constructed vault:
active (unpaused), no supported assets, no positions.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s` for all valid states.
The dict form uses only str/int/bool/list/dict so it can go straight through
canonical JSON encoding.
"""

from __future__ import annotations

from typing import Any, Mapping

from .types import AssetState, UserPosition, VaultState


def initial_state(owner: str) -> VaultState:
    if not isinstance(owner, str) or not owner.strip():
        raise ValueError("owner must be a non-empty string")
    return VaultState(owner=owner.strip())


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    return int(value)


def _require_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise TypeError(f"{name} must be a non-empty str")
    return value


def state_to_dict(state: VaultState) -> dict[str, Any]:
    """Serialize a VaultState to a plain dict.

    Assets keep registration order; positions are sorted by (user, asset).
    """
    return {
        "owner": state.owner,
        "paused": state.paused,
        "assets": [
            {
                "asset": asset_id,
                "protocols": list(state.assets[asset_id].protocols),
                "active_index": state.assets[asset_id].active_index,
                "total_shares": state.assets[asset_id].total_shares,
                "total_deposited": state.assets[asset_id].total_deposited,
            }
            for asset_id in state.supported_assets
        ],
        "positions": [
            {
                "user": user,
                "asset": asset,
                "shares": pos.shares,
                "total_deposited": pos.total_deposited,
            }
            for (user, asset), pos in sorted(state.positions.items())
        ],
    }


def state_from_dict(d: Mapping[str, Any]) -> VaultState:
    """Deserialize a dict to a VaultState. Raises KeyError on missing fields."""
    paused = d["paused"]
    if not isinstance(paused, bool):
        raise TypeError("paused must be a bool")

    supported: list[str] = []
    assets: dict[str, AssetState] = {}
    for i, raw in enumerate(d["assets"]):
        asset_id = _require_str(raw["asset"], name=f"assets[{i}].asset")
        if asset_id in assets:
            raise ValueError(f"duplicate asset {asset_id!r}")
        protocols = tuple(
            _require_str(p, name=f"assets[{i}].protocols[{j}]") for j, p in enumerate(raw["protocols"])
        )
        supported.append(asset_id)
        assets[asset_id] = AssetState(
            protocols=protocols,
            active_index=_require_int(raw["active_index"], name=f"assets[{i}].active_index"),
            total_shares=_require_int(raw["total_shares"], name=f"assets[{i}].total_shares"),
            total_deposited=_require_int(raw["total_deposited"], name=f"assets[{i}].total_deposited"),
        )

    positions: dict[tuple[str, str], UserPosition] = {}
    for i, raw in enumerate(d["positions"]):
        key = (
            _require_str(raw["user"], name=f"positions[{i}].user"),
            _require_str(raw["asset"], name=f"positions[{i}].asset"),
        )
        if key in positions:
            raise ValueError(f"duplicate position {key!r}")
        positions[key] = UserPosition(
            shares=_require_int(raw["shares"], name=f"positions[{i}].shares"),
            total_deposited=_require_int(raw["total_deposited"], name=f"positions[{i}].total_deposited"),
        )

    return VaultState(
        owner=_require_str(d["owner"], name="owner"),
        paused=paused,
        supported_assets=tuple(supported),
        assets=assets,
        positions=positions,
    )
