"""
Snapshot serialization with a versioned migration table.

Snapshots are plain dicts tagged with a schema_version. Loading runs one
migration per version step, then back-fills anything still missing from a
freshly built default state. Migrations only ever add.
"""

from typing import Any, Callable, Dict, Optional
import copy
import json
import logging
from pathlib import Path

import numpy as np
from numpy.random import Generator

from config import GameConfig
from state import GameState, create_initial_state

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3


class NumpyEncoder(json.JSONEncoder):
    """Custom encoder for NumPy data types."""

    def default(self, obj):
        if isinstance(obj, (np.integer, np.floating, np.bool_)):
            return obj.item()
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        return super(NumpyEncoder, self).default(obj)


def _v1_to_v2(data: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """v2 introduced the court, magic and prestige."""
    for key in ("specialists", "heroes", "active_effects", "permanent"):
        data.setdefault(key, copy.deepcopy(defaults[key]))
    data.setdefault("resources", {}).setdefault("mana", 0)
    return data


def _v2_to_v3(data: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """v3 queued events and tracked conquests and per-nation cooldowns."""
    for key in ("pending_events", "active_event", "conquests", "next_id", "low_satisfaction_days"):
        data.setdefault(key, copy.deepcopy(defaults[key]))
    for nation in data.get("ai_nations", []):
        nation.setdefault("last_action_day", -1e9)
        nation.setdefault("is_defeated", False)
        for treaty in nation.get("treaties", []):
            treaty.setdefault("started_at", 0.0)
    return data


MIGRATIONS: Dict[int, Callable[[Dict[str, Any], Dict[str, Any]], Dict[str, Any]]] = {
    1: _v1_to_v2,
    2: _v2_to_v3,
}


def backfill(data: Dict[str, Any], defaults: Dict[str, Any]) -> None:
    """Add every key missing from data, recursing into nested dicts."""
    for key, value in defaults.items():
        if key not in data:
            data[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(data[key], dict):
            backfill(data[key], value)


def serialize(state: GameState) -> Dict[str, Any]:
    snapshot = state.to_dict()
    snapshot["schema_version"] = SCHEMA_VERSION
    return snapshot


def migrate(snapshot: Dict[str, Any], config: GameConfig) -> Dict[str, Any]:
    """Bring a snapshot of any older version up to SCHEMA_VERSION."""
    data = copy.deepcopy(snapshot)
    version = data.pop("schema_version", 1)
    if version > SCHEMA_VERSION:
        raise ValueError(f"Snapshot schema {version} is newer than supported {SCHEMA_VERSION}")

    defaults = create_initial_state(config, np.random.default_rng(0)).to_dict()
    while version < SCHEMA_VERSION:
        data = MIGRATIONS[version](data, defaults)
        version += 1
        logger.info("Migrated snapshot to schema %d", version)
    backfill(data, defaults)
    return data


def deserialize(snapshot: Dict[str, Any], config: GameConfig,
                rng: Optional[Generator] = None) -> GameState:
    """
    Rebuild a state from a snapshot. A finished game cannot be resumed, so a
    terminal snapshot yields a fresh game that keeps the prestige data.
    """
    state = GameState.from_dict(migrate(snapshot, config))
    if state.is_finished:
        logger.warning("Saved reign had already ended; starting a new one")
        rng = rng if rng is not None else np.random.default_rng()
        return create_initial_state(config, rng, permanent=state.permanent)
    return state


def save_game(path, snapshot: Dict[str, Any]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(snapshot, f, indent=2, cls=NumpyEncoder)
    return path


def load_game(path) -> Optional[Dict[str, Any]]:
    """Read a snapshot; a missing file means there is nothing to resume."""
    path = Path(path)
    if not path.exists():
        return None
    with open(path) as f:
        return json.load(f)
