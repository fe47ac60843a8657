"""
Serialization helpers for stored state.

State is exported to, and imported from, a plain nested mapping
(locator name -> fragment name -> value). JSON and YAML are thin layers
over that mapping.
"""
from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from decita.context import StoredState
from decita.errors import ConfigurationError


def state_to_dict(state: StoredState) -> Dict[str, Dict[str, Any]]:
    return state.state()


def state_from_dict(d: Dict[str, Dict[str, Any]] | None) -> StoredState:
    if d is None:
        return StoredState()
    if not isinstance(d, dict) or not all(isinstance(v, dict) for v in d.values()):
        raise ConfigurationError("State must be a mapping of locator name -> mapping of fragments")
    return StoredState.from_dict(d)


def state_to_json(state: StoredState) -> str:
    return json.dumps(state_to_dict(state), sort_keys=True)


def state_from_json(s: str) -> StoredState:
    return state_from_dict(json.loads(s))


def state_to_yaml(state: StoredState) -> str:
    return yaml.safe_dump(state_to_dict(state))


def state_from_yaml(s: str) -> StoredState:
    return state_from_dict(yaml.safe_load(s))
