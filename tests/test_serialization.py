"""
Tests for stored state serialization.

State must survive a JSON/YAML round-trip through the plain nested
mapping used by decita.serialization.
"""

import pytest
from decita.context import StoredState
from decita.errors import ConfigurationError
from decita.serialization import (
    state_from_dict,
    state_from_json,
    state_from_yaml,
    state_to_dict,
    state_to_json,
    state_to_yaml,
)


def build_sample_state() -> StoredState:
    return StoredState.from_dict({
        "data": {"is-stored": True},
        "market": {"shop": 2},
        "currentPlayer": {"name": "Eugene"},
    })


def test_json_roundtrip():
    state = build_sample_state()
    before = state_to_dict(state)
    restored = state_from_json(state_to_json(state))
    assert state_to_dict(restored) == before


def test_yaml_roundtrip():
    state = build_sample_state()
    before = state_to_dict(state)
    restored = state_from_yaml(state_to_yaml(state))
    assert state_to_dict(restored) == before


def test_restored_state_is_usable():
    restored = state_from_json(state_to_json(build_sample_state()))
    assert restored.locator_for("market").fragment_by("shop", None) == "2"


def test_empty_document_is_empty_state():
    assert state_from_yaml("").state() == {}


def test_rejects_flat_mapping():
    with pytest.raises(ConfigurationError, match="mapping of fragments"):
        state_from_dict({"shop": 2})


def test_rejects_non_mapping_document():
    with pytest.raises(ConfigurationError):
        state_from_json("[1, 2]")
