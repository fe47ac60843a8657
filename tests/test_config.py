"""
Tests for engine configuration.
"""

import os

import pytest
from pydantic import ValidationError
from decita.config import EngineConfig, load_config
from decita.errors import ConfigurationError


def test_defaults():
    config = EngineConfig()
    assert config.delimiter == ";"
    assert config.extension == ".csv"
    assert config.tables_dir is None


def test_load_resolves_relative_directories(tmp_path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("delimiter: ','\ntables_dir: tables\n")
    config = load_config(str(config_file))
    assert config.delimiter == ","
    assert config.tables_dir == os.path.join(str(tmp_path), "tables")
    assert config.commands_dir is None


def test_absolute_directories_are_kept(tmp_path):
    config = EngineConfig.from_dict({"tables_dir": "/srv/tables"}, base_dir=str(tmp_path))
    assert config.tables_dir == "/srv/tables"


def test_empty_file(tmp_path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("")
    assert load_config(str(config_file)) == EngineConfig()


def test_unknown_keys(tmp_path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("colour: blue\n")
    with pytest.raises(ConfigurationError, match="colour"):
        load_config(str(config_file))


def test_not_a_mapping(tmp_path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("- a\n- b\n")
    with pytest.raises(ConfigurationError, match="must be a mapping"):
        load_config(str(config_file))


def test_wrong_type_is_rejected():
    with pytest.raises(ConfigurationError, match="tables_dir"):
        EngineConfig.from_dict({"tables_dir": 5}, base_dir="/tmp")


def test_delimiter_must_be_one_character():
    with pytest.raises(ConfigurationError, match="delimiter"):
        EngineConfig.from_dict({"delimiter": ";;"})


def test_config_is_immutable():
    with pytest.raises(ValidationError):
        EngineConfig().delimiter = ","
