"""
Engine configuration.

Settings can be given in code or loaded from a YAML file:

    delimiter: ";"
    extension: ".csv"
    tables_dir: tables
    commands_dir: commands
    tests_dir: checks

Relative directories in a YAML file are resolved against the file's
own directory.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from decita.errors import ConfigurationError


class EngineConfig(BaseModel):
    """Where table files live and how they are read."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    delimiter: str = Field(default=";", min_length=1, max_length=1,
                           description="Single-character column delimiter")
    extension: str = Field(default=".csv", description="Suffix of table files")
    tables_dir: Optional[str] = Field(default=None, description="Decision tables")
    commands_dir: Optional[str] = Field(default=None, description="Command tables")
    tests_dir: Optional[str] = Field(default=None, description="Self-test tables")

    @field_validator("tables_dir", "commands_dir", "tests_dir")
    @classmethod
    def resolve_directory(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        """Make relative directories relative to the configuration file."""
        base_dir = (info.context or {}).get("base_dir")
        if v and base_dir and not os.path.isabs(v):
            return os.path.join(base_dir, v)
        return v

    @classmethod
    def from_dict(cls, d: Dict[str, Any] | None, base_dir: str | None = None) -> EngineConfig:
        """
        Validate a plain mapping.

        Raises:
            ConfigurationError: On unknown keys or values of the wrong type
        """
        try:
            return cls.model_validate(d or {}, context={"base_dir": base_dir})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from e


def load_config(filepath: str) -> EngineConfig:
    """
    Load an EngineConfig from a YAML file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigurationError: If the file is not a mapping or fails validation
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(f"Configuration in {filepath} must be a mapping")
    return EngineConfig.from_dict(data, base_dir=os.path.dirname(os.path.abspath(filepath)))
