"""
Config system - layered builder configuration.

Sources, merged with increasing precedence:
config files (YAML/JSON) < .env file < environment variables < overrides

Two sections matter to the builder:

    builder:            # how the tree is walked (BuilderConfig)
      root_path: infra
      file_pattern: "*.py"
    props:              # the configuration bag handed to every construct
      region: eu-west-1

Environment variables use the ``SMITH_`` prefix and ``__`` for nesting,
e.g. ``SMITH_PROPS__REGION=eu-west-1``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import dotenv_values

from .faults import ConfigInvalidFault, ConfigMissingFault

logger = logging.getLogger("stacksmith.config")


@dataclass
class BuilderConfig:
    """Settings for a ConstructBuilder."""

    root_path: str
    file_pattern: str = "*.py"
    ignore_patterns: Tuple[str, ...] = ("_*",)
    export_name: str = "construct"
    check_cycles: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuilderConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigInvalidFault("builder", f"unknown keys: {', '.join(sorted(unknown))}")
        if not data.get("root_path"):
            raise ConfigMissingFault("builder.root_path")

        values = dict(data)
        if "ignore_patterns" in values:
            patterns = values["ignore_patterns"]
            if isinstance(patterns, str):
                patterns = [patterns]
            values["ignore_patterns"] = tuple(patterns)
        return cls(**values)


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > config files
    """

    def __init__(self, env_prefix: str = "SMITH_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = "SMITH_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from multiple sources.

        Args:
            paths: Config file paths (.yaml, .yml or .json)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for path in paths or []:
            loader._load_file(Path(path))

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_file(self, path: Path):
        if not path.exists():
            raise ConfigMissingFault(str(path))

        with open(path) as f:
            try:
                if path.suffix == ".json":
                    data = json.load(f)
                elif path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    raise ConfigInvalidFault(str(path), "unsupported config file type")
            except (json.JSONDecodeError, yaml.YAMLError) as exc:
                raise ConfigInvalidFault(str(path), str(exc)) from exc

        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigInvalidFault(str(path), "top level must be a mapping")

        logger.debug(f"Loaded config file {path}")
        self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            raise ConfigMissingFault(str(env_path))

        for key, value in dotenv_values(env_path).items():
            if key.startswith(self.env_prefix) and value is not None:
                self._set_nested(key, value)

    def _load_from_env(self):
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert SMITH_PROPS__REGION to {"props": {"region": ...}}."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def builder_config(self, **overrides: Any) -> BuilderConfig:
        """BuilderConfig from the ``builder`` section; ``overrides`` win over it."""
        section = self.get("builder", {})
        if not isinstance(section, dict):
            raise ConfigInvalidFault("builder", "must be a mapping")
        return BuilderConfig.from_dict({**section, **overrides})

    def props(self) -> Dict[str, Any]:
        """The configuration bag for ``ConstructBuilder.build``."""
        section = self.get("props", {})
        if not isinstance(section, dict):
            raise ConfigInvalidFault("props", "must be a mapping")
        return dict(section)

    def to_dict(self) -> dict:
        return self.config_data


# ============================================================================
# Environment readers
# ============================================================================

def get_string(name: str, default: Optional[str] = None) -> str:
    """
    Read a non-empty environment variable.

    Raises:
        ConfigMissingFault: unset or empty, and no default given.
    """
    value = os.environ.get(name)
    if not value:
        if default is None:
            raise ConfigMissingFault(name)
        return default
    return value


def get_number(name: str, default: Optional[int] = None) -> int:
    """
    Read an integer environment variable.

    Raises:
        ConfigMissingFault: unset or empty, and no default given.
        ConfigInvalidFault: not an integer, and no default given.
    """
    raw = get_string(name, "" if default is not None else None)
    try:
        return int(raw)
    except ValueError:
        if default is None:
            raise ConfigInvalidFault(name, f"not a number: {raw!r}")
        return default
