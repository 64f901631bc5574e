"""Configuration management for onchange using platformdirs."""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from platformdirs import user_config_dir
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "onchange.toml"

DURATION_UNITS = {
    "ns": 1e-9,
    "nsec": 1e-9,
    "us": 1e-6,
    "usec": 1e-6,
    "ms": 1e-3,
    "msec": 1e-3,
    "s": 1.0,
    "sec": 1.0,
    "secs": 1.0,
    "second": 1.0,
    "seconds": 1.0,
    "m": 60.0,
    "min": 60.0,
    "mins": 60.0,
    "minute": 60.0,
    "minutes": 60.0,
    "h": 3600.0,
    "hr": 3600.0,
    "hrs": 3600.0,
    "hour": 3600.0,
    "hours": 3600.0,
}

DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]*)")


class ConfigError(Exception):
    """Raised when the rule configuration cannot be loaded."""


class Settings(BaseSettings):
    """Defaults for command-line options, overridable from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="ONCHANGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables
    )

    duration: str = Field(default="500ms", description="Debounce quiet window")
    delay: str = Field(default="50us", description="Delay before running a command")
    template: str = Field(default="{path}", description="Change notification template")


class RuleConfig(BaseModel):
    """A single rule table from the configuration file."""

    model_config = ConfigDict(extra="ignore")

    extensions: str
    command: Optional[str] = None
    extra_variables: Optional[str] = None


def parse_duration(text: str) -> float:
    """Parse a human readable duration such as ``500ms`` or ``1m 30s`` into seconds."""
    value = text.strip().lower()
    if not value:
        raise ValueError("empty duration")

    total = 0.0
    position = 0
    for match in DURATION_PART.finditer(value):
        if value[position:match.start()].strip():
            raise ValueError(f"invalid duration: {text!r}")
        number, unit = match.groups()
        if unit and unit not in DURATION_UNITS:
            raise ValueError(f"unknown time unit {unit!r} in {text!r}")
        total += float(number) * DURATION_UNITS.get(unit, 1.0)
        position = match.end()

    if position == 0 or value[position:].strip():
        raise ValueError(f"invalid duration: {text!r}")
    return total


def config_search_paths() -> List[Path]:
    """Config files in the order they are merged; later ones win."""
    return [
        Path("/etc") / CONFIG_FILE_NAME,
        Path(user_config_dir()) / CONFIG_FILE_NAME,
        Path("." + CONFIG_FILE_NAME),
    ]


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two TOML tables."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e


def load_rules(config_file: Optional[Union[str, Path]] = None) -> Dict[str, RuleConfig]:
    """Load extension rules.

    Args:
        config_file: Explicit config file. When given, the search paths are
            not consulted and the file must exist.

    Returns:
        Mapping of rule name to its validated configuration, in file order.
    """
    if config_file is not None:
        path = Path(config_file)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        paths = [path]
    else:
        paths = [p for p in config_search_paths() if p.exists()]

    raw: Dict[str, Any] = {}
    for path in paths:
        logger.debug(f"Loading config from {path}")
        raw = _merge(raw, _read_toml(path))

    rules: Dict[str, RuleConfig] = {}
    for name, table in raw.items():
        if not isinstance(table, dict):
            raise ConfigError(f"Rule '{name}' must be a table")
        try:
            rules[name] = RuleConfig(**table)
        except ValidationError as e:
            raise ConfigError(f"Invalid rule '{name}': {e}") from e
    return rules
