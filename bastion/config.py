"""User configuration: ~/.bastion/config.json plus BASTION_* environment overrides.

Precedence is CLI flag > environment > config file > built-in default. The
CLI applies flags on top of the Settings returned here.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

from bastion.errors import ConfigError
from bastion.process import DEFAULT_GRACE_PERIOD

logger = logging.getLogger(__name__)

FORMATS = ("json", "human")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
MIN_GRACE_PERIOD = 0.05
MAX_GRACE_PERIOD = 10.0

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    # None means "decide from the terminal": human on a TTY, else json
    format: str | None = None
    color: bool = True
    grace_period: float = DEFAULT_GRACE_PERIOD
    log_level: str = "WARNING"


KEYS = ("format", "color", "grace_period", "log_level")


def config_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    override = env.get("BASTION_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".bastion" / "config.json"


def load_config(path: Path) -> dict[str, Any]:
    """Load config from file, returning an empty dict if missing or unreadable."""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: expected a JSON object", path)
        return {}
    return data


def save_config(path: Path, cfg: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dict(cfg), f, indent=2, sort_keys=True)
        f.write("\n")


# ── Validation ──────────────────────────────────────────────────────────

def parse_value(key: str, value: Any) -> Any:
    """Validate one setting. Strings (from env or the CLI) are coerced."""
    if key == "format":
        text = str(value).lower()
        if text not in FORMATS:
            raise ConfigError(f"format must be one of {', '.join(FORMATS)}, got {value!r}")
        return text

    if key == "color":
        if isinstance(value, bool):
            return value
        text = str(value).lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ConfigError(f"color must be true or false, got {value!r}")

    if key == "grace_period":
        if isinstance(value, bool):
            raise ConfigError(f"grace_period must be a number, got {value!r}")
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"grace_period must be a number, got {value!r}") from None
        if not MIN_GRACE_PERIOD <= seconds <= MAX_GRACE_PERIOD:
            raise ConfigError(
                f"grace_period must be between {MIN_GRACE_PERIOD} and {MAX_GRACE_PERIOD} seconds"
            )
        return seconds

    if key == "log_level":
        text = str(value).upper()
        if text not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return text

    raise ConfigError(f"Unknown config key: {key}")


def _from_file(cfg: Mapping[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, value in cfg.items():
        if key not in KEYS:
            logger.warning("ignoring unknown config key %r", key)
            continue
        values[key] = parse_value(key, value)
    return values


def _from_env(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, var in (
        ("format", "BASTION_FORMAT"),
        ("grace_period", "BASTION_GRACE_PERIOD"),
        ("log_level", "BASTION_LOG_LEVEL"),
    ):
        if env.get(var):
            values[key] = parse_value(key, env[var])
    # https://no-color.org: presence disables color regardless of value
    if "NO_COLOR" in env:
        values["color"] = False
    return values


def load_settings(env: Mapping[str, str] | None = None, path: Path | None = None) -> Settings:
    """Defaults, then the config file, then the environment.

    Raises ConfigError when a value present in either source is invalid.
    """
    env = os.environ if env is None else env
    path = path if path is not None else config_path(env)

    settings = replace(Settings(), **_from_file(load_config(path)))
    settings = replace(settings, **_from_env(env))
    logger.debug("settings: %s", settings)
    return settings
