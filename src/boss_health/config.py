from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from importlib.resources import files as resource_files
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

# YAML keys as written in plugin config files -> dataclass fields
KEY_ALIASES: Dict[str, str] = {
    "boss-team-names": "boss_team_names",
    "interval": "interval_ms",
    "health-bar-size": "health_bar_size",
    "middle-print": "middle_print",
    "announce-timeout": "announce_timeout",
    "announce-health-change": "announce_health_change",
    "announce-require-time-and-health-change": "require_time_and_health_change",
    "query-timeout": "query_timeout_ms",
}


def _as_bool(value: Any) -> bool:
    """Interpret common truthy/falsey values into a bool.

    Accepts: True/False, 1/0, "true"/"false", "yes"/"no", "on"/"off" (case-insensitive).
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"1", "true", "yes", "y", "on"}:
            return True
        if v in {"0", "false", "no", "n", "off", ""}:
            return False
        return True
    return bool(value)


def _as_names(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, Iterable):
        raise TypeError(f"expected a list of team names, got {value!r}")
    names = (str(v).strip().lower() for v in value if v is not None)
    return tuple(n for n in names if n)


@dataclass(frozen=True)
class BossHealthConfig:
    """Announcer configuration, fixed once loaded.

    Attributes:
        boss_team_names: Normalized (trimmed, lowercased) team names that mark a boss team.
        interval_ms: Poll period in milliseconds.
        health_bar_size: Width of the rendered health bar in characters.
        middle_print: Render header and bar as one centered message per player.
        announce_timeout: Seconds before a time-based announcement is allowed.
        announce_health_change: Health fraction delta before a change-based announcement is allowed.
        require_time_and_health_change: Require both conditions instead of either.
        query_timeout_ms: How long to wait for a console answer.
    """

    boss_team_names: Tuple[str, ...] = ("boss",)
    interval_ms: int = 1000
    health_bar_size: int = 20
    middle_print: bool = False
    announce_timeout: float = 10.0
    announce_health_change: float = 0.1
    require_time_and_health_change: bool = False
    query_timeout_ms: int = 100

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BossHealthConfig":
        """Build a validated config from kebab-case keys or field names."""
        allowed = {f.name for f in dataclasses.fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = KEY_ALIASES.get(key, key)
            if name not in allowed:
                logger.debug("Ignoring unknown config key: %s", key)
                continue
            values[name] = value
        return cls(**_validated(values))

    def replace(self, **changes: Any) -> "BossHealthConfig":
        return type(self).from_dict({**dataclasses.asdict(self), **changes})


_DEFAULTS = BossHealthConfig()


def _validated(values: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce types and reset out-of-range values to defaults with a warning."""
    out = dict(values)
    try:
        if "boss_team_names" in out:
            out["boss_team_names"] = _as_names(out["boss_team_names"])
        for name in ("interval_ms", "health_bar_size", "query_timeout_ms"):
            if name in out:
                out[name] = int(out[name])
        for name in ("announce_timeout", "announce_health_change"):
            if name in out:
                out[name] = float(out[name])
        for name in ("middle_print", "require_time_and_health_change"):
            if name in out:
                out[name] = _as_bool(out[name])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    for name in ("interval_ms", "health_bar_size", "query_timeout_ms"):
        if name in out and out[name] <= 0:
            default = getattr(_DEFAULTS, name)
            logger.warning("Invalid %s=%s; resetting to %s", name, out[name], default)
            out[name] = default
    if "announce_timeout" in out and out["announce_timeout"] < 0:
        logger.warning("Negative announce_timeout=%s; resetting to %s", out["announce_timeout"], _DEFAULTS.announce_timeout)
        out["announce_timeout"] = _DEFAULTS.announce_timeout
    if "announce_health_change" in out:
        change = out["announce_health_change"]
        clamped = max(0.0, min(1.0, change))
        if clamped != change:
            logger.warning("announce_health_change=%s outside [0, 1]; clamped to %s", change, clamped)
        out["announce_health_change"] = clamped
    if "boss_team_names" in out and not out["boss_team_names"]:
        logger.warning("No boss team names configured; no minigame will be tracked")
    return out


ENV_PREFIX = "BH_"


def from_env(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect overrides from ``BH_*`` environment variables.

    Variables are named after the YAML options (``interval`` -> ``BH_INTERVAL``,
    ``middle-print`` -> ``BH_MIDDLE_PRINT``). ``BH_BOSS_TEAM_NAMES`` is
    comma-separated. Values are coerced later by validation.
    """
    env = os.environ if env is None else env
    out: Dict[str, Any] = {}
    for option, field_name in KEY_ALIASES.items():
        key = ENV_PREFIX + option.upper().replace("-", "_")
        if key in env and env[key] != "":
            out[field_name] = env[key]
    return out


def read_yaml(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Read a YAML config document.

    If path is None, reads the embedded default resource boss_health/config.yaml.
    """
    if path is None:
        text = resource_files("boss_health").joinpath("config.yaml").read_text(encoding="utf-8")
        logger.debug("Loaded embedded config resource")
    else:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        logger.debug("Loaded config from path: %s", path)

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse config YAML: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config document must be a mapping, got {type(raw).__name__}")
    return raw


def load_config(
    path: Optional[Union[str, Path]] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> BossHealthConfig:
    """Load configuration. Precedence (lowest to highest): defaults < file < env."""
    data: Dict[str, Any] = {}
    for key, value in read_yaml(path).items():
        data[KEY_ALIASES.get(key, key)] = value
    data.update(from_env(env))
    config = BossHealthConfig.from_dict(data)
    logger.info(
        "Boss teams: %s | interval=%sms | timeout=%ss | change=%s | require_both=%s",
        list(config.boss_team_names),
        config.interval_ms,
        config.announce_timeout,
        config.announce_health_change,
        config.require_time_and_health_change,
    )
    return config
