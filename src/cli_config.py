"""Configuration loading and precedence for the CLI.

Precedence, highest first: CLI flags, the config file (``--config``,
``PORTPLAN_CONFIG`` or a default location), built-in ``Constants``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from resolver.models import ResolveOptions, UnsupportedAction

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """The configuration file cannot be read or has invalid values."""


def _find_config(path: Optional[str]) -> Optional[str]:
    if path:
        return path
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        return env_path
    for candidate in Constants.CONFIG_LOCATIONS:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            return expanded
    return None


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML (or ``.json``) configuration file, or {} when there is none.

    An explicitly named file that does not exist is an error; missing default
    locations are not.
    """
    resolved = _find_config(path)
    if resolved is None:
        return {}
    if not os.path.isfile(resolved):
        raise ConfigError(f"config file not found: {resolved}")
    with open(resolved, "r", encoding="utf-8") as fh:
        try:
            if resolved.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"{resolved}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{resolved}: top level must be a mapping")
    logger.debug("Loaded configuration from %s", resolved)
    return data


@dataclass(frozen=True)
class Settings:
    """Effective settings for one CLI invocation."""
    target_triplet: str
    host_triplet: str
    override_precedence: bool
    unsupported: UnsupportedAction
    skip_failures: bool
    output_format: Optional[str]
    log_level: Optional[str]

    def resolve_options(self) -> ResolveOptions:
        return ResolveOptions(override_precedence=self.override_precedence, unsupported=self.unsupported)


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "on", "1"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "no", "off", "0"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def build_settings(args: Any, config: Dict[str, Any]) -> Settings:
    """Merge CLI arguments over the config file over built-in defaults."""
    unsupported_text = _first(
        "warn" if getattr(args, "ALLOW_UNSUPPORTED", False) else None,
        config.get("unsupported"),
        Constants.UNSUPPORTED_ACTION,
    )
    try:
        unsupported = UnsupportedAction(str(unsupported_text).lower())
    except ValueError as e:
        raise ConfigError(f"unsupported must be 'error' or 'warn', got {unsupported_text!r}") from e

    precedence_flag = getattr(args, "OVERRIDE_PRECEDENCE", None)
    override_precedence = _as_bool(
        "override_precedence",
        _first(
            None if precedence_flag is None else precedence_flag == "override",
            config.get("override_precedence"),
            Constants.OVERRIDE_PRECEDENCE,
        ),
    )

    skip_failures = _as_bool(
        "skip_failures",
        _first(
            True if getattr(args, "SKIP_FAILURES", False) else None,
            config.get("skip_failures"),
            Constants.SKIP_FAILURES,
        ),
    )

    return Settings(
        target_triplet=_first(getattr(args, "TRIPLET", None), config.get("target_triplet"),
                              Constants.DEFAULT_TARGET_TRIPLET),
        host_triplet=_first(getattr(args, "HOST_TRIPLET", None), config.get("host_triplet"),
                            Constants.DEFAULT_HOST_TRIPLET),
        override_precedence=override_precedence,
        unsupported=unsupported,
        skip_failures=skip_failures,
        output_format=_first(getattr(args, "OUTPUT_FORMAT", None), config.get("output_format")),
        log_level=_first(getattr(args, "LOG_LEVEL", None), config.get("log_level")),
    )
