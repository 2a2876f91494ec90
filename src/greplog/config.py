"""Configuration for the greplog scanner.

This module defines the configuration dataclass built once at process start
and passed to the position store, the logging manager and the renderer.
Values come from the defaults below, then an optional YAML file, then
environment variables.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from .errors import ConfigError
from .models import OutputMode

logger = logging.getLogger(__name__)

CONFIG_ENV = "GREPLOG_CONFIG"

# Environment variable -> config field
ENV_OVERRIDES = {
    "GREPLOG_STATE_DIR": "state_dir",
    "GREPLOG_OUTPUT_MODE": "output_mode",
    "GREPLOG_VERBOSE": "verbose",
    "GREPLOG_LOG_FILE": "log_file",
    "GREPLOG_LOG_LEVEL": "log_level",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def default_state_dir() -> str:
    return str(Path(tempfile.gettempdir()) / "greplog")


@dataclass(frozen=True)
class GrepLogConfig:
    """Configuration for one greplog invocation.

    Attributes:
        state_dir: Directory holding index files (default: <tmp>/greplog).
        index_suffix: Suffix of index file names (default: .idx).
        output_mode: Rendering mode for results (default: module).
        summary_token: Positional token enabling the match count module (default: -s).
        verbose: Whether to trace progress on standard output (default: False).
        log_level: Level for the file log (default: INFO).
        log_file: Optional path of a rotating JSON log file.
    """

    state_dir: str = default_state_dir()
    index_suffix: str = ".idx"
    output_mode: OutputMode = OutputMode.MODULE
    summary_token: str = "-s"
    verbose: bool = False
    log_level: str = "INFO"
    log_file: str | None = None

    def __post_init__(self):
        for name in ("state_dir", "log_file"):
            value = getattr(self, name)
            if value is None and name == "log_file":
                continue
            if not isinstance(value, (str, os.PathLike)) or not os.fspath(value):
                raise ConfigError(f"{name} must be a non-empty path, got {value!r}")
            object.__setattr__(self, name, os.fspath(value))
        for name in ("index_suffix", "summary_token"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigError(f"{name} must be a non-empty string, got {value!r}")
        if not isinstance(self.verbose, bool):
            raise ConfigError(f"verbose must be a boolean, got {self.verbose!r}")
        try:
            object.__setattr__(self, "output_mode", OutputMode(self.output_mode))
        except ValueError as e:
            allowed = ", ".join(mode.value for mode in OutputMode)
            raise ConfigError(
                f"Invalid output_mode {self.output_mode!r}. Allowed modes: {allowed}"
            ) from e
        level = str(self.log_level).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigError(f"Invalid log_level {self.log_level!r}")
        object.__setattr__(self, "log_level", level)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _load_yaml(config_path: Path) -> dict:
    """Load configuration values from a YAML file.

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping.
    """
    if not config_path.is_file():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration YAML {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping")

    known = {f.name for f in fields(GrepLogConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys in {config_path}: {', '.join(unknown)}")

    logger.debug(f"Loaded configuration from {config_path}")
    return data


def load_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> GrepLogConfig:
    """Build the configuration for this process.

    Args:
        config_path: YAML file to read. Defaults to $GREPLOG_CONFIG if set.
        environ: Environment mapping, os.environ when None.

    Returns:
        GrepLogConfig with file values and environment overrides applied.

    Raises:
        ConfigError: If the file or any value is invalid.
    """
    if environ is None:
        environ = os.environ

    values: dict = {}
    path = config_path or environ.get(CONFIG_ENV)
    if path:
        values.update(_load_yaml(Path(path)))

    for env_name, field_name in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            values[field_name] = value

    if "verbose" in values:
        values["verbose"] = _parse_bool(values["verbose"])

    return replace(GrepLogConfig(), **values)
