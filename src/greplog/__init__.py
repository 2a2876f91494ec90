"""Incremental log scanning for monitoring agents.

This package reports log lines matching a pattern that were appended since
the previous run, persisting a small index record per (module, log file)
pair so that nothing is reported twice.

Key Components:
    - models: Index records, match groups and scan results
    - config: Configuration dataclass loaded from YAML and the environment
    - position_store: Persistent position tracking with rotation detection
    - scanner: Pattern matching with optional context windows
    - service: Baseline/scan state machine for one invocation
    - renderer: Agent XML output

Example:
    >>> from greplog import GrepLogConfig, GrepLogService, Invocation
    >>> config = GrepLogConfig(state_dir="/tmp/greplog")
    >>> service = GrepLogService(config)
    >>> outcome = service.run(Invocation("/var/log/syslog", "syslog_errors", "error"))
"""

from __future__ import annotations

from .config import GrepLogConfig, load_config
from .errors import (
    ConfigError,
    GrepLogError,
    LogFileNotFoundError,
    MalformedStateError,
    PatternError,
    ScanIOError,
    UsageError,
)
from .models import ContextWindow, IndexRecord, Invocation, MatchGroup, OutputMode, ScanResult
from .position_store import PositionStore, resolve_key
from .scanner import LogScanner, compile_pattern
from .service import GrepLogService, ScanOutcome

__all__ = [
    "GrepLogConfig",
    "load_config",
    "GrepLogError",
    "UsageError",
    "LogFileNotFoundError",
    "ScanIOError",
    "MalformedStateError",
    "PatternError",
    "ConfigError",
    "IndexRecord",
    "MatchGroup",
    "ScanResult",
    "ContextWindow",
    "Invocation",
    "OutputMode",
    "PositionStore",
    "resolve_key",
    "LogScanner",
    "compile_pattern",
    "GrepLogService",
    "ScanOutcome",
]

__version__ = "0.1.0"
