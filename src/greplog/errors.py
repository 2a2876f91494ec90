"""Exception hierarchy for greplog.

Every failure is terminal for the invocation. The CLI catches
GrepLogError, prints a single diagnostic line and exits with the
error's exit_code.
"""

from __future__ import annotations


class GrepLogError(Exception):
    """Base class for all greplog failures."""

    exit_code = 1


class UsageError(GrepLogError):
    """Invalid or insufficient positional parameters."""

    exit_code = 2


class LogFileNotFoundError(GrepLogError):
    """The log file does not exist when the scan starts."""


class ScanIOError(GrepLogError):
    """Failure opening, reading or writing the log file or the index file."""


class MalformedStateError(ScanIOError):
    """Index file exists but does not hold a valid position/identity/size triple."""


class PatternError(GrepLogError):
    """The search pattern cannot be compiled."""


class ConfigError(GrepLogError):
    """Configuration file or environment values are invalid."""
