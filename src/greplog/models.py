"""Data models for the greplog scanner.

This module defines the core data structures shared by the position store,
the scan engine and the renderer: the persisted index record, match groups,
scan results and the parsed invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OutputMode(str, Enum):
    """Rendering mode for scan results.

    Attributes:
        MODULE: One aggregate module with a data entry per match group.
        LOG_MODULE: Raw concatenated content of every match group.
    """

    MODULE = "module"
    LOG_MODULE = "log_module"


@dataclass(frozen=True)
class IndexRecord:
    """Persisted scan progress for one (module, log file) pair.

    Attributes:
        position: Byte offset where the next scan begins.
        identity: Inode number of the log file when the record was written.
        last_size: File size observed at the end of the previous scan.
    """

    position: int
    identity: int
    last_size: int


@dataclass
class MatchGroup:
    """One reported match and its surrounding context lines.

    Attributes:
        lines: Raw lines in file order, including the matching line.
        match_index: 0-based index of the matching line in the scanned window.
    """

    lines: list[str]
    match_index: int


@dataclass
class ScanResult:
    """Output of a single scan.

    Attributes:
        groups: Match groups in file order, earliest match first.
        total_matches: Number of matching lines.
        start_offset: Byte offset the scan started from.
        end_offset: Stream position reached at end of file.
    """

    groups: list[MatchGroup] = field(default_factory=list)
    total_matches: int = 0
    start_offset: int = 0
    end_offset: int = 0

    @classmethod
    def empty(cls, offset: int) -> ScanResult:
        """Result of a run that read nothing, e.g. a baseline run."""
        return cls(groups=[], total_matches=0, start_offset=offset, end_offset=offset)


@dataclass(frozen=True)
class ContextWindow:
    """Number of lines to include before and after each match."""

    up: int = 0
    bot: int = 0


@dataclass
class Invocation:
    """Positional parameters of one greplog run.

    Attributes:
        log_file: Path to the log file to scan.
        module_name: Name of the module reported to the agent.
        pattern: Case-insensitive regular expression.
        up_lines: Context lines before each match, None if not given.
        bot_lines: Context lines after each match, None if not given.
        summary: Whether to emit the match count module.
    """

    log_file: str
    module_name: str
    pattern: str
    up_lines: int | None = None
    bot_lines: int | None = None
    summary: bool = False

    @property
    def context_window(self) -> ContextWindow | None:
        if self.up_lines is None and self.bot_lines is None:
            return None
        return ContextWindow(up=self.up_lines or 0, bot=self.bot_lines or 0)
