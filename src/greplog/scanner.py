"""Incremental pattern scanning of log files.

This module reads a log file from a byte offset to its end, matches every
line case-insensitively, and collects match groups with optional context
lines around each match.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .errors import PatternError, ScanIOError
from .models import ContextWindow, MatchGroup, ScanResult

logger = logging.getLogger(__name__)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a search pattern for case-insensitive matching.

    Raises:
        PatternError: If the pattern is not a valid regular expression.
    """
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise PatternError(f"Invalid pattern {pattern!r}: {e}") from e


def _decode(raw: bytes) -> str:
    line = raw.decode("utf-8", errors="replace")
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


class LogScanner:
    """Scans the content of a log file appended after a given offset.

    Offsets are byte offsets: the file is read in binary mode and each line
    is decoded as UTF-8 with replacement characters. The end offset returned
    is the stream position after the last sequential read.
    """

    def scan(
        self,
        log_file_path: str | Path,
        start_offset: int,
        pattern: str | re.Pattern[str],
        context_window: ContextWindow | None = None,
    ) -> ScanResult:
        """Scan a log file from start_offset to end of file.

        Args:
            log_file_path: Path to the log file.
            start_offset: Byte offset to start reading from.
            pattern: Regular expression, or an already compiled pattern.
            context_window: Lines to include before and after each match.
                None reports only the matching lines.

        Returns:
            ScanResult with the match groups, match count and end offset.

        Raises:
            PatternError: If the pattern cannot be compiled.
            ScanIOError: If the log file cannot be opened or read.
        """
        if isinstance(pattern, str):
            pattern = compile_pattern(pattern)

        log_path = Path(log_file_path)
        try:
            with log_path.open("rb") as f:
                f.seek(start_offset)
                if context_window is None:
                    groups, total = self._scan_lines(f, pattern)
                else:
                    groups, total = self._scan_with_context(f, pattern, context_window)
                end_offset = f.tell()
        except OSError as e:
            raise ScanIOError(f"Cannot read log file {log_path}: {e}") from e

        logger.debug(
            f"Scanned {log_path} (offset {start_offset} -> {end_offset}): "
            f"{total} matches in {len(groups)} groups",
            extra={"start_offset": start_offset, "end_offset": end_offset, "total_matches": total},
        )
        return ScanResult(
            groups=groups,
            total_matches=total,
            start_offset=start_offset,
            end_offset=end_offset,
        )

    def _scan_lines(self, f, pattern: re.Pattern[str]) -> tuple[list[MatchGroup], int]:
        groups: list[MatchGroup] = []
        index = 0
        while True:
            raw = f.readline()
            if not raw:  # EOF
                break
            line = _decode(raw)
            if pattern.search(line):
                groups.append(MatchGroup(lines=[line], match_index=index))
            index += 1
        return groups, len(groups)

    def _scan_with_context(
        self,
        f,
        pattern: re.Pattern[str],
        window: ContextWindow,
    ) -> tuple[list[MatchGroup], int]:
        # First pass: buffer the window and record where the matches are
        lines: list[str] = []
        matches: list[int] = []
        while True:
            raw = f.readline()
            if not raw:  # EOF
                break
            line = _decode(raw)
            if pattern.search(line):
                matches.append(len(lines))
            lines.append(line)

        # Second pass: one independent group per match, overlaps are kept
        groups: list[MatchGroup] = []
        for index in matches:
            first = max(0, index - window.up)
            last = min(len(lines), index + window.bot + 1)
            groups.append(MatchGroup(lines=lines[first:last], match_index=index))

        return groups, len(matches)
