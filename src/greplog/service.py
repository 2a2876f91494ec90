"""Per-invocation orchestration of the position store and the scanner.

A run either establishes a baseline for a new (module, log file) pair, or
loads the stored record, reconciles it against the log file, scans the new
content and saves the updated record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import GrepLogConfig
from .errors import LogFileNotFoundError
from .models import IndexRecord, Invocation, ScanResult
from .position_store import PositionStore
from .scanner import LogScanner, compile_pattern

logger = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    """Result of one run.

    Attributes:
        baseline: True if this run only created the index.
        result: Matches found by the scan, empty on a baseline run.
        record: Index record persisted at the end of the run.
    """

    baseline: bool
    result: ScanResult
    record: IndexRecord


class GrepLogService:
    """Runs one scan for an invocation.

    Attributes:
        store: Position store for index records.
        scanner: Scan engine.
    """

    def __init__(
        self,
        config: GrepLogConfig,
        store: PositionStore | None = None,
        scanner: LogScanner | None = None,
    ):
        self.config = config
        self.store = store or PositionStore(config.state_dir, config.index_suffix)
        self.scanner = scanner or LogScanner()

    def run(self, invocation: Invocation) -> ScanOutcome:
        """Scan the content appended to the log file since the last run.

        Args:
            invocation: Parsed positional parameters.

        Returns:
            ScanOutcome describing what was found and persisted.

        Raises:
            LogFileNotFoundError: If the log file does not exist.
            PatternError: If the pattern cannot be compiled.
            ScanIOError: If the log or index file cannot be read or written.
        """
        log_path = Path(invocation.log_file)
        if not log_path.exists():
            raise LogFileNotFoundError(f"Log file not found: {log_path}")

        pattern = compile_pattern(invocation.pattern)
        key = self.store.resolve_key(invocation.module_name, log_path)

        if not self.store.exists(key):
            record = self.store.initialize(key, log_path)
            logger.info(f"Baseline run for {invocation.module_name}: no matches reported")
            return ScanOutcome(
                baseline=True,
                result=ScanResult.empty(record.position),
                record=record,
            )

        record = self.store.reconcile(self.store.load(key), log_path)
        logger.debug(f"Scanning {log_path} from offset {record.position}")

        result = self.scanner.scan(log_path, record.position, pattern, invocation.context_window)

        # A writer may have appended during the scan; the size saved for the
        # next truncation check must not be below the saved position.
        record = IndexRecord(
            position=result.end_offset,
            identity=record.identity,
            last_size=max(record.last_size, result.end_offset),
        )
        self.store.save(key, record)

        logger.info(
            f"Found {result.total_matches} matches for {invocation.module_name} "
            f"in {log_path}",
            extra={"index_key": key, "total_matches": result.total_matches},
        )
        return ScanOutcome(baseline=False, result=result, record=record)
