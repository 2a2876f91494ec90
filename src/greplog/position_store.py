"""Position tracking for incremental log scanning.

This module persists, per (module, log file) pair, the byte offset where the
next scan starts together with the file identity and size seen at the end of
the previous scan. Each pair has its own small index file holding the three
values as whitespace separated integers on one line.
"""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path

from .errors import MalformedStateError, ScanIOError
from .file_identity import inspect_file
from .models import IndexRecord

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def resolve_key(module_name: str, log_file_path: str | Path) -> str:
    """Build the index key for a module and log file.

    Only the base name of the log file is used, so the same file reached
    through different directories maps to the same key. A short digest of the
    unsanitized pair keeps keys distinct when sanitizing maps two names to
    the same text.

    Args:
        module_name: Module name reported to the agent.
        log_file_path: Path to the log file.

    Returns:
        Key of the form ``<module>_<basename>_<digest>``.
    """
    basename = Path(log_file_path).name
    digest = hashlib.sha1(f"{module_name}\0{basename}".encode()).hexdigest()[:8]
    safe_module = _UNSAFE_CHARS.sub("_", module_name)
    safe_base = _UNSAFE_CHARS.sub("_", basename)
    return f"{safe_module}_{safe_base}_{digest}"


class PositionStore:
    """Loads and saves IndexRecords under a state directory.

    One index file per key; a record is loaded, reconciled against the log
    file, and saved back within a single invocation. No locking is taken, so
    concurrent runs against the same key can lose updates.

    Attributes:
        state_dir: Directory holding the index files.
        suffix: File name suffix of index files.
    """

    def __init__(self, state_dir: str | Path, suffix: str = ".idx"):
        """Initialize position store.

        Args:
            state_dir: Directory for storing index files, created if missing.
            suffix: Suffix appended to the key to name an index file.

        Raises:
            ScanIOError: If the state directory cannot be created.
        """
        self.state_dir = Path(state_dir)
        self.suffix = suffix
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ScanIOError(f"Cannot create state directory {self.state_dir}: {e}") from e

    resolve_key = staticmethod(resolve_key)

    def index_path(self, key: str) -> Path:
        return self.state_dir / f"{key}{self.suffix}"

    def exists(self, key: str) -> bool:
        return self.index_path(key).is_file()

    def initialize(self, key: str, log_file_path: str | Path) -> IndexRecord:
        """Create the baseline record for a key.

        The position is set to the current end of the log file so that no
        historical content is ever reported. The caller must not scan on a
        baseline run.

        Args:
            key: Index key from resolve_key.
            log_file_path: Path to the log file.

        Returns:
            The persisted baseline record.

        Raises:
            ScanIOError: If the log file cannot be inspected or the record
                cannot be written.
        """
        stat = inspect_file(log_file_path)
        record = IndexRecord(position=stat.size, identity=stat.identity, last_size=stat.size)
        self.save(key, record)
        logger.info(
            f"Created index {self.index_path(key)} for {log_file_path} "
            f"at offset {record.position}",
            extra={"index_key": key, "position": record.position, "identity": record.identity},
        )
        return record

    def load(self, key: str) -> IndexRecord:
        """Read the persisted record for a key.

        Args:
            key: Index key from resolve_key.

        Returns:
            The stored IndexRecord.

        Raises:
            ScanIOError: If the index file is missing or unreadable.
            MalformedStateError: If the content is not three non-negative integers.
        """
        path = self.index_path(key)
        try:
            content = path.read_text()
        except UnicodeDecodeError as e:
            raise MalformedStateError(f"Index file {path} is not valid text: {e}") from e
        except OSError as e:
            raise ScanIOError(f"Cannot read index file {path}: {e}") from e

        fields = content.split()
        if len(fields) != 3:
            raise MalformedStateError(
                f"Index file {path} must hold 3 fields, found {len(fields)}"
            )
        try:
            position, identity, size = (int(value) for value in fields)
        except ValueError as e:
            raise MalformedStateError(f"Index file {path} holds a non-integer field: {e}") from e
        if position < 0 or size < 0:
            raise MalformedStateError(f"Index file {path} holds a negative offset or size")

        return IndexRecord(position=position, identity=identity, last_size=size)

    def reconcile(self, record: IndexRecord, log_file_path: str | Path) -> IndexRecord:
        """Adjust a loaded record to the current state of the log file.

        A changed identity means the file was rotated; a size below the last
        recorded size means it was truncated in place, and a stored position
        past the current end of file means the same. Any of these restarts
        scanning from offset 0. A file that only grew keeps its position.
        Identity and size are sampled without locking, so a writer active
        during this call can still race with it.

        Args:
            record: Record loaded for this log file.
            log_file_path: Path to the log file.

        Returns:
            A new record with the position to scan from and the current
            identity and size.

        Raises:
            ScanIOError: If the log file cannot be inspected.
        """
        current = inspect_file(log_file_path)
        position = record.position

        if current.identity != record.identity:
            logger.warning(
                f"Log rotation detected for {log_file_path} "
                f"(identity {record.identity} -> {current.identity})",
                extra={"old_identity": record.identity, "new_identity": current.identity},
            )
            position = 0
        elif current.size < record.last_size:
            logger.warning(
                f"Log file {log_file_path} was truncated "
                f"(size {record.last_size} -> {current.size})",
                extra={"old_size": record.last_size, "new_size": current.size},
            )
            position = 0
        elif record.position > current.size:
            logger.warning(
                f"Stored offset {record.position} is past the end of {log_file_path} "
                f"(size {current.size})",
                extra={"position": record.position, "new_size": current.size},
            )
            position = 0

        return IndexRecord(position=position, identity=current.identity, last_size=current.size)

    def save(self, key: str, record: IndexRecord) -> None:
        """Rewrite the index file for a key.

        The file is overwritten in place; a crash mid-write can leave it
        truncated, which the next load reports as malformed.

        Args:
            key: Index key from resolve_key.
            record: Record to persist.

        Raises:
            ScanIOError: If the file cannot be written.
        """
        path = self.index_path(key)
        try:
            with path.open("w") as f:
                f.write(f"{record.position} {record.identity} {record.last_size}\n")
        except OSError as e:
            raise ScanIOError(f"Cannot write index file {path}: {e}") from e
        logger.debug(
            f"Saved index {path}: offset {record.position}, "
            f"identity {record.identity}, size {record.last_size}",
            extra={"index_key": key, "position": record.position, "log_size": record.last_size},
        )
