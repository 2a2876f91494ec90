"""Tests for PositionStore."""

import os
import shutil
from pathlib import Path

import pytest

from greplog.errors import MalformedStateError, ScanIOError
from greplog.models import IndexRecord
from greplog.position_store import PositionStore, resolve_key


class TestResolveKey:
    """Tests for index key derivation."""

    def test_key_is_deterministic(self) -> None:
        """Test that identical inputs give identical keys."""
        assert resolve_key("syslog", "/var/log/syslog") == resolve_key("syslog", "/var/log/syslog")

    def test_key_ignores_directory(self) -> None:
        """Test that only the base name of the log file is used."""
        assert resolve_key("mod", "/var/log/app.log") == resolve_key("mod", "/srv/app.log")

    def test_key_differs_by_module(self) -> None:
        """Test that different modules on the same log get different keys."""
        assert resolve_key("errors", "/var/log/app.log") != resolve_key(
            "warnings", "/var/log/app.log"
        )

    def test_key_differs_by_basename(self) -> None:
        """Test that different log files for the same module get different keys."""
        assert resolve_key("mod", "/var/log/a.log") != resolve_key("mod", "/var/log/b.log")

    def test_sanitized_names_do_not_collide(self) -> None:
        """Test that names differing only in unsafe characters stay distinct."""
        key1 = resolve_key("my module", "app.log")
        key2 = resolve_key("my_module", "app.log")
        assert key1 != key2
        assert " " not in key1

    def test_key_contains_readable_names(self) -> None:
        """Test that the key starts with the module and log base name."""
        assert resolve_key("syslog", "/var/log/syslog").startswith("syslog_syslog_")

    def test_store_exposes_resolve_key(self, position_store: PositionStore) -> None:
        """Test that the store method matches the module-level function."""
        assert position_store.resolve_key("m", "/x/y.log") == resolve_key("m", "/x/y.log")


class TestPositionStoreInitialize:
    """Tests for baseline record creation."""

    def test_exists_false_before_initialize(self, position_store: PositionStore) -> None:
        """Test that exists is False for a fresh key."""
        assert position_store.exists("fresh") is False

    def test_initialize_records_end_of_file(
        self, position_store: PositionStore, temp_log_file: Path
    ) -> None:
        """Test that the baseline position is the current file size."""
        record = position_store.initialize("key", temp_log_file)

        st = os.stat(temp_log_file)
        assert record.position == st.st_size
        assert record.identity == st.st_ino
        assert record.last_size == st.st_size
        assert position_store.exists("key") is True

    def test_initialize_empty_file(
        self, position_store: PositionStore, empty_log_file: Path
    ) -> None:
        """Test that an empty log gives position 0."""
        record = position_store.initialize("key", empty_log_file)
        assert record.position == 0
        assert record.last_size == 0

    def test_initialize_missing_log(self, position_store: PositionStore, tmp_path: Path) -> None:
        """Test that an unreadable log file fails with ScanIOError."""
        with pytest.raises(ScanIOError):
            position_store.initialize("key", tmp_path / "missing.log")
        assert position_store.exists("key") is False

    def test_index_file_format(
        self, position_store: PositionStore, temp_log_file: Path, temp_state_dir: Path
    ) -> None:
        """Test that the index file holds one line with three integers."""
        record = position_store.initialize("key", temp_log_file)

        content = (temp_state_dir / "key.idx").read_text()
        assert content == f"{record.position} {record.identity} {record.last_size}\n"

    def test_custom_suffix(self, temp_state_dir: Path, temp_log_file: Path) -> None:
        """Test that the index file name uses the configured suffix."""
        store = PositionStore(temp_state_dir, suffix=".pos")
        store.initialize("key", temp_log_file)
        assert (temp_state_dir / "key.pos").is_file()


class TestPositionStoreLoadSave:
    """Tests for loading and saving records."""

    def test_round_trip(self, position_store: PositionStore) -> None:
        """Test that save(load(key)) then load(key) preserves the record."""
        position_store.save("key", IndexRecord(position=1024, identity=98765, last_size=2048))

        position_store.save("key", position_store.load("key"))
        reloaded = position_store.load("key")

        assert reloaded == IndexRecord(position=1024, identity=98765, last_size=2048)

    def test_large_values(self, position_store: PositionStore) -> None:
        """Test with very large offsets and identities."""
        record = IndexRecord(position=999_999_999_999, identity=2**62, last_size=999_999_999_999)
        position_store.save("key", record)
        assert position_store.load("key") == record

    def test_save_overwrites(self, position_store: PositionStore, temp_state_dir: Path) -> None:
        """Test that save rewrites the file instead of appending."""
        position_store.save("key", IndexRecord(position=10, identity=1, last_size=10))
        position_store.save("key", IndexRecord(position=20, identity=1, last_size=20))

        assert (temp_state_dir / "key.idx").read_text() == "20 1 20\n"

    def test_load_missing(self, position_store: PositionStore) -> None:
        """Test that loading a missing record fails with ScanIOError."""
        with pytest.raises(ScanIOError) as exc_info:
            position_store.load("missing")
        assert not isinstance(exc_info.value, MalformedStateError)

    @pytest.mark.parametrize(
        "content",
        ["", "garbage", "1 2", "1 2 3 4", "1 x 3", "-1 2 3", "1 2 -3", "1.5 2 3"],
    )
    def test_load_malformed(
        self, position_store: PositionStore, temp_state_dir: Path, content: str
    ) -> None:
        """Test that malformed index files fail loudly."""
        (temp_state_dir / "key.idx").write_text(content)

        with pytest.raises(MalformedStateError):
            position_store.load("key")

    def test_load_undecodable(
        self, position_store: PositionStore, temp_state_dir: Path
    ) -> None:
        """Test that an index file with invalid UTF-8 is reported as malformed."""
        (temp_state_dir / "key.idx").write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(MalformedStateError):
            position_store.load("key")

    def test_malformed_is_io_error(self) -> None:
        """Test that MalformedStateError is reported as an I/O failure."""
        assert issubclass(MalformedStateError, ScanIOError)

    def test_load_tolerates_surrounding_whitespace(
        self, position_store: PositionStore, temp_state_dir: Path
    ) -> None:
        """Test that fields may be separated by any whitespace."""
        (temp_state_dir / "key.idx").write_text("  10\t20\n30  \n")
        assert position_store.load("key") == IndexRecord(position=10, identity=20, last_size=30)

    def test_save_unwritable_directory(
        self, temp_state_dir: Path, temp_log_file: Path
    ) -> None:
        """Test that a vanished state directory fails with ScanIOError."""
        store = PositionStore(temp_state_dir)
        shutil.rmtree(temp_state_dir)

        with pytest.raises(ScanIOError):
            store.save("key", IndexRecord(position=0, identity=1, last_size=0))

    def test_missing_state_directory_created(self, tmp_path: Path) -> None:
        """Test that a missing state directory is created."""
        state_dir = tmp_path / "does" / "not" / "exist"
        PositionStore(state_dir)
        assert state_dir.is_dir()

    def test_state_directory_not_creatable(self, tmp_path: Path) -> None:
        """Test that an impossible state directory fails with ScanIOError."""
        blocker = tmp_path / "file.txt"
        blocker.write_text("not a directory")

        with pytest.raises(ScanIOError):
            PositionStore(blocker / "state")


class TestPositionStoreReconcile:
    """Tests for rotation and truncation detection."""

    def test_grown_file_keeps_position(
        self, position_store: PositionStore, temp_log_file: Path
    ) -> None:
        """Test that appending never resets the position."""
        record = position_store.initialize("key", temp_log_file)
        with temp_log_file.open("a") as f:
            f.write("Line 4\n")

        reconciled = position_store.reconcile(record, temp_log_file)

        assert reconciled.position == record.position
        assert reconciled.identity == record.identity
        assert reconciled.last_size == temp_log_file.stat().st_size

    def test_unchanged_file_keeps_position(
        self, position_store: PositionStore, temp_log_file: Path
    ) -> None:
        """Test that an untouched file keeps everything."""
        record = position_store.initialize("key", temp_log_file)
        assert position_store.reconcile(record, temp_log_file) == record

    def test_identity_change_resets(
        self, position_store: PositionStore, temp_log_file: Path
    ) -> None:
        """Test that a different identity resets the position to 0."""
        st = temp_log_file.stat()
        record = IndexRecord(position=st.st_size, identity=st.st_ino + 1, last_size=st.st_size)

        reconciled = position_store.reconcile(record, temp_log_file)

        assert reconciled.position == 0
        assert reconciled.identity == st.st_ino

    def test_identity_change_resets_even_if_larger(
        self, position_store: PositionStore, temp_log_file: Path
    ) -> None:
        """Test that rotation resets regardless of the new file size."""
        st = temp_log_file.stat()
        record = IndexRecord(position=2, identity=st.st_ino + 1, last_size=2)

        assert position_store.reconcile(record, temp_log_file).position == 0

    def test_truncation_resets(self, position_store: PositionStore, temp_log_file: Path) -> None:
        """Test that a smaller file with the same identity resets the position."""
        record = position_store.initialize("key", temp_log_file)
        temp_log_file.write_text("x\n")

        reconciled = position_store.reconcile(record, temp_log_file)

        assert reconciled.position == 0
        assert reconciled.identity == record.identity
        assert reconciled.last_size == 2

    def test_replaced_file_resets(
        self, position_store: PositionStore, temp_log_file: Path, tmp_path: Path
    ) -> None:
        """Test that a file moved over the log path is detected as rotated."""
        record = position_store.initialize("key", temp_log_file)
        replacement = tmp_path / "replacement.log"
        replacement.write_text("Line 1\nLine 2\nLine 3\nLine 4\nLine 5\n")
        os.replace(replacement, temp_log_file)

        reconciled = position_store.reconcile(record, temp_log_file)

        assert reconciled.position == 0
        assert reconciled.identity != record.identity

    def test_position_past_end_resets(
        self, position_store: PositionStore, temp_log_file: Path
    ) -> None:
        """Test that a stored offset beyond the current end of file restarts at 0."""
        st = temp_log_file.stat()
        record = IndexRecord(position=st.st_size + 40, identity=st.st_ino, last_size=st.st_size - 5)

        reconciled = position_store.reconcile(record, temp_log_file)

        assert reconciled.position == 0
        assert reconciled.position <= reconciled.last_size
        assert reconciled.last_size == st.st_size

    def test_reconcile_missing_log(self, position_store: PositionStore, tmp_path: Path) -> None:
        """Test that a vanished log fails with ScanIOError."""
        record = IndexRecord(position=0, identity=1, last_size=0)
        with pytest.raises(ScanIOError):
            position_store.reconcile(record, tmp_path / "missing.log")
