"""Shared fixtures for greplog tests."""

import logging
from pathlib import Path

import pytest

from greplog.config import GrepLogConfig
from greplog.position_store import PositionStore

SCENARIO_LINES = ["a", "ERROR b", "c", "ERROR d", "e"]


@pytest.fixture
def temp_state_dir(tmp_path: Path) -> Path:
    """Create temporary state directory for tests."""
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return state_dir


@pytest.fixture
def temp_log_file(tmp_path: Path) -> Path:
    """Create temporary log file with initial content."""
    log_file = tmp_path / "test.log"
    log_file.write_text("Line 1\nLine 2\nLine 3\n")
    return log_file


@pytest.fixture
def empty_log_file(tmp_path: Path) -> Path:
    """Create empty log file."""
    log_file = tmp_path / "empty.log"
    log_file.write_text("")
    return log_file


@pytest.fixture
def scenario_log_file(tmp_path: Path) -> Path:
    """Create log file with two ERROR lines among plain lines."""
    log_file = tmp_path / "scenario.log"
    log_file.write_text("\n".join(SCENARIO_LINES) + "\n")
    return log_file


@pytest.fixture
def position_store(temp_state_dir: Path) -> PositionStore:
    """Create PositionStore with temporary directory."""
    return PositionStore(state_dir=temp_state_dir)


@pytest.fixture
def config(temp_state_dir: Path) -> GrepLogConfig:
    """Create configuration pointing at the temporary state directory."""
    return GrepLogConfig(state_dir=str(temp_state_dir))


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, temp_state_dir: Path) -> Path:
    """Isolate tests from GREPLOG_* variables of the calling environment."""
    for name in (
        "GREPLOG_CONFIG",
        "GREPLOG_OUTPUT_MODE",
        "GREPLOG_VERBOSE",
        "GREPLOG_LOG_FILE",
        "GREPLOG_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GREPLOG_STATE_DIR", str(temp_state_dir))
    return temp_state_dir


@pytest.fixture(autouse=True)
def reset_greplog_logger():
    """Remove handlers attached to the greplog logger by a test."""
    yield
    logger = logging.getLogger("greplog")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
