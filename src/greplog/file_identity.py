"""File identity inspection used for rotation and truncation detection."""

from __future__ import annotations

import os
from pathlib import Path
from typing import NamedTuple

from .errors import ScanIOError


class FileStat(NamedTuple):
    """Identity token and size of a file sampled from one open descriptor."""

    identity: int
    size: int


def inspect_file(path: str | Path) -> FileStat:
    """Return the identity (inode number) and size of a file.

    Both values come from fstat on the same descriptor so they describe the
    same physical file even if the path is replaced concurrently.

    Args:
        path: Path to the file.

    Returns:
        FileStat with the current identity and size.

    Raises:
        ScanIOError: If the file cannot be opened or inspected.
    """
    try:
        with open(path, "rb") as f:
            st = os.fstat(f.fileno())
    except OSError as e:
        raise ScanIOError(f"Cannot inspect log file {path}: {e}") from e
    return FileStat(identity=st.st_ino, size=st.st_size)
