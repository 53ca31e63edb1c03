"""Exclusive advisory lock shared by every process using a data file."""

from __future__ import annotations

import fcntl
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


@contextmanager
def exclusive_lock(data_path: Path) -> Iterator[None]:
    """Hold an exclusive lock on ``<data file>.lock`` for a read-modify-write."""
    lock_path = data_path.with_name(f".{data_path.name}.lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "w") as lock_file:
        fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
