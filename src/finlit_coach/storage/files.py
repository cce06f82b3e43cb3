"""JSON document helpers: per-key flock, atomic replace, safe file names."""

import fcntl
import json
import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from finlit_coach.errors import StorageError

_SAFE_KEY = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.@-]{0,127}$")


def safe_key(key: str) -> str:
    """Validate an id used as a file name."""
    if not _SAFE_KEY.match(key) or ".." in key:
        raise ValueError(f"Invalid identifier: {key!r}")
    return key


def document_dir(data_dir: Path, name: str) -> Path:
    d = data_dir / name
    try:
        d.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"cannot create {d}: {e}") from e
    return d


@contextmanager
def exclusive_lock(path: Path) -> Iterator[None]:
    """Hold an exclusive flock on ``<path>.lock`` for a read-modify-write."""
    lock_path = path.with_name(path.name + ".lock")
    try:
        lock_file = open(lock_path, "w")
    except OSError as e:
        raise StorageError(f"cannot open lock {lock_path}: {e}") from e
    with lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file, fcntl.LOCK_UN)


def read_json(path: Path) -> dict | None:
    """Read a JSON document; None if it does not exist."""
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            data = json.load(f)
            fcntl.flock(f, fcntl.LOCK_UN)
    except (OSError, json.JSONDecodeError) as e:
        raise StorageError(f"cannot read {path}: {e}") from e
    return data


def write_json(path: Path, data: dict) -> None:
    """Atomically replace ``path`` with ``data``."""
    try:
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(data, tmp, indent=2, default=str)
        os.replace(tmp.name, path)
    except OSError as e:
        raise StorageError(f"cannot write {path}: {e}") from e
