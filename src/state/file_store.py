from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from uuid import uuid4

from common.config import DEFAULT_SNAPSHOT_PATH, ENV_SNAPSHOT_PATH


def _default_snapshot_file() -> Path:
    # Prefer explicit env var, else project-local .cache folder
    path = os.environ.get(ENV_SNAPSHOT_PATH)
    if path:
        return Path(path)
    return DEFAULT_SNAPSHOT_PATH


class FileSnapshotStore:
    """
    Keeps one snapshot blob in a local file.

    - `save()` writes to a temporary sibling and replaces the target, so a
      reader never sees a half-written snapshot.
    - `load()` returns None when nothing has been saved yet.
    - I/O errors propagate; the caller decides whether a missing disk is fatal.
    """

    def __init__(self, path: Optional[os.PathLike[str] | str] = None) -> None:
        self._path = Path(path) if path else _default_snapshot_file()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[bytes]:
        if not self._path.exists():
            return None
        return self._path.read_bytes()

    def save(self, data: bytes) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(f"{self._path.name}.tmp-{uuid4().hex}")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, self._path)
        finally:
            if tmp.exists():
                tmp.unlink()
