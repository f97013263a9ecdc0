from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv


ENV_SNAPSHOT_PATH = "SINGLETON_SNAPSHOT_PATH"
ENV_FERNET_KEY = "SINGLETON_FERNET_KEY"
ENV_SNAPSHOT_BUCKET = "SINGLETON_SNAPSHOT_BUCKET"
ENV_SNAPSHOT_KEY = "SINGLETON_SNAPSHOT_KEY"  # optional; defaults to "singleton.snapshot"
ENV_CAPITALS_FILE = "SINGLETON_CAPITALS_FILE"
ENV_LOG_LEVEL = "SINGLETON_LOG_LEVEL"
ENV_LOG_DIR = "SINGLETON_LOG_DIR"

DEFAULT_SNAPSHOT_PATH = Path(".cache") / "singleton.snapshot"
DEFAULT_SNAPSHOT_KEY = "singleton.snapshot"


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _require(v: Optional[str], what: str) -> str:
    if not v:
        raise RuntimeError(f"Missing required configuration: {what}")
    return v


@dataclass(frozen=True)
class Settings:
    snapshot_path: Path
    fernet_key: Optional[str]
    snapshot_bucket: Optional[str]
    snapshot_key: str
    capitals_file: Optional[Path]
    log_level: str
    log_dir: Optional[Path]

    @property
    def uses_s3(self) -> bool:
        return self.snapshot_bucket is not None

    def require_bucket(self) -> str:
        return _require(self.snapshot_bucket, ENV_SNAPSHOT_BUCKET)

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        """Resolve settings from the environment, reading `.env` from the working directory first.

        Variables already set in the environment win over `.env` entries.
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True), override=False)

        capitals = _getenv(ENV_CAPITALS_FILE)
        log_dir = _getenv(ENV_LOG_DIR)
        return cls(
            snapshot_path=Path(_getenv(ENV_SNAPSHOT_PATH) or DEFAULT_SNAPSHOT_PATH),
            fernet_key=_getenv(ENV_FERNET_KEY),
            snapshot_bucket=_getenv(ENV_SNAPSHOT_BUCKET),
            snapshot_key=_getenv(ENV_SNAPSHOT_KEY, DEFAULT_SNAPSHOT_KEY) or DEFAULT_SNAPSHOT_KEY,
            capitals_file=Path(capitals) if capitals else None,
            log_level=(_getenv(ENV_LOG_LEVEL, "INFO") or "INFO").upper(),
            log_dir=Path(log_dir) if log_dir else None,
        )
