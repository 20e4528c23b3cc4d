from __future__ import annotations

from pathlib import Path
import os
import time

from gator.errors import LockError


class RunLock:
    """
    Pid-file lock so only one aggregator loop runs per host.

    A lock older than `timeout_seconds` is treated as left behind by a dead
    process. A live loop calls `refresh()` every pass to stay fresh.
    """

    def __init__(self, path: str | Path, timeout_seconds: int = 60 * 60):
        self.path = Path(path)
        self.timeout_seconds = timeout_seconds

    def __enter__(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)

        if self.path.exists():
            age = time.time() - self.path.stat().st_mtime
            if age < self.timeout_seconds:
                raise LockError(f"Another aggregator is already running (lock {self.path} exists).")
            # stale lock
            self.path.unlink(missing_ok=True)

        self.path.write_text(str(os.getpid()), encoding="utf-8")
        return self

    def refresh(self) -> None:
        self.path.touch(exist_ok=True)

    def __exit__(self, exc_type, exc, tb):
        self.path.unlink(missing_ok=True)
