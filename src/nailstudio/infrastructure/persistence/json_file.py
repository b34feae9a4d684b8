"""Shared file helpers for the JSON-backed repositories.

Every repository keeps one JSON document on disk.  Reads and
read-modify-write cycles for a given file run under a process-wide lock
keyed by the file's resolved path, and writes go through a temp file and
``os.replace`` so a crash never leaves a half-written document.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from nailstudio.domain.exceptions import UpstreamError

_LOCKS: dict[Path, threading.RLock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = path.resolve()
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = _LOCKS[key] = threading.RLock()
        return lock


class JsonFile:
    """A JSON document on disk with locked, atomic updates."""

    def __init__(self, file_path: Path, default: Any) -> None:
        self._file_path = file_path
        self._default = default
        self._lock = _lock_for(file_path)
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._file_path

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def load(self) -> Any:
        with self._lock:
            try:
                return json.loads(self._file_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                raise UpstreamError(f"Could not read {self._file_path.name}: {exc}") from exc

    def persist(self, data: Any) -> None:
        with self._lock:
            try:
                fd, tmp_name = tempfile.mkstemp(
                    dir=self._file_path.parent, prefix=f".{self._file_path.name}."
                )
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(json.dumps(data, indent=2) + "\n")
                os.replace(tmp_name, self._file_path)
            except OSError as exc:
                raise UpstreamError(f"Could not write {self._file_path.name}: {exc}") from exc

    def _ensure_file(self) -> None:
        with self._lock:
            if self._file_path.exists():
                return
            try:
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise UpstreamError(f"Could not create {self._file_path.parent}: {exc}") from exc
            self.persist(self._default)
