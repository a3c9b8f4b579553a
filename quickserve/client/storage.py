"""
Local Storage

A persistent string key/value store backed by one JSON file, playing the
part of the browser's ``localStorage`` for the client stores. Reads and
writes take a file lock so several processes can share one profile.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from filelock import FileLock

logger = logging.getLogger(__name__)


class LocalStorage:
    """
    String key/value storage persisted to ``path``.

    Values are strings, as in a browser; callers serialize their own JSON.
    A missing or unreadable file behaves as empty storage.
    """

    LOCK_TIMEOUT = 10

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._lock = FileLock(str(self.path) + ".lock", timeout=self.LOCK_TIMEOUT)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def clear(self) -> None:
        with self._lock:
            self._write({})

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._read())
