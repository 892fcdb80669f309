"""In-memory StoragePort. Used by tests and for throwaway stores."""

import threading
from pathlib import Path, PurePosixPath
from typing import Optional


class MemoryStorage:
    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def path(self, key: str) -> Path:
        return Path(PurePosixPath("memory") / key)

    def read(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self.blobs.get(key)

    def write(self, key: str, data: bytes) -> None:
        with self._lock:
            self.blobs[key] = bytes(data)

    def delete(self, key: str) -> None:
        with self._lock:
            self.blobs.pop(key, None)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self.blobs

    def keys(self) -> list[str]:
        with self._lock:
            return list(self.blobs)

    def move_in(self, src: Path, key: str) -> None:
        src = Path(src)
        data = src.read_bytes()
        with self._lock:
            self.blobs[key] = data
        src.unlink()
