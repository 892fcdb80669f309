"""
Filesystem implementation of StoragePort.
One flat directory; every write goes through a temp file and an atomic replace.
"""

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"


class LocalStorage:
    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"invalid storage key: {key!r}")
        return self.base_dir / key

    def read(self, key: str) -> Optional[bytes]:
        try:
            return self.path(key).read_bytes()
        except FileNotFoundError:
            return None

    def write(self, key: str, data: bytes) -> None:
        path = self.path(key)
        tmp = path.with_name(path.name + TMP_SUFFIX)
        with open(tmp, "wb") as f:
            f.write(data)
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self.path(key).unlink(missing_ok=True)

    def exists(self, key: str) -> bool:
        return self.path(key).is_file()

    def keys(self) -> list[str]:
        with os.scandir(self.base_dir) as entries:
            return [
                entry.name
                for entry in entries
                if entry.is_file() and not entry.name.endswith(TMP_SUFFIX)
            ]

    def move_in(self, src: Path, key: str) -> None:
        dest = self.path(key)
        try:
            os.replace(src, dest)
        except OSError as e:
            # Staging dir on another device: copy next to the target, then replace.
            if e.errno != errno.EXDEV:
                raise
            logger.debug("move_in: cross-device move %s -> %s", src, dest)
            tmp = dest.with_name(dest.name + TMP_SUFFIX)
            shutil.copyfile(src, tmp)
            tmp.replace(dest)
            Path(src).unlink(missing_ok=True)
