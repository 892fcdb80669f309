"""Storage port used by the record store."""

from pathlib import Path
from typing import Optional, Protocol


class StoragePort(Protocol):
    """Bytes keyed by artifact name ("{id}.txt", "{id}.json", "{id}.file")."""

    def read(self, key: str) -> Optional[bytes]:
        """Return the artifact bytes, or None if it does not exist."""
        ...

    def write(self, key: str, data: bytes) -> None:
        """Replace the artifact. Readers see the old or the new bytes, never a mix."""
        ...

    def delete(self, key: str) -> None:
        """Remove the artifact. Missing artifacts are ignored."""
        ...

    def exists(self, key: str) -> bool:
        ...

    def keys(self) -> list[str]:
        ...

    def move_in(self, src: Path, key: str) -> None:
        """Move a staged file into place as the artifact, overwriting it."""
        ...

    def path(self, key: str) -> Path:
        ...
