from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest

from repositories import LocalStorage, MemoryStorage, PasteStore
from schemas.records import Attachment

T0 = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture(params=["memory", "local"])
def paste_store(request: pytest.FixtureRequest, data_dir: Path, clock: FakeClock) -> PasteStore:
    # Same store logic over both storage ports.
    storage = MemoryStorage() if request.param == "memory" else LocalStorage(data_dir)
    return PasteStore(storage, clock=clock)


@pytest.fixture
def local_store(data_dir: Path, clock: FakeClock) -> PasteStore:
    return PasteStore.local(data_dir, clock=clock)


@pytest.fixture
def staged(tmp_path: Path) -> Callable[..., Attachment]:
    """Write a payload into a staging dir and describe it like an upload."""
    staging = tmp_path / "staging"
    staging.mkdir()
    counter = {"n": 0}

    def _make(filename: str, data: bytes, mimetype: str = "application/octet-stream") -> Attachment:
        counter["n"] += 1
        path = staging / f"upload-{counter['n']}"
        _ = path.write_bytes(data)
        return Attachment(filename=filename, mimetype=mimetype, size=len(data), path=path)

    return _make
