from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import cast

import httpx
import pytest

from api.deps import get_store
from conftest import FakeClock
from config import Settings, get_settings
from main import app
from repositories import PasteStore

pytestmark = pytest.mark.anyio


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def api_clock() -> FakeClock:
    # /cleanup measures age against the real clock.
    return FakeClock(datetime.now(timezone.utc))


@pytest.fixture
def api_store(data_dir: Path, api_clock: FakeClock) -> PasteStore:
    return PasteStore.local(data_dir, clock=api_clock)


@pytest.fixture
def api_settings(monkeypatch: pytest.MonkeyPatch, data_dir: Path, tmp_path: Path) -> Settings:
    monkeypatch.setenv("PASTE_DATA_DIR", str(data_dir))
    monkeypatch.setenv("PASTE_TEMP_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("PASTE_MAX_FILE_SIZE", "1kb")
    monkeypatch.setenv("PASTE_CLEANUP_DAYS", "3")
    settings = Settings()
    settings.PASTE_TEMP_DIR.mkdir()
    return settings


@pytest.fixture
async def client(
    anyio_backend: object,  # noqa: ARG001
    api_store: PasteStore,
    api_settings: Settings,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    _ = anyio_backend
    app.dependency_overrides[get_store] = lambda: api_store
    app.dependency_overrides[get_settings] = lambda: api_settings
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()


async def test_health(client: httpx.AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["storage"] == {"data_dir": True, "staging_dir": True}


async def test_health_reports_missing_staging_dir(client: httpx.AsyncClient, api_settings: Settings):
    api_settings.PASTE_TEMP_DIR.rmdir()
    body = (await client.get("/health")).json()
    assert body["status"] == "degraded"
    assert body["storage"] == {"data_dir": True, "staging_dir": False}


async def test_index_offers_fresh_id(client: httpx.AsyncClient, data_dir: Path):
    r = await client.get("/", params={"message": "hi"})
    assert r.status_code == 200
    body = cast(dict[str, object], r.json())
    assert body["mode"] == "new"
    assert body["content"] == ""
    assert body["meta"] is None
    assert body["message"] == "hi"
    assert PasteStore.is_valid_id(cast(str, body["id"]))
    assert list(data_dir.iterdir()) == []


async def test_post_raw_text_then_read_it_back(client: httpx.AsyncClient):
    r = await client.post("/p1", content=b"hello world")
    assert r.status_code == 200
    assert r.text == "OK"

    r2 = await client.get("/p1/content")
    assert r2.status_code == 200
    assert r2.text == "hello world"
    assert r2.headers["content-type"].startswith("text/plain")
    assert "x-content-created" in r2.headers

    r3 = await client.get("/p1")
    body = r3.json()
    assert body["mode"] == "edit"
    assert body["content"] == "hello world"
    assert body["meta"]["created"]


async def test_view_missing_record_is_empty_editor(client: httpx.AsyncClient):
    r = await client.get("/nothing-here")
    assert r.status_code == 200
    assert r.json() == {
        "id": "nothing-here",
        "mode": "edit",
        "content": "",
        "meta": None,
        "message": None,
    }

    r2 = await client.get("/nothing-here/content")
    assert r2.text == ""
    assert "x-content-created" not in r2.headers


async def test_form_save_with_file_and_download(client: httpx.AsyncClient, api_settings: Settings):
    r = await client.post(
        "/f1",
        data={"content": "see attached", "save": ""},
        files={"file": ("notes.txt", b"attached bytes", "text/plain")},
    )
    assert r.status_code == 302
    assert r.headers["location"] == "/f1"

    meta = (await client.get("/f1")).json()["meta"]
    assert meta["filename"] == "notes.txt"
    assert meta["mimetype"] == "text/plain"
    assert meta["filesize"] == len(b"attached bytes")

    d = await client.get("/f1/download")
    assert d.status_code == 200
    assert d.content == b"attached bytes"
    assert d.headers["content-type"].startswith("text/plain")
    assert 'filename="notes.txt"' in d.headers["content-disposition"]
    assert list(api_settings.PASTE_TEMP_DIR.iterdir()) == []


async def test_form_save_without_file_keeps_attachment(client: httpx.AsyncClient):
    _ = await client.post(
        "/f2",
        data={"content": "v1", "save": ""},
        files={"file": ("a.bin", b"\x00\x01", "application/octet-stream")},
    )
    r = await client.post("/f2", files={"content": (None, "v2"), "save": (None, "")})
    assert r.status_code == 302

    body = (await client.get("/f2")).json()
    assert body["content"] == "v2"
    assert body["meta"]["filename"] == "a.bin"
    assert body["meta"]["updated"]
    assert (await client.get("/f2/download")).content == b"\x00\x01"


async def test_form_delete(client: httpx.AsyncClient):
    _ = await client.post("/f3", content=b"bye")
    r = await client.post("/f3", files={"delete": (None, "")})
    assert r.status_code == 302
    assert r.headers["location"] == "/?message=Deleted"
    assert (await client.get("/f3")).json()["meta"] is None


async def test_form_without_action_is_rejected(client: httpx.AsyncClient):
    r = await client.post("/f4", files={"content": (None, "x")})
    assert r.status_code == 400
    assert (await client.get("/f4")).json()["meta"] is None


async def test_put_uploads_file_and_keeps_text(client: httpx.AsyncClient):
    _ = await client.post("/u1", content=b"text stays")
    r = await client.put(
        "/u1",
        content=b"%PDF-1.4 ...",
        headers={"X-Filename": "doc.pdf", "Content-Type": "application/pdf"},
    )
    assert r.status_code == 200

    body = (await client.get("/u1")).json()
    assert body["content"] == "text stays"
    assert body["meta"]["filename"] == "doc.pdf"
    assert body["meta"]["mimetype"] == "application/pdf"
    assert body["meta"]["filesize"] == len(b"%PDF-1.4 ...")

    d = await client.get("/u1/download")
    assert d.content == b"%PDF-1.4 ..."
    assert d.headers["content-type"] == "application/pdf"


async def test_put_without_filename_uses_id(client: httpx.AsyncClient):
    r = await client.put("/u2", content=b"raw")
    assert r.status_code == 200
    meta = (await client.get("/u2")).json()["meta"]
    assert meta["filename"] == "u2"
    assert (await client.get("/u2/content")).text == ""


async def test_put_too_large_is_rejected_and_cleaned_up(
    client: httpx.AsyncClient, api_settings: Settings, data_dir: Path
):
    r = await client.put("/big", content=b"x" * 2048, headers={"X-Filename": "big.bin"})
    assert r.status_code == 413
    assert list(api_settings.PASTE_TEMP_DIR.iterdir()) == []
    assert list(data_dir.iterdir()) == []


async def test_form_upload_too_large_is_rejected_and_cleaned_up(
    client: httpx.AsyncClient, api_settings: Settings, data_dir: Path
):
    r = await client.post(
        "/big2",
        data={"content": "x", "save": ""},
        files={"file": ("big.bin", b"x" * 2048, "application/octet-stream")},
    )
    assert r.status_code == 413
    assert list(api_settings.PASTE_TEMP_DIR.iterdir()) == []
    assert list(data_dir.iterdir()) == []


async def test_download_without_file_is_404(client: httpx.AsyncClient):
    _ = await client.post("/n1", content=b"text only")
    r = await client.get("/n1/download")
    assert r.status_code == 404


async def test_delete_route_is_idempotent(client: httpx.AsyncClient):
    _ = await client.post("/d1", content=b"x")
    for _i in range(2):
        r = await client.delete("/d1")
        assert r.status_code == 200
        assert r.text == "OK"
    assert (await client.get("/d1")).json()["meta"] is None


async def test_duplicate_drops_attachment_and_uses_new_id(client: httpx.AsyncClient):
    _ = await client.post(
        "/orig",
        data={"content": "copy me", "save": ""},
        files={"file": ("a.pdf", b"pdf", "application/pdf")},
    )
    r = await client.get("/orig/duplicate")
    body = r.json()
    assert body["mode"] == "duplicate"
    assert body["id"] != "orig"
    assert body["content"] == "copy me"
    assert body["message"] == "Duplicate"
    assert "filename" not in body["meta"]
    assert "created" in body["meta"]

    # The source record still has its attachment.
    assert (await client.get("/orig")).json()["meta"]["filename"] == "a.pdf"


async def test_list_is_newest_first(
    client: httpx.AsyncClient, api_store: PasteStore, api_clock: FakeClock
):
    api_clock.advance(hours=-2)
    api_store.save_page("older", "x")
    api_clock.advance(hours=1)
    api_store.save_page("newer", "y")
    api_store.storage.write("undated.txt", b"z")

    r = await client.get("/list")
    pages = r.json()["pages"]
    assert [p["id"] for p in pages] == ["newer", "older", "undated"]
    assert pages[0]["date"] == pages[0]["created"]
    assert pages[2]["date"] is None
    assert "content" not in pages[0]


async def test_cleanup_default_age(
    client: httpx.AsyncClient, api_store: PasteStore, api_clock: FakeClock
):
    now = api_clock.now
    api_clock.now = now - timedelta(days=4)
    api_store.save_page("stale", "x")
    api_clock.now = now - timedelta(days=1)
    api_store.save_page("fresh", "x")

    r = await client.get("/cleanup")
    assert r.status_code == 200
    assert r.text == "OK"
    assert [p["id"] for p in api_store.list_pages()] == ["fresh"]


async def test_cleanup_with_ms(client: httpx.AsyncClient, api_store: PasteStore, api_clock: FakeClock):
    api_clock.advance(minutes=-10)
    api_store.save_page("tenmin", "x")

    _ = await client.get("/cleanup", params={"ms": 60 * 60 * 1000})
    assert api_store.load_page("tenmin").exists

    _ = await client.get("/cleanup", params={"ms": 60 * 1000})
    assert not api_store.load_page("tenmin").exists


@pytest.mark.parametrize("path", ["/api", "/admin", "/status", "/help", "/docs"])
async def test_reserved_routes(client: httpx.AsyncClient, path: str):
    assert (await client.get(path)).status_code == 501
    assert (await client.post(path)).status_code == 501


async def test_invalid_id_is_not_a_route(client: httpx.AsyncClient):
    assert (await client.get("/a.b")).status_code == 404
    assert (await client.post("/a.b", content=b"x")).status_code == 404


async def test_id_with_trailing_newline_is_not_a_route(client: httpx.AsyncClient, data_dir: Path):
    assert (await client.post("/abc%0A", content=b"x")).status_code == 404
    assert (await client.get("/abc%0A")).status_code == 404
    assert (await client.put("/abc%0A", content=b"x")).status_code == 404
    assert list(data_dir.iterdir()) == []


async def test_corrupt_metadata_is_500(client: httpx.AsyncClient, data_dir: Path):
    _ = (data_dir / "bad.txt").write_text("x", encoding="utf-8")
    _ = (data_dir / "bad.json").write_text("{oops", encoding="utf-8")
    r = await client.get("/bad")
    assert r.status_code == 500
    assert r.json() == {
        "code": "storage_corrupt",
        "message": "storage_corrupt: load 'bad'",
        "id": "bad",
    }
