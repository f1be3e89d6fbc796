from __future__ import annotations

import shutil
from dataclasses import replace
from pathlib import Path

from fastapi.testclient import TestClient
from starlette.requests import ClientDisconnect, Request

from videocatalog.app import create_app


def _files(*items: tuple[str, bytes]):
    return [("files", (name, data, "video/mp4")) for name, data in items]


def test_health(client, media_dir):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "mediaFolder": str(media_dir)}


def test_create_app_makes_media_folder(settings):
    assert not settings.media_path.exists()
    create_app(settings)
    assert settings.media_path.is_dir()


def test_get_videos_returns_json_listing(client, media_dir: Path):
    (media_dir / "a.mp4").write_bytes(b"a" * 3)
    (media_dir / "b.mp4").write_bytes(b"b" * 7)
    (media_dir / "readme.txt").write_text("skip")

    r = client.get("/Home/GetVideos")

    assert r.status_code == 200
    assert r.json() == [{"fileName": "a.mp4", "fileSize": 3}, {"fileName": "b.mp4", "fileSize": 7}]


def test_index_page_lists_videos(client, media_dir: Path):
    (media_dir / "holiday <1>.mp4").write_bytes(b"x")

    for path in ("/", "/Home", "/Home/Index"):
        r = client.get(path)
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/html")
        assert "holiday &lt;1&gt;.mp4" in r.text
        assert "1 video(s) in the media folder." in r.text


def test_listing_failure_is_a_server_error(client, media_dir: Path):
    shutil.rmtree(media_dir)

    assert client.get("/Home/GetVideos").status_code == 500
    assert client.get("/").status_code == 500


def test_play_streams_whole_file(client, media_dir: Path):
    payload = b"FAKE-MP4" * 40
    (media_dir / "clip.mp4").write_bytes(payload)

    r = client.get("/Home/Play", params={"fileName": "clip.mp4"})

    assert r.status_code == 200
    assert r.headers["content-type"] == "video/mp4"
    assert r.headers["accept-ranges"] == "bytes"
    assert r.content == payload


def test_play_honours_range_requests(client, media_dir: Path):
    payload = bytes(range(200))
    (media_dir / "clip.mp4").write_bytes(payload)

    r = client.get("/Home/Play", params={"fileName": "clip.mp4"}, headers={"Range": "bytes=10-19"})

    assert r.status_code == 206
    assert r.headers["content-range"] == "bytes 10-19/200"
    assert r.content == payload[10:20]


def test_play_rejects_unsatisfiable_range(client, media_dir: Path):
    (media_dir / "clip.mp4").write_bytes(b"x" * 10)

    r = client.get("/Home/Play", params={"fileName": "clip.mp4"}, headers={"Range": "bytes=50-"})

    assert r.status_code == 416
    assert r.headers["content-range"] == "bytes */10"


def test_play_missing_file_is_not_found(client):
    assert client.get("/Home/Play", params={"fileName": "missing.mp4"}).status_code == 404
    assert client.get("/Home/Play").status_code == 404


def test_play_does_not_leave_media_folder(client, settings):
    (settings.base_path / "private.mp4").write_bytes(b"secret")
    r = client.get("/Home/Play", params={"fileName": "../private.mp4"})
    assert r.status_code == 404


def test_upload_accepts_mp4_batch(client, media_dir: Path):
    r = client.post("/api/upload", files=_files(("test1.mp4", b"1" * 100), ("test2.mp4", b"2" * 50)))

    assert r.status_code == 200
    assert r.json() == {"uploaded": ["test1.mp4", "test2.mp4"]}
    assert (media_dir / "test1.mp4").stat().st_size == 100
    assert (media_dir / "test2.mp4").stat().st_size == 50
    assert [v["fileName"] for v in client.get("/Home/GetVideos").json()] == ["test1.mp4", "test2.mp4"]


def test_upload_rejects_non_mp4(client, media_dir: Path):
    r = client.post("/api/upload", files=[("files", ("document.pdf", b"%PDF" * 5, "application/pdf"))])

    assert r.status_code == 400
    assert r.text == "Only MP4 files are allowed."
    assert list(media_dir.iterdir()) == []


def test_upload_rejects_oversize_batch(client, media_dir: Path):
    r = client.post("/api/upload", files=_files(("a.mp4", b"a" * 150), ("b.mp4", b"b" * 100)))

    assert r.status_code == 413
    assert "Please upload smaller files." in r.text
    assert list(media_dir.iterdir()) == []


def test_upload_storage_failure(client, media_dir: Path):
    (media_dir / "test1.mp4").mkdir()

    r = client.post("/api/upload", files=_files(("test1.mp4", b"1" * 100)))

    assert r.status_code == 500
    assert r.text.startswith("An error occurred while uploading the file")


def test_upload_client_disconnect_is_service_unavailable(client, monkeypatch):
    async def disconnected(self, *args, **kwargs):
        raise ClientDisconnect()

    monkeypatch.setattr(Request, "form", disconnected)

    r = client.post("/api/upload", files=_files(("test1.mp4", b"1" * 100)))

    assert r.status_code == 503
    assert r.text == "A network error occurred during file upload."


def test_upload_without_files_is_ok(client):
    r = client.post("/api/upload", data={"other": "value"})
    assert r.status_code == 200
    assert r.json() == {"uploaded": []}


def test_cors_headers_when_origins_configured(settings, media_dir):
    app = create_app(replace(settings, cors_origins=("https://localhost:3000",)))
    with TestClient(app) as c:
        r = c.get("/Home/GetVideos", headers={"Origin": "https://localhost:3000"})
    assert r.headers["access-control-allow-origin"] == "https://localhost:3000"


def test_play_ignores_range_it_cannot_use(client, media_dir: Path):
    payload = bytes(range(50))
    (media_dir / "clip.mp4").write_bytes(payload)

    for rng in ("items=0-1", "bytes=0-1,5-6"):
        r = client.get("/Home/Play", params={"fileName": "clip.mp4"}, headers={"Range": rng})
        assert r.status_code == 200
        assert r.content == payload


def test_upload_body_over_limit_is_refused_before_parsing(client, media_dir: Path, monkeypatch):
    async def must_not_parse(self, *args, **kwargs):
        raise AssertionError("form body parsed")

    monkeypatch.setattr(Request, "form", must_not_parse)

    r = client.post("/api/upload", files=_files(("huge.mp4", b"h" * (1024 * 1024 + 1000))))

    assert r.status_code == 413
    assert r.text.endswith("Please upload smaller files.")
    assert list(media_dir.iterdir()) == []
