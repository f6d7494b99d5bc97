from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import orjson
import pytest
from fastapi.testclient import TestClient

from adapters.filesystem.link_preview_repository import FileSystemLinkPreviewRepository
from app.config import AppSettings
from app.web_main import MAX_CANVAS_ITEMS, create_app
from domain.models import LinkPreviewEntry, LinkPreviewManifest
from domain.services.seeded_random import hash_url


def _write(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(payload))


@pytest.fixture
def client(app_settings: AppSettings) -> TestClient:
    return TestClient(create_app(app_settings))


def _save_manifest(settings: AppSettings) -> None:
    generated_at = datetime(2025, 6, 1, tzinfo=UTC)
    ok_url = "https://ok.example.com"
    bad_url = "https://bad.example.com"
    config = settings.preview_config()
    manifest = LinkPreviewManifest(
        generated=generated_at,
        previews={
            hash_url(ok_url): LinkPreviewEntry(
                url=ok_url,
                screenshot_path=config.public_path(ok_url),
                width=1200,
                height=630,
                generated_at=generated_at,
                status="success",
            ),
            hash_url(bad_url): LinkPreviewEntry(
                url=bad_url,
                screenshot_path=config.public_path(bad_url),
                width=1200,
                height=630,
                generated_at=generated_at,
                status="failed",
                error_message="timeout",
            ),
        },
    )
    FileSystemLinkPreviewRepository().save(manifest, config.manifest_path)


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_community_wall_layout(client: TestClient, app_settings: AppSettings) -> None:
    _write(
        app_settings.data.messages_path,
        [
            {"id": "old", "message": "first!", "created_at": "2024-01-01T00:00:00Z"},
            {"id": "mid", "message": "hello", "created_at": "2024-02-01T00:00:00Z"},
            {"id": "new", "message": "latest", "created_at": "2024-03-01T00:00:00Z"},
        ],
    )
    response = client.get("/api/community-wall/layout")
    assert response.status_code == 200
    payload = response.json()
    placements = payload["placements"]
    assert [placement["id"] for placement in placements] == ["new", "mid", "old"]
    assert placements[-1]["anchored"] is True
    assert placements[-1]["position"] == {"x": 0, "y": 0}
    assert placements[0]["message"]["message"] == "latest"
    assert payload["card_size"] == {"width": 250, "height": 300}


def test_community_wall_layout_without_snapshot(client: TestClient) -> None:
    assert client.get("/api/community-wall/layout").status_code == 404


def test_canvas_layout_is_stable(client: TestClient) -> None:
    body = [{"id": "a"}, {"id": "b"}, {"id": "c"}]
    first = client.post("/api/canvas/layout", json=body).json()
    second = client.post("/api/canvas/layout", json=body).json()
    assert first == second
    assert first["placements"][-1]["position"] == {"x": 0, "y": 0}


def test_canvas_layout_validation(client: TestClient) -> None:
    assert client.post("/api/canvas/layout", json=[{"id": ""}]).status_code == 422
    too_many = [{"id": str(index)} for index in range(MAX_CANVAS_ITEMS + 1)]
    assert client.post("/api/canvas/layout", json=too_many).status_code == 422
    assert client.post("/api/canvas/layout", json=[]).json()["placements"] == []


def test_link_preview_endpoints(client: TestClient, app_settings: AppSettings) -> None:
    assert client.get("/api/link-previews").status_code == 404

    _save_manifest(app_settings)
    manifest = client.get("/api/link-previews").json()
    assert len(manifest["previews"]) == 2

    ok = client.get("/api/link-previews/lookup", params={"url": "https://ok.example.com"})
    assert ok.status_code == 200
    assert ok.json()["screenshotPath"].startswith("/previews/")

    by_hash = client.get(f"/api/link-previews/{hash_url('https://ok.example.com')}")
    assert by_hash.json() == ok.json()

    failed = client.get("/api/link-previews/lookup", params={"url": "https://bad.example.com"})
    assert failed.status_code == 404
    assert client.get("/api/link-previews/ffffffffffff").status_code == 404


def test_stats(client: TestClient, app_settings: AppSettings) -> None:
    assert client.get("/api/stats").status_code == 404

    _write(
        app_settings.data.posts_path,
        [{"slug": "a", "title": "A", "code": "one two three", "categories": ["python"]}],
    )
    _write(app_settings.data.article_views_path, [{"slug": "a", "view_count": 42}])
    response = client.get("/api/stats")
    assert response.status_code == 200
    payload = response.json()
    assert payload["build_time"]["total_articles"] == 1
    assert payload["engagement"]["top_viewed_articles"][0]["title"] == "A"
    assert payload["computed"]["coffee_cups"] == 0
