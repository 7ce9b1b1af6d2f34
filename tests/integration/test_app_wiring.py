"""End-to-end flow through the wired application: login, curate, publish."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

from src.bude.config import load_config
from src.bude.dependencies import include_routers
from tests.helpers.slots import event_fields


@pytest.fixture
def client(monkeypatch, tmp_path) -> TestClient:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'bude.db'}")
    monkeypatch.setenv("MEDIA_ROOT", str(tmp_path / "media"))
    monkeypatch.setenv("PUBLIC_MEDIA_BASE_URL", "http://testserver")
    app = FastAPI()
    include_routers(app, load_config())
    return TestClient(app)


def _login(client: TestClient, username: str, password: str) -> dict[str, str]:
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_admin_curates_events_and_public_view_follows(client: TestClient) -> None:
    headers = _login(client, "serg", "secret")
    params = {"region_id": "grand-rapids"}
    for number, title in ((1, "Chamber Breakfast"), (2, "Rotary Lunch"), (5, "GRYP Social")):
        saved = client.put(
            f"/api/slots/events/{number}",
            params=params,
            headers=headers,
            json={"fields": event_fields(title)},
        )
        assert saved.status_code == 200

    moved = client.post(
        "/api/slots/events/5/move", params=params, headers=headers, json={"direction": "up"}
    )
    assert moved.status_code == 200
    featured = client.get("/public/slots/events/featured", params=params)

    assert featured.status_code == 200
    slots = featured.json()["slots"]
    assert [(slot["slot_number"], slot["fields"]["title"]) for slot in slots] == [
        (1, "Chamber Breakfast"),
        (2, "Rotary Lunch"),
        (4, "GRYP Social"),
    ]
    assert all(slot["is_featured"] for slot in slots)


def test_non_admin_operator_cannot_manage_slots(client: TestClient) -> None:
    headers = _login(client, "viewer", "viewer-pass")

    response = client.get("/api/slots/insights", headers=headers)

    assert response.status_code == 403


def test_uploaded_media_is_served(client: TestClient) -> None:
    headers = _login(client, "serg", "secret")
    upload = client.post(
        "/api/slots/insights/media",
        headers=headers,
        files={"file": ("cover.png", b"\x89PNG-cover", "image/png")},
    )
    assert upload.status_code == 200
    path = upload.json()["url"].removeprefix("http://testserver")

    served = client.get(path)

    assert served.status_code == 200
    assert served.content == b"\x89PNG-cover"
