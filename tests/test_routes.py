from __future__ import annotations

import io
import json

import httpx
from fastapi.testclient import TestClient
from PIL import Image

from main import create_app
from services.lore.client import OFFLINE_FALLBACK_LORE
from utils.settings import Settings

LORE = "Whispering Blade was carried by the last knight of Elderwood."


def lore_transport(status_code: int = 200, payload=None) -> httpx.MockTransport:
    body = json.dumps({"lore": LORE} if payload is None else payload).encode()
    return httpx.MockTransport(lambda request: httpx.Response(status_code, content=body))


def make_client(tmp_path, transport=None, **overrides) -> TestClient:
    settings = Settings(
        lore_service_url=overrides.pop("lore_service_url", "http://lore.test"),
        database_dir=tmp_path / "db",
        **overrides,
    )
    return TestClient(create_app(settings, transport=transport or lore_transport()))


def upload(client: TestClient, token: str, data: bytes, content_type: str = "image/png"):
    return client.post(f"/captures/{token}/image", files={"image": ("photo.png", data, content_type)})


def test_health_and_idle_status(tmp_path):
    with make_client(tmp_path) as client:
        health = client.get("/health").json()
        status = client.get("/status").json()

    assert health == {"ok": True, "db_initialized": True, "lore_service_url": "http://lore.test"}
    assert status == {"in_progress": False, "active_capture": None}


def test_capture_confirm_and_browse(tmp_path, png_bytes):
    with make_client(tmp_path) as client:
        token = client.post("/captures").json()["token"]
        assert client.get("/status").json()["active_capture"] == token

        captured = upload(client, token, png_bytes)
        assert captured.status_code == 200
        assert captured.json() == {"token": token, "lore_text": LORE, "object_name": "Whispering Blade"}

        pending = client.get(f"/captures/{token}/image")
        assert pending.headers["content-type"] == "image/jpeg"
        assert client.get("/records").json() == []

        confirmed = client.post(f"/captures/{token}/confirm")
        assert confirmed.status_code == 200
        record = confirmed.json()
        assert record["display_name"] == "Whispering Blade"
        assert record["has_image"] is True

        records = client.get("/records").json()
        assert [r["id"] for r in records] == [record["id"]]
        assert client.get(f"/records/{record['id']}").json() == record

        image = client.get(f"/records/{record['id']}/image")
        assert image.content == pending.content

        thumbnail = client.get(f"/records/{record['id']}/thumbnail")
        assert thumbnail.headers["content-type"] == "image/png"
        assert Image.open(io.BytesIO(thumbnail.content)).size == (64, 48)

        assert client.get("/status").json() == {"in_progress": False, "active_capture": None}


def test_delete_record_is_idempotent(tmp_path, png_bytes):
    with make_client(tmp_path) as client:
        token = client.post("/captures").json()["token"]
        upload(client, token, png_bytes)
        record_id = client.post(f"/captures/{token}/confirm").json()["id"]

        assert client.delete(f"/records/{record_id}").status_code == 204
        assert client.delete(f"/records/{record_id}").status_code == 204
        assert client.get("/records").json() == []
        assert client.get(f"/records/{record_id}").status_code == 404


def test_server_error_is_reported_and_nothing_is_saved(tmp_path, png_bytes):
    with make_client(tmp_path, transport=lore_transport(500, {"lore": LORE})) as client:
        token = client.post("/captures").json()["token"]

        response = upload(client, token, png_bytes)

        assert response.status_code == 502
        assert response.json()["detail"] == "Server error: 500"
        assert client.post(f"/captures/{token}/confirm").status_code == 409
        assert client.get("/records").json() == []


def test_unreachable_server_in_production(tmp_path, png_bytes):
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    with make_client(tmp_path, transport=httpx.MockTransport(refuse)) as client:
        token = client.post("/captures").json()["token"]
        response = upload(client, token, png_bytes)

    assert response.status_code == 503


def test_unreachable_server_in_development_uses_fallback(tmp_path, png_bytes):
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    with make_client(tmp_path, transport=httpx.MockTransport(refuse), environment="development") as client:
        token = client.post("/captures").json()["token"]
        response = upload(client, token, png_bytes)

    assert response.status_code == 200
    assert response.json()["lore_text"] == OFFLINE_FALLBACK_LORE
    assert response.json()["object_name"] == "In the depths of the ancient Elderwood Forest, this mystical artifact"


def test_invalid_service_url(tmp_path, png_bytes):
    with make_client(tmp_path, lore_service_url="not a url") as client:
        token = client.post("/captures").json()["token"]
        response = upload(client, token, png_bytes)

    assert response.status_code == 500
    assert response.json()["detail"] == "Invalid server URL"


def test_unreadable_upload_ends_the_capture(tmp_path):
    with make_client(tmp_path) as client:
        token = client.post("/captures").json()["token"]

        response = upload(client, token, b"not really a png")

        assert response.status_code == 400
        assert response.json()["detail"] == "Failed to convert image to data"
        assert client.get("/status").json()["active_capture"] is None


def test_non_image_upload_is_rejected(tmp_path, png_bytes):
    with make_client(tmp_path) as client:
        token = client.post("/captures").json()["token"]

        response = upload(client, token, b"hello", content_type="text/plain")

        assert response.status_code == 415
        assert client.get("/status").json()["active_capture"] is None
        assert upload(client, token, png_bytes).status_code == 409


def test_empty_upload_ends_the_capture(tmp_path):
    with make_client(tmp_path) as client:
        token = client.post("/captures").json()["token"]

        response = upload(client, token, b"")

        assert response.status_code == 400
        assert response.json()["detail"] == "Failed to convert image to data"
        assert client.get("/status").json()["active_capture"] is None


def test_abandoned_capture_cannot_be_confirmed(tmp_path, png_bytes):
    with make_client(tmp_path) as client:
        token = client.post("/captures").json()["token"]
        upload(client, token, png_bytes)

        assert client.delete(f"/captures/{token}").status_code == 204
        assert client.delete(f"/captures/{token}").status_code == 204

        assert client.post(f"/captures/{token}/confirm").status_code == 409
        assert client.get(f"/captures/{token}/image").status_code == 404
        assert client.get("/records").json() == []


def test_upload_with_stale_token_is_conflict(tmp_path, png_bytes):
    with make_client(tmp_path) as client:
        old_token = client.post("/captures").json()["token"]
        client.post("/captures")

        response = upload(client, old_token, png_bytes)

    assert response.status_code == 409


def test_preview_seed_on_startup(tmp_path):
    with make_client(tmp_path, seed_preview=True) as client:
        records = client.get("/records").json()
        limited = client.get("/records", params={"limit": 1}).json()

    assert [r["display_name"] for r in records] == ["Sacred Chalice", "Merchant's Timepiece", "Crystal of Truth"]
    assert [r["has_image"] for r in records] == [False, False, False]
    assert len(limited) == 1

    with make_client(tmp_path, seed_preview=True) as client:
        first_id = records[0]["id"]
        assert client.get(f"/records/{first_id}/image").status_code == 404
        assert client.get(f"/records/{first_id}/thumbnail").status_code == 404
        assert len(client.get("/records").json()) == 3
