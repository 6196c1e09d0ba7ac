import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from avatar_service.core.dependencies import get_avatar_service
from avatar_service.middlewares.restrict_docs import RestrictDocsAccessMiddleware
from avatar_service.services.avatar import AvatarService
from conftest import BUCKET, RecordingUploader


def post_avatar(client, account_id, data, filename="me.png"):
    return client.post(
        "/avatar",
        data={"accountId": account_id},
        files={"file": (filename, data, "image/png")},
    )


def test_get_missing_avatar(client):
    r = client.get("/avatar/nobody")
    assert r.status_code == 404
    assert r.json() == {"reason": "Avatar not found"}


def test_create_then_get(client, png_bytes):
    r = post_avatar(client, "u1", png_bytes)
    assert r.status_code == 201, r.text
    body = r.json()
    assert set(body) == {"accountId", "imageUrl", "thumbnailUrl", "createdAt", "updatedAt"}
    assert body["createdAt"] == body["updatedAt"]

    r = client.get("/avatar/u1")
    assert r.status_code == 200
    avatar = r.json()
    assert avatar["accountId"] == "u1"
    assert isinstance(avatar["imageUrl"], str) and avatar["imageUrl"]
    assert avatar["imageUrl"].endswith(f"/{BUCKET}/avatars/u1.png")
    assert avatar["thumbnailUrl"].endswith("__u1.png")


def test_second_create_conflicts(client, uploader, png_bytes):
    assert post_avatar(client, "u1", png_bytes).status_code == 201
    uploader.calls.clear()

    r = post_avatar(client, "u1", png_bytes)
    assert r.status_code == 409
    assert uploader.calls == []


def test_create_with_invalid_image(client, repository):
    r = post_avatar(client, "u1", b"this is not an image")
    assert r.status_code == 400
    assert repository.records == {}


def test_create_with_empty_file(client, uploader):
    r = post_avatar(client, "u1", b"")
    assert r.status_code == 400
    assert uploader.calls == []


def test_create_requires_account_id(client, png_bytes):
    r = client.post("/avatar", files={"file": ("me.png", png_bytes, "image/png")})
    assert r.status_code == 422


def test_create_upload_failure(app, repository, thumbnail_spec, clock, png_bytes):
    failing = AvatarService(
        repository=repository,
        uploader=RecordingUploader(fail_on_call=2),
        thumbnail_spec=thumbnail_spec,
        bucket=BUCKET,
        key_prefix="avatars",
        clock=clock,
    )
    app.dependency_overrides[get_avatar_service] = lambda: failing
    try:
        r = post_avatar(TestClient(app), "u1", png_bytes)
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 502
    assert repository.records == {}


def test_update_existing(client, png_bytes):
    created = post_avatar(client, "u1", png_bytes).json()

    r = client.put("/avatar/u1", files={"file": ("new.jpg", png_bytes, "image/jpeg")})
    assert r.status_code == 200
    assert r.content == b""

    updated = client.get("/avatar/u1").json()
    assert updated["createdAt"] == created["createdAt"]
    assert updated["updatedAt"] > created["updatedAt"]
    assert updated["imageUrl"].endswith("/avatars/u1.jpg")


def test_update_missing_account(client, uploader, png_bytes):
    r = client.put("/avatar/ghost", files={"file": ("me.png", png_bytes, "image/png")})
    assert r.status_code == 200
    assert uploader.calls == []
    assert client.get("/avatar/ghost").status_code == 404


def test_update_with_invalid_image(client, png_bytes):
    post_avatar(client, "u1", png_bytes)
    r = client.put("/avatar/u1", files={"file": ("me.png", b"junk", "image/png")})
    assert r.status_code == 400


@pytest.mark.parametrize("exists", [True, False])
def test_delete(client, png_bytes, exists):
    if exists:
        post_avatar(client, "u1", png_bytes)

    r = client.delete("/avatar/u1")
    assert r.status_code == 200
    assert r.content == b""
    assert client.get("/avatar/u1").status_code == 404


def test_request_id_header(client):
    r = client.get("/avatar/nobody")
    assert r.headers.get("X-Request-ID")


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_version(client):
    r = client.get("/api/version")
    assert r.status_code == 200
    assert "version" in r.json()


def test_restrict_docs_middleware():
    app = FastAPI()
    app.add_middleware(RestrictDocsAccessMiddleware)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    client = TestClient(app)
    # TestClient ходит с адреса "testclient", которого нет в allowed_ips
    assert client.get("/docs").status_code == 403
    assert client.get("/openapi.json").status_code == 403
    assert client.get("/ping").status_code == 200
