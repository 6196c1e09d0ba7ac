from unittest.mock import MagicMock

import pytest
from minio.error import MinioException
from urllib3.exceptions import ProtocolError

from avatar_service.config.settings import StorageConfig
from avatar_service.core.exceptions import UploadError
from avatar_service.services.storage import MinioAssetUploader


@pytest.fixture()
def minio_client():
    return MagicMock()


@pytest.fixture()
def s3_uploader(minio_client):
    uploader = MinioAssetUploader(minio_client, "https://cdn.example.com/")
    yield uploader
    uploader.cleanup()


async def test_upload_returns_location(s3_uploader, minio_client):
    url = await s3_uploader.upload("media", "avatars/u1.png", b"\x89PNG data")

    assert url == "https://cdn.example.com/media/avatars/u1.png"
    minio_client.put_object.assert_called_once()
    kwargs = minio_client.put_object.call_args.kwargs
    assert kwargs["bucket_name"] == "media"
    assert kwargs["object_name"] == "avatars/u1.png"
    assert kwargs["length"] == 9
    assert kwargs["data"].read() == b"\x89PNG data"
    assert kwargs["content_type"] == "image/png"


async def test_upload_unknown_extension(s3_uploader, minio_client):
    await s3_uploader.upload("media", "avatars/u1.", b"raw")
    assert minio_client.put_object.call_args.kwargs["content_type"] == "application/octet-stream"


async def test_same_key_twice_overwrites(s3_uploader, minio_client):
    first = await s3_uploader.upload("media", "avatars/u1.png", b"one")
    second = await s3_uploader.upload("media", "avatars/u1.png", b"two")
    assert first == second
    assert minio_client.put_object.call_count == 2


def test_location_quotes_key(s3_uploader):
    assert s3_uploader.location("media", "avatars/user 1.png") == "https://cdn.example.com/media/avatars/user%201.png"


@pytest.mark.parametrize("error", [MinioException("access denied"), ProtocolError("connection reset"), OSError("timeout")])
async def test_upload_errors_become_upload_error(s3_uploader, minio_client, error):
    minio_client.put_object.side_effect = error

    with pytest.raises(UploadError) as exc_info:
        await s3_uploader.upload("media", "avatars/u1.png", b"data")

    assert exc_info.value.details == {"bucket": "media", "key": "avatars/u1.png"}
    assert exc_info.value.__cause__ is error


def test_ensure_bucket_creates_missing(s3_uploader, minio_client):
    minio_client.bucket_exists.return_value = False
    s3_uploader.ensure_bucket("media")
    minio_client.make_bucket.assert_called_once_with(bucket_name="media")


def test_ensure_bucket_keeps_existing(s3_uploader, minio_client):
    minio_client.bucket_exists.return_value = True
    s3_uploader.ensure_bucket("media")
    minio_client.make_bucket.assert_not_called()


def test_from_config_default_location():
    storage = StorageConfig(endpoint="minio.local:9000", secure=False, access_key="key", secret_key="secret")
    uploader = MinioAssetUploader.from_config(storage)
    try:
        assert uploader.location("media", "avatars/u1.png") == "http://minio.local:9000/media/avatars/u1.png"
    finally:
        uploader.cleanup()


def test_from_config_public_base_url():
    storage = StorageConfig(public_base_url="https://cdn.example.com", access_key="key", secret_key="secret")
    uploader = MinioAssetUploader.from_config(storage)
    try:
        assert uploader.location("media", "a/b.png") == "https://cdn.example.com/media/a/b.png"
    finally:
        uploader.cleanup()
