# tests/conftest.py
import io
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from avatar_service.core.exceptions import AvatarAlreadyExistsError, UploadError
from avatar_service.repositories.avatar import AvatarRepository
from avatar_service.services.avatar import AvatarService
from avatar_service.services.storage import AssetUploader
from avatar_service.utils.image_processing import ThumbnailSpec

BUCKET = "media-test"
KEY_PREFIX = "avatars"
START = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


def make_png(size=(200, 160), color=(220, 30, 30, 255)) -> bytes:
    with io.BytesIO() as buffer:
        Image.new("RGBA", size, color).save(buffer, format="PNG")
        return buffer.getvalue()


class RecordingUploader(AssetUploader):
    """Запоминает загрузки; может падать на n-й загрузке."""

    def __init__(self, fail_on_call=None):
        self.calls = []
        self.fail_on_call = fail_on_call

    async def upload(self, bucket, key, data):
        self.calls.append((bucket, key, data))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise UploadError(f"Failed to upload {key}", details={"bucket": bucket, "key": key})
        return f"https://storage.test/{bucket}/{key}"


class InMemoryAvatarRepository(AvatarRepository):
    def __init__(self):
        self.records = {}
        self.saves = 0

    async def find_by_account_id(self, account_id):
        return self.records.get(account_id)

    async def save(self, record, *, is_new):
        self.saves += 1
        if is_new and record.account_id in self.records:
            raise AvatarAlreadyExistsError(f"Avatar for account {record.account_id} already exists")
        if not is_new and record.account_id not in self.records:
            return None
        self.records[record.account_id] = record
        return record

    async def delete_by_account_id(self, account_id):
        self.records.pop(account_id, None)


class StepClock:
    """Часы, сдвигающиеся на step при каждом вызове."""

    def __init__(self, start=START, step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


@pytest.fixture()
def png_bytes():
    return make_png()


@pytest.fixture()
def thumbnail_spec():
    return ThumbnailSpec()


@pytest.fixture()
def uploader():
    return RecordingUploader()


@pytest.fixture()
def repository():
    return InMemoryAvatarRepository()


@pytest.fixture()
def clock():
    return StepClock()


@pytest.fixture()
def service(repository, uploader, thumbnail_spec, clock):
    return AvatarService(
        repository=repository,
        uploader=uploader,
        thumbnail_spec=thumbnail_spec,
        bucket=BUCKET,
        key_prefix=KEY_PREFIX,
        clock=clock,
    )


@pytest.fixture()
def app():
    from avatar_service.main import app as fastapi_app
    return fastapi_app


@pytest.fixture()
def client(app, service):
    from avatar_service.core.dependencies import get_avatar_service

    app.dependency_overrides[get_avatar_service] = lambda: service
    # Без контекстного менеджера lifespan не запускается: БД и S3 не нужны
    yield TestClient(app)
    app.dependency_overrides.clear()
