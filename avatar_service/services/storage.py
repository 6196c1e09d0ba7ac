# avatar_service/services/storage.py
import asyncio
import io
import logging
import mimetypes
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Optional
from urllib.parse import quote

from minio import Minio
from minio.error import MinioException
from urllib3.exceptions import HTTPError

from avatar_service.config.settings import StorageConfig
from avatar_service.core.exceptions import UploadError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class AssetUploader(ABC):
    """Контракт загрузки байтов в объектное хранилище.

    Повторная загрузка под тем же ключом перезаписывает объект.
    """

    @abstractmethod
    async def upload(self, bucket: str, key: str, data: bytes) -> str:
        """
        Загружает данные и возвращает абсолютный адрес объекта.

        Raises:
            UploadError: если хранилище вернуло ошибку или недоступно.
        """


def create_minio_client(storage: StorageConfig) -> Minio:
    return Minio(
        endpoint=storage.endpoint,
        access_key=storage.access_key.get_secret_value() or None,
        secret_key=storage.secret_key.get_secret_value() or None,
        secure=storage.secure,
        region=storage.region,
    )


class MinioAssetUploader(AssetUploader):
    def __init__(
            self,
            client: Minio,
            public_base_url: str,
            executor: Optional[ThreadPoolExecutor] = None
    ):
        self._client = client
        self._public_base_url = public_base_url.rstrip("/")
        self._executor = executor or ThreadPoolExecutor(thread_name_prefix="s3-upload")

    @classmethod
    def from_config(cls, storage: StorageConfig) -> "MinioAssetUploader":
        scheme = "https" if storage.secure else "http"
        public_base_url = storage.public_base_url or f"{scheme}://{storage.endpoint}"
        return cls(create_minio_client(storage), public_base_url)

    def location(self, bucket: str, key: str) -> str:
        return f"{self._public_base_url}/{bucket}/{quote(key, safe='/')}"

    def _put(self, bucket: str, key: str, data: bytes) -> None:
        content_type, _ = mimetypes.guess_type(key)
        self._client.put_object(
            bucket_name=bucket,
            object_name=key,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type or DEFAULT_CONTENT_TYPE,
        )

    async def upload(self, bucket: str, key: str, data: bytes) -> str:
        logger.debug(f"Uploading {len(data)} bytes to {bucket}/{key}")
        try:
            await asyncio.get_running_loop().run_in_executor(self._executor, self._put, bucket, key, data)
        except (MinioException, HTTPError, OSError) as e:
            logger.error(f"Upload to {bucket}/{key} failed: {e}")
            raise UploadError(
                f"Failed to upload {key} to bucket {bucket}: {e}",
                details={"bucket": bucket, "key": key},
            ) from e
        return self.location(bucket, key)

    def ensure_bucket(self, bucket: str) -> None:
        """Создаёт бакет, если его ещё нет. Вызывается при старте."""
        if not self._client.bucket_exists(bucket_name=bucket):
            self._client.make_bucket(bucket_name=bucket)
            logger.info(f"Bucket {bucket} created")

    def cleanup(self):
        self._executor.shutdown(wait=True)
