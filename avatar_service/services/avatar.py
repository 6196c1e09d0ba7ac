# avatar_service/services/avatar.py
import logging
from datetime import datetime
from typing import Callable, NamedTuple, Optional

from avatar_service.core.exceptions import AvatarAlreadyExistsError
from avatar_service.repositories.avatar import AvatarRepository
from avatar_service.schemas.avatar import AvatarRecord
from avatar_service.services.naming import file_extension, original_key, thumbnail_key
from avatar_service.services.storage import AssetUploader
from avatar_service.utils.dates import utc_now
from avatar_service.utils.image_processing import ThumbnailSpec, make_thumbnail

logger = logging.getLogger(__name__)


class AvatarUrls(NamedTuple):
    image_url: str
    thumbnail_url: str


def apply_derived_assets(
        existing: Optional[AvatarRecord],
        account_id: str,
        urls: AvatarUrls,
        now: datetime
) -> AvatarRecord:
    """
    Строит запись после загрузки файлов.

    Для нового аккаунта created_at == updated_at == now; для существующей записи
    created_at сохраняется, а адреса и updated_at заменяются.
    """
    if existing is None:
        return AvatarRecord(
            account_id=account_id,
            image_url=urls.image_url,
            thumbnail_url=urls.thumbnail_url,
            created_at=now,
            updated_at=now,
        )
    return existing.model_copy(update={
        "image_url": urls.image_url,
        "thumbnail_url": urls.thumbnail_url,
        "updated_at": now,
    })


class AvatarService:
    """
    Создание, обновление, чтение и удаление аватаров.

    Конвейер: миниатюра -> ключи -> загрузка оригинала -> загрузка миниатюры -> запись в БД.
    Ошибка на любом шаге до записи прерывает конвейер, запись не создаётся.
    Уже загруженные объекты не откатываются: ключи детерминированы, повтор их перезапишет.
    """

    def __init__(
            self,
            repository: AvatarRepository,
            uploader: AssetUploader,
            thumbnail_spec: ThumbnailSpec,
            bucket: str,
            key_prefix: str,
            clock: Callable[[], datetime] = utc_now
    ):
        self.repository = repository
        self.uploader = uploader
        self.thumbnail_spec = thumbnail_spec
        self.bucket = bucket
        self.key_prefix = key_prefix
        self.clock = clock

    async def get_avatar(self, account_id: str) -> Optional[AvatarRecord]:
        return await self.repository.find_by_account_id(account_id)

    async def create_avatar(self, account_id: str, data: bytes, filename: str) -> AvatarRecord:
        existing = await self.repository.find_by_account_id(account_id)
        if existing:
            raise AvatarAlreadyExistsError(
                f"Avatar for account {account_id} already exists",
                details={"account_id": account_id},
            )

        now = self.clock()
        urls = await self._derive_and_upload(account_id, data, filename, now)
        avatar = await self.repository.save(apply_derived_assets(None, account_id, urls, now), is_new=True)
        logger.info(f"Avatar created for account {account_id}")
        return avatar

    async def update_avatar(self, account_id: str, data: bytes, filename: str) -> Optional[AvatarRecord]:
        existing = await self.repository.find_by_account_id(account_id)
        if not existing:
            logger.info(f"Avatar update skipped, account {account_id} has no avatar")
            return None

        now = self.clock()
        urls = await self._derive_and_upload(account_id, data, filename, now)
        avatar = await self.repository.save(apply_derived_assets(existing, account_id, urls, now), is_new=False)
        if avatar is None:
            # Запись удалили, пока шла загрузка: заново её не создаём
            logger.info(f"Avatar update dropped, account {account_id} was deleted concurrently")
            return None
        logger.info(f"Avatar updated for account {account_id}")
        return avatar

    async def delete_avatar(self, account_id: str) -> None:
        # Объекты в хранилище остаются, удаляется только запись
        await self.repository.delete_by_account_id(account_id)
        logger.info(f"Avatar record deleted for account {account_id}")

    async def _derive_and_upload(self, account_id: str, data: bytes, filename: str, now: datetime) -> AvatarUrls:
        thumbnail = await make_thumbnail(data, self.thumbnail_spec)

        image_key = original_key(self.key_prefix, account_id, file_extension(filename))
        thumb_key = thumbnail_key(self.key_prefix, account_id, now)
        logger.debug(f"Keys for account {account_id}: original={image_key}, thumbnail={thumb_key}")

        image_url = await self.uploader.upload(self.bucket, image_key, data)
        thumbnail_url = await self.uploader.upload(self.bucket, thumb_key, thumbnail)
        return AvatarUrls(image_url=image_url, thumbnail_url=thumbnail_url)
