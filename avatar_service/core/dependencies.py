# avatar_service/core/dependencies.py
"""
Контейнер зависимостей для управления жизненным циклом сервисов.
Клиент хранилища и сервис аватаров создаются явно при старте и передаются дальше,
а не настраиваются глобально при импорте.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from avatar_service.config import config
from avatar_service.db.base import create_tables
from avatar_service.db.session import async_engine
from avatar_service.repositories.avatar import SqlAlchemyAvatarRepository
from avatar_service.services.avatar import AvatarService
from avatar_service.services.storage import MinioAssetUploader

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Контейнер для всех сервисов приложения"""

    def __init__(self):
        self._uploader: Optional[MinioAssetUploader] = None
        self._avatar_service: Optional[AvatarService] = None
        self._initialized = False

    async def startup(self):
        """Инициализация всех сервисов при старте приложения"""
        if self._initialized:
            return

        # ConfigurationError здесь останавливает запуск приложения
        thumbnail_spec = config.thumbnail.to_spec()

        self._uploader = MinioAssetUploader.from_config(config.storage)
        if config.storage.create_bucket:
            self._uploader.ensure_bucket(config.storage.media_bucket)

        if config.database.create_tables:
            await create_tables()

        self._avatar_service = AvatarService(
            repository=SqlAlchemyAvatarRepository(),
            uploader=self._uploader,
            thumbnail_spec=thumbnail_spec,
            bucket=config.storage.media_bucket,
            key_prefix=config.storage.avatar_key_prefix,
        )
        self._initialized = True
        logger.info(
            f"Services started: bucket={config.storage.media_bucket}, "
            f"thumbnail={thumbnail_spec.pixel_size}px/{thumbnail_spec.border_width}px"
        )

    async def shutdown(self):
        """Корректное завершение работы всех сервисов"""
        if not self._initialized:
            return

        if self._uploader:
            self._uploader.cleanup()

        await async_engine.dispose()
        self._initialized = False

    @property
    def avatar_service(self) -> AvatarService:
        if not self._avatar_service:
            raise RuntimeError("Avatar service not initialized. Call startup() first.")
        return self._avatar_service


# Глобальный экземпляр контейнера
_service_container: Optional[ServiceContainer] = None


def get_service_container() -> ServiceContainer:
    """Получить экземпляр контейнера сервисов"""
    global _service_container
    if _service_container is None:
        _service_container = ServiceContainer()
    return _service_container


# FastAPI Dependencies
async def get_avatar_service() -> AvatarService:
    """Dependency для получения сервиса аватаров"""
    return get_service_container().avatar_service


@asynccontextmanager
async def service_lifespan():
    """Контекстный менеджер для управления жизненным циклом сервисов"""
    container = get_service_container()

    await container.startup()

    try:
        yield container
    finally:
        await container.shutdown()
