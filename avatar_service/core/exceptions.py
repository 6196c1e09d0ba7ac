from typing import Optional


class AvatarServiceError(Exception):
    """Базовый класс для ошибок сервиса аватаров."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ImageDecodeError(AvatarServiceError):
    """Загруженные байты не являются изображением. Повтор бессмысленен."""
    pass


class AvatarAlreadyExistsError(AvatarServiceError):
    """У аккаунта уже есть аватар, повторное создание запрещено."""
    pass


class UploadError(AvatarServiceError):
    """Ошибка загрузки объекта в хранилище (сеть, доступ, квота)."""
    pass


class ConfigurationError(AvatarServiceError):
    """Некорректная конфигурация. Фатальна при старте, не на запросе."""
    pass
