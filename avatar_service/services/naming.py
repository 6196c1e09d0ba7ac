# avatar_service/services/naming.py
from datetime import datetime

THUMBNAIL_EXTENSION = "png"
TIMESTAMP_FORMAT = "%Y.%m.%d.%H.%M.%S"


def file_extension(filename: str) -> str:
    """Расширение после последней точки; для имени без точки пустая строка."""
    _, dot, extension = (filename or "").rpartition(".")
    return extension if dot else ""


def _join(prefix: str, name: str) -> str:
    prefix = (prefix or "").rstrip("/")
    return f"{prefix}/{name}" if prefix else name


def original_key(prefix: str, account_id: str, extension: str) -> str:
    """Ключ оригинала: один на аккаунт, при повторной загрузке перезаписывается."""
    return _join(prefix, f"{account_id}.{extension}")


def thumbnail_key(prefix: str, account_id: str, timestamp: datetime) -> str:
    """Ключ миниатюры с меткой времени до секунды, сортируемый лексикографически."""
    return _join(prefix, f"{timestamp.strftime(TIMESTAMP_FORMAT)}__{account_id}.{THUMBNAIL_EXTENSION}")
