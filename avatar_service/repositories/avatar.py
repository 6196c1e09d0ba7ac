# avatar_service/repositories/avatar.py
import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from avatar_service.core.exceptions import AvatarAlreadyExistsError
from avatar_service.models.avatar import Avatar
from avatar_service.schemas.avatar import AvatarRecord
from avatar_service.utils.db import with_db_session

logger = logging.getLogger(__name__)


@with_db_session()
async def get_avatar_by_account_id(session: AsyncSession, account_id: str) -> Optional[Avatar]:
    """Получение аватара по account_id."""
    stmt = select(Avatar).where(Avatar.account_id == account_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


@with_db_session()
async def insert_avatar(session: AsyncSession, record: AvatarRecord) -> Avatar:
    """
    Создание записи об аватаре.
    Уникальный индекс по account_id отклоняет вторую запись для того же аккаунта.
    """
    avatar = Avatar(
        account_id=record.account_id,
        image_url=record.image_url,
        thumbnail_url=record.thumbnail_url,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
    session.add(avatar)

    try:
        await session.flush()
    except IntegrityError as e:
        # Параллельный create для того же аккаунта успел записать раньше
        await session.rollback()
        logger.warning(f"Avatar for account {record.account_id} was created concurrently: {e}")
        raise AvatarAlreadyExistsError(
            f"Avatar for account {record.account_id} already exists",
            details={"account_id": record.account_id},
        ) from e
    await session.refresh(avatar)
    return avatar


@with_db_session()
async def update_avatar_by_account_id(session: AsyncSession, record: AvatarRecord) -> Optional[Avatar]:
    """
    Обновление адресов и updated_at существующей записи.
    Если запись успели удалить, возвращает None и ничего не создаёт.
    """
    stmt = select(Avatar).where(Avatar.account_id == record.account_id)
    result = await session.execute(stmt)
    avatar = result.scalar_one_or_none()
    if avatar is None:
        return None

    avatar.image_url = record.image_url
    avatar.thumbnail_url = record.thumbnail_url
    avatar.updated_at = record.updated_at
    await session.flush()
    await session.refresh(avatar)
    return avatar


@with_db_session()
async def delete_avatar_by_account_id(session: AsyncSession, account_id: str) -> int:
    """Удаление аватара по account_id. Возвращает число удалённых строк."""
    stmt = delete(Avatar).where(Avatar.account_id == account_id)
    result = await session.execute(stmt)
    return result.rowcount


class AvatarRepository(ABC):
    """Хранилище записей об аватарах: не более одной записи на аккаунт."""

    @abstractmethod
    async def find_by_account_id(self, account_id: str) -> Optional[AvatarRecord]:
        ...

    @abstractmethod
    async def save(self, record: AvatarRecord, *, is_new: bool) -> Optional[AvatarRecord]:
        """
        is_new=True: только вставка, существующая запись -> AvatarAlreadyExistsError.
        is_new=False: только обновление, для отсутствующей записи возвращает None.
        """

    @abstractmethod
    async def delete_by_account_id(self, account_id: str) -> None:
        ...


class SqlAlchemyAvatarRepository(AvatarRepository):
    async def find_by_account_id(self, account_id: str) -> Optional[AvatarRecord]:
        avatar = await get_avatar_by_account_id(account_id)
        if avatar is None:
            return None
        return AvatarRecord.model_validate(avatar)

    async def save(self, record: AvatarRecord, *, is_new: bool) -> Optional[AvatarRecord]:
        if is_new:
            return AvatarRecord.model_validate(await insert_avatar(record))
        avatar = await update_avatar_by_account_id(record)
        if avatar is None:
            return None
        return AvatarRecord.model_validate(avatar)

    async def delete_by_account_id(self, account_id: str) -> None:
        deleted = await delete_avatar_by_account_id(account_id)
        logger.debug(f"Deleted {deleted} avatar rows for account {account_id}")
