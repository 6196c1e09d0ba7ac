from sqlalchemy.orm import DeclarativeBase

from .session import metadata, async_engine


class Base(DeclarativeBase):
    metadata = metadata


async def create_tables() -> None:
    """Создаёт таблицы без миграций (локальная разработка, DB_CREATE_TABLES=true)."""
    async with async_engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
