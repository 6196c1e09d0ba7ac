# avatar_service/models/avatar.py
from datetime import datetime

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from avatar_service.db.base import Base
from avatar_service.utils.dates import utc_now


class Avatar(Base):
    __tablename__ = "avatars"
    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    image_url: Mapped[str] = mapped_column(String(1024))
    thumbnail_url: Mapped[str] = mapped_column(String(1024))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    def __str__(self) -> str:
        return f"Avatar: {self.account_id}"

    def __repr__(self) -> str:
        return f"Avatar(id={self.id}, account_id={self.account_id})"
