from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AvatarRecord(BaseModel):
    """Запись об аватаре аккаунта. Внутренний id в запись не попадает."""
    account_id: str = Field(..., description="Идентификатор аккаунта")
    image_url: str = Field(..., description="Адрес оригинального изображения")
    thumbnail_url: str = Field(..., description="Адрес круглой миниатюры")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "examples": [
                {
                    "accountId": "u1",
                    "imageUrl": "https://s3.amazonaws.com/media/avatars/u1.jpg",
                    "thumbnailUrl": "https://s3.amazonaws.com/media/avatars/2024.05.01.12.30.00__u1.png",
                    "createdAt": "2024-05-01T12:30:00Z",
                    "updatedAt": "2024-05-01T12:30:00Z"
                }
            ]
        }
    )


class NotFoundResponse(BaseModel):
    reason: str
