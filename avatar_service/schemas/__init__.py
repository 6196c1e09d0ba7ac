from avatar_service.schemas.avatar import AvatarRecord, NotFoundResponse

__all__ = ["AvatarRecord", "NotFoundResponse"]
