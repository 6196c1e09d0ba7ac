from avatar_service.models.avatar import Avatar

__all__ = ["Avatar"]
