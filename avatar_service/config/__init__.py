from avatar_service.config.settings import config

__all__ = ["config"]
