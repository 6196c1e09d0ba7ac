from fastapi import APIRouter

from avatar_service.api.v1.endpoints import avatars

avatar_router = APIRouter()

avatar_router.include_router(avatars.router, prefix="/avatar", tags=["avatars"])
