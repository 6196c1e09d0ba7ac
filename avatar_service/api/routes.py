from fastapi import FastAPI

from avatar_service.api.main_endpoints.router import main_router
from avatar_service.api.v1.router import avatar_router


def include_routers(app: FastAPI):
    app.include_router(main_router)
    app.include_router(avatar_router)
