from fastapi import APIRouter

from avatar_service.version import APP_VERSION

router = APIRouter()


@router.get("/version")
async def read_version():
    return {"version": APP_VERSION}


@router.get("/health")
async def health_check():
    return {"status": "ok"}
