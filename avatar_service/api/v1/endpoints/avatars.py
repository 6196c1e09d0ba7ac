# avatar_service/api/v1/endpoints/avatars.py
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from starlette import status
from starlette.responses import JSONResponse, Response

from avatar_service.core.dependencies import get_avatar_service
from avatar_service.core.exceptions import AvatarAlreadyExistsError, ImageDecodeError, UploadError
from avatar_service.schemas.avatar import AvatarRecord, NotFoundResponse
from avatar_service.services.avatar import AvatarService

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    return data


@router.get(
    "/{account_id}",
    summary="Получить аватар аккаунта",
    response_model=AvatarRecord,
    responses={404: {"model": NotFoundResponse, "description": "Аватар не найден"}},
)
async def get_avatar(
    account_id: str,
    avatar_service: AvatarService = Depends(get_avatar_service),
):
    """Возвращает адреса оригинала и миниатюры для аккаунта."""
    avatar = await avatar_service.get_avatar(account_id)
    if not avatar:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"reason": "Avatar not found"})
    return avatar


@router.post(
    "",
    summary="Загрузить новый аватар",
    response_model=AvatarRecord,
    status_code=status.HTTP_201_CREATED,
)
async def upload_avatar(
    account_id: str = Form(..., alias="accountId"),
    file: UploadFile = File(...),
    avatar_service: AvatarService = Depends(get_avatar_service),
):
    """Строит миниатюру, загружает оба файла в хранилище и создаёт запись."""
    data = await read_upload(file)
    try:
        return await avatar_service.create_avatar(account_id, data, file.filename or "")
    except AvatarAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ImageDecodeError as e:
        logger.warning(f"Rejected avatar for account {account_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is not a valid image")
    except UploadError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)


@router.put(
    "/{account_id}",
    summary="Обновить аватар аккаунта",
    status_code=status.HTTP_200_OK,
    response_class=Response,
)
async def update_avatar(
    account_id: str,
    file: UploadFile = File(...),
    avatar_service: AvatarService = Depends(get_avatar_service),
):
    """Заменяет оригинал и миниатюру. Для аккаунта без аватара ничего не делает."""
    data = await read_upload(file)
    try:
        await avatar_service.update_avatar(account_id, data, file.filename or "")
    except ImageDecodeError as e:
        logger.warning(f"Rejected avatar for account {account_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is not a valid image")
    except UploadError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
    return Response(status_code=status.HTTP_200_OK)


@router.delete(
    "/{account_id}",
    summary="Удалить аватар аккаунта",
    status_code=status.HTTP_200_OK,
    response_class=Response,
)
async def delete_avatar(
    account_id: str,
    avatar_service: AvatarService = Depends(get_avatar_service),
):
    """Удаляет запись. Файлы в хранилище не удаляются."""
    await avatar_service.delete_avatar(account_id)
    return Response(status_code=status.HTTP_200_OK)
