# academy/routes/availability.py

from fastapi import APIRouter, Depends, status

from academy.routes.auth import get_current_user, get_log, get_storage
from academy.schemas.availability import AvailabilityPayload
from academy.services.availability import read_availability_service, save_availability_service
from academy.storage.base import Storage
from academy.utils.errors import AppError, InternalError
from academy.utils.log import Log

router = APIRouter()

# ────────────── READ ──────────────
@router.get(
    "/{username}",
    status_code=status.HTTP_200_OK,
    summary="Недельное расписание пользователя",
    responses={
        200: {
            "description": "Расписание: день → время → состояние",
            "content": {"application/json": {"example": {"availability": {"Monday": {"10:00": "available"}}}}},
        },
        401: {"description": "Нет токена"},
        403: {"description": "Токен неверный или истёк"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def read_availability(
    username: str,
    storage: Storage = Depends(get_storage),
    log: Log = Depends(get_log),
    _: str = Depends(get_current_user),
):
    try:
        availability = await read_availability_service(username, storage.availability, log)
    except AppError:
        raise
    except Exception as e:
        await log.log_error("availability", f"Ошибка при чтении расписания: {e}", {"username": username})
        raise InternalError("Failed to fetch availability")
    return {"availability": availability}

# ────────────── SAVE (полная замена) ──────────────
@router.post(
    "",
    status_code=status.HTTP_200_OK,
    summary="Сохранить своё расписание целиком",
    responses={
        200: {"description": "Расписание сохранено"},
        400: {"description": "Недопустимое состояние ячейки"},
        401: {"description": "Нет токена"},
        403: {"description": "Токен неверный или истёк"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def save_availability(
    body: AvailabilityPayload,
    storage: Storage = Depends(get_storage),
    log: Log = Depends(get_log),
    current_user: str = Depends(get_current_user),
):
    """
    Все прежние ячейки пользователя удаляются, сохраняются только
    `available` и `unavailable`; `unset` — это отсутствие записи.
    """
    try:
        await save_availability_service(current_user, body.availability, storage.availability, log)
    except AppError:
        raise
    except Exception as e:
        await log.log_error("availability", f"Ошибка при сохранении расписания: {e}", {"username": current_user})
        raise InternalError("Failed to save availability")
    return {"success": True, "message": "Availability saved successfully"}
