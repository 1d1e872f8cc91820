# academy/routes/user.py

from fastapi import APIRouter, Depends, Request, status

from academy.routes.auth import get_current_user, get_log, get_storage
from academy.schemas.user import UserCreate, UserResponse
from academy.services.user import create_user_service
from academy.storage.base import Storage
from academy.utils.errors import AppError, InternalError
from academy.utils.log import Log

router = APIRouter()

# ────────────── GET USERS ──────────────
@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="Список администраторов (без хэшей паролей)",
    responses={
        200: {"description": "Список пользователей"},
        401: {"description": "Нет токена"},
        403: {"description": "Токен неверный или истёк"},
        500: {"description": "Внутренняя ошибка сервера"}
    }
)
async def get_users(
    storage: Storage = Depends(get_storage),
    log: Log = Depends(get_log),
    _: str = Depends(get_current_user),
):
    try:
        users = await storage.users.list_all()
    except Exception as e:
        await log.log_error("user", f"Ошибка при получении пользователей: {e}")
        raise InternalError("Failed to fetch users")
    return {
        "users": [
            UserResponse(username=u.username, createdAt=u.created_at).model_dump(mode="json")
            for u in users
        ]
    }

# ────────────── CREATE USER ──────────────
@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Добавить администратора",
    responses={
        201: {"description": "Пользователь добавлен"},
        400: {"description": "Ошибка валидации (логин 3–100, пароль 8–100 символов)"},
        401: {"description": "Нет токена"},
        403: {"description": "Токен неверный или истёк"},
        409: {"description": "Пользователь с таким логином уже существует"},
        500: {"description": "Внутренняя ошибка сервера"},
    }
)
async def create_user(
    user: UserCreate,
    request: Request,
    storage: Storage = Depends(get_storage),
    log: Log = Depends(get_log),
    current_user: str = Depends(get_current_user),
):
    """
    Пароль всегда хэшируется (bcrypt) перед сохранением.
    Изменение и удаление пользователей не предусмотрены.
    """
    try:
        await create_user_service(user, current_user, storage.users, request.app.state.settings, log)
    except AppError as e:
        await log.log_warning("user", f"Пользователь не добавлен: {e.message}", {"name": user.name})
        raise
    except Exception as e:
        await log.log_error("user", f"Ошибка при добавлении пользователя: {e}")
        raise InternalError("Failed to add user")
    return {"success": True, "message": "User added successfully"}
