# academy/routes/auth.py

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordBearer
from typing import Optional

from academy.schemas.auth import LoginRequest, LogoutRequest, RefreshRequest
from academy.services.auth import TokenService
from academy.storage.base import Storage
from academy.utils.errors import AppError, InternalError
from academy.utils.log import Log

router = APIRouter()

# Authorization: Bearer <accessToken>; отсутствие заголовка обрабатываем сами (401)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ────────────── Зависимости ──────────────
def get_log(request: Request) -> Log:
    return request.app.state.log

def get_storage(request: Request) -> Storage:
    return request.app.state.storage

def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> str:
    """
    Проверяет access-токен и возвращает логин пользователя.

    **Статусы:**
    - 401 Unauthorized – токен не передан
    - 403 Forbidden – токен неверный или истёк
    """
    tokens: TokenService = request.app.state.tokens
    try:
        return tokens.verify_access(token)
    except AppError as e:
        await request.app.state.log.log_warning("auth", e.message, {"path": request.url.path})
        raise


# ────────────── LOGIN ──────────────
@router.post(
    "/login",
    summary="Вход администратора: access + refresh токены",
    responses={
        200: {
            "description": "Токены выданы",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "accessToken": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "refreshToken": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "expiresIn": "15m"
                    }
                }
            }
        },
        400: {"description": "Ошибка валидации (длина логина или пароля)"},
        401: {"description": "Неверный логин или пароль"},
        500: {"description": "Внутренняя ошибка сервера"}
    }
)
async def login(
    body: LoginRequest,
    tokens: TokenService = Depends(get_token_service),
    log: Log = Depends(get_log),
):
    """
    Проверяет логин и пароль (bcrypt) и выдаёт пару токенов.

    - `accessToken` — 15 минут, для заголовка `Authorization: Bearer ...`
    - `refreshToken` — 7 дней, хранится на сервере, отзывается через `/logout`
    """
    try:
        pair = await tokens.login(body.username, body.password)
    except AppError:
        raise
    except Exception as e:
        await log.log_error("auth", f"Ошибка при входе: {e}", {"username": body.username})
        raise InternalError()

    return {
        "success": True,
        "accessToken": pair.accessToken,
        "refreshToken": pair.refreshToken,
        "expiresIn": tokens.expires_in,
    }


# ────────────── REFRESH ──────────────
@router.post(
    "/refresh",
    summary="Новый access-токен по refresh-токену",
    responses={
        200: {"description": "Выдан новый access-токен"},
        401: {"description": "Refresh-токен не передан"},
        403: {"description": "Refresh-токен отозван, истёк или неверен"},
        500: {"description": "Внутренняя ошибка сервера"}
    }
)
async def refresh(
    body: RefreshRequest,
    tokens: TokenService = Depends(get_token_service),
    log: Log = Depends(get_log),
):
    try:
        access_token = await tokens.refresh(body.refreshToken)
    except AppError:
        raise
    except Exception as e:
        await log.log_error("auth", f"Ошибка обновления токена: {e}")
        raise InternalError()

    return {"success": True, "accessToken": access_token, "expiresIn": tokens.expires_in}


# ────────────── LOGOUT ──────────────
@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Выход: отзыв refresh-токена",
    responses={
        200: {"description": "Выход выполнен (повторный вызов тоже успешен)"},
        401: {"description": "Нет access-токена"},
        403: {"description": "Access-токен неверный или истёк"},
    }
)
async def logout(
    body: Optional[LogoutRequest] = None,
    current_user: str = Depends(get_current_user),
    tokens: TokenService = Depends(get_token_service),
    log: Log = Depends(get_log),
):
    try:
        await tokens.logout(body.refreshToken if body else None, actor=current_user)
    except AppError:
        raise
    except Exception as e:
        await log.log_error("auth", f"Ошибка при выходе: {e}", {"username": current_user})
        raise InternalError()

    return {"success": True, "message": "Logged out successfully"}
