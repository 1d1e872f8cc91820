# academy/services/auth.py

"""
Сервис токенов.

Жизненный цикл сессии:
    нет сессии → login (access + refresh) → refresh (новый access, тот же refresh)
               → logout (refresh удалён) | истечение срока

Access-токен проверяется только криптографически (подпись + exp).
Refresh-токен должен быть И валидным JWT, И присутствовать в хранилище
с непросроченным expires_at: только так logout реально отзывает сессию.
"""

from datetime import timedelta
from typing import Optional

from academy.config import Settings
from academy.schemas.auth import TokenPair
from academy.storage.base import RefreshTokenStore, UserStore, utcnow
from academy.utils.errors import AuthError
from academy.utils.log import Log
from academy.utils.security import (
    ACCESS,
    REFRESH,
    ExpiredSignatureError,
    InvalidTokenError,
    create_token,
    decode_token,
    verify_password,
)


class TokenService:
    def __init__(self, users: UserStore, tokens: RefreshTokenStore, settings: Settings, log: Log):
        self.users = users
        self.tokens = tokens
        self.settings = settings
        self.log = log
        self.access_ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    @property
    def expires_in(self) -> str:
        return f"{self.settings.ACCESS_TOKEN_EXPIRE_MINUTES}m"

    def issue_access_token(self, username: str) -> str:
        return create_token(username, ACCESS, self.settings.JWT_ACCESS_SECRET, self.access_ttl)

    def issue_refresh_token(self, username: str) -> str:
        return create_token(username, REFRESH, self.settings.JWT_REFRESH_SECRET, self.refresh_ttl)

    # ────────────── LOGIN ──────────────
    async def login(self, username: str, password: str) -> TokenPair:
        user = await self.users.find_by_username(username)
        if not user or not verify_password(password, user.password_hash):
            await self.log.log_warning("auth", "Неудачная попытка входа", {"username": username})
            raise AuthError("Invalid credentials", status_code=401)

        access_token = self.issue_access_token(username)
        refresh_token = self.issue_refresh_token(username)
        await self.tokens.save(username, refresh_token, utcnow() + self.refresh_ttl)

        # чистим просроченные токены при каждом входе
        await self.cleanup_expired()

        await self.log.log_info("auth", "Пользователь успешно авторизован", {"username": username})
        return TokenPair(accessToken=access_token, refreshToken=refresh_token)

    # ────────────── REFRESH ──────────────
    async def refresh(self, refresh_token: Optional[str]) -> str:
        if not refresh_token:
            raise AuthError("Refresh token required", status_code=401)

        stored = await self.tokens.get(refresh_token)
        if stored is None:
            await self.log.log_warning("auth", "Refresh-токен не найден в хранилище")
            raise AuthError("Invalid refresh token", status_code=403)

        if stored.expires_at <= utcnow():
            await self.tokens.delete(refresh_token)
            await self.log.log_warning("auth", "Refresh-токен истёк", {"username": stored.username})
            raise AuthError("Invalid or expired refresh token", status_code=403)

        try:
            payload = decode_token(refresh_token, REFRESH, self.settings.JWT_REFRESH_SECRET)
        except (ExpiredSignatureError, InvalidTokenError):
            await self.log.log_warning("auth", "Неверный refresh-токен", {"username": stored.username})
            raise AuthError("Invalid or expired refresh token", status_code=403)

        return self.issue_access_token(payload["username"])

    # ────────────── LOGOUT ──────────────
    async def logout(self, refresh_token: Optional[str], actor: Optional[str] = None) -> None:
        if refresh_token:
            await self.tokens.delete(refresh_token)
        await self.log.log_info("auth", "Выход из системы", {"username": actor})

    async def cleanup_expired(self) -> int:
        removed = await self.tokens.cleanup_expired(utcnow())
        if removed:
            await self.log.log_info("auth", "Удалены просроченные refresh-токены", {"count": removed})
        return removed

    # ────────────── ACCESS ──────────────
    def verify_access(self, token: Optional[str]) -> str:
        """Возвращает логин из access-токена; без обращения к хранилищу."""
        if not token:
            raise AuthError("Access token required", status_code=401)
        try:
            payload = decode_token(token, ACCESS, self.settings.JWT_ACCESS_SECRET)
        except (ExpiredSignatureError, InvalidTokenError):
            raise AuthError("Invalid or expired token", status_code=403)
        return payload["username"]
