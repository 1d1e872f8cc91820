# academy/utils/security.py

"""
Модуль для хэширования паролей и работы с JWT.
Пароли: passlib + bcrypt (cost 10 по умолчанию).
Токены: PyJWT, HS256, отдельные секреты для access и refresh.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jwt import encode, decode, ExpiredSignatureError, InvalidTokenError
from passlib.context import CryptContext

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"

# Контекст хэширования; стоимость можно переопределить при вызове
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Хэширует пароль.

    :param password: строка пароля пользователя
    :param rounds: стоимость bcrypt (по умолчанию из контекста)
    :return: хэшированный пароль в виде строки
    """
    context = pwd_context.copy(bcrypt__rounds=rounds) if rounds else pwd_context
    return context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Проверяет совпадение пароля с его хэшем.
    Неразборчивый хэш считается несовпадением.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def is_password_hash(value: str) -> bool:
    """True, если строка уже является bcrypt-хэшем ($2a$/$2b$/$2y$)."""
    return pwd_context.identify(value) is not None


def create_token(username: str, token_type: str, secret: str, expires_delta: timedelta) -> str:
    """
    Создаёт подписанный JWT.
    Вход: логин, тип ("access" / "refresh"), секрет и время жизни
    Выход: JWT строка
    """
    now = datetime.now(timezone.utc)
    payload = {
        "username": username,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": uuid.uuid4().hex,
    }
    return encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, token_type: str, secret: str) -> dict:
    """
    Проверяет подпись, срок действия и тип токена.
    Бросает ExpiredSignatureError / InvalidTokenError.
    """
    payload = decode(token, secret, algorithms=[ALGORITHM])
    if payload.get("type") != token_type or not payload.get("username"):
        raise InvalidTokenError("unexpected token type")
    return payload


__all__ = [
    "ACCESS",
    "REFRESH",
    "ExpiredSignatureError",
    "InvalidTokenError",
    "create_token",
    "decode_token",
    "hash_password",
    "is_password_hash",
    "verify_password",
]
