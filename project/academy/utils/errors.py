# academy/utils/errors.py

"""
Ошибки приложения.

Каждая ошибка несёт HTTP-статус и сообщение; обработчики в main.py
превращают их в JSON вида {"error": "..."} или {"errors": [...]}.
"""

from typing import Optional


class AppError(Exception):
    """Базовая ошибка приложения"""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message}


class ValidationError(AppError):
    """Некорректные входные данные (400), с деталями по полям"""

    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: list[dict] | None = None, message: Optional[str] = None):
        self.errors = errors or []
        super().__init__(message)

    def to_body(self) -> dict:
        return {"errors": self.errors or [{"field": None, "message": self.message}]}


class AuthError(AppError):
    """Нет токена / неверный токен / неверные учётные данные (401 или 403)"""

    status_code = 401
    message = "Unauthorized"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class NotSupportedError(AppError):
    """Операция не поддерживается активным хранилищем"""

    status_code = 405
    message = "Operation not supported"


class ConflictError(AppError):
    status_code = 409
    message = "Already exists"


class InternalError(AppError):
    status_code = 500
    message = "Internal server error"


class StorageError(Exception):
    """Сбой хранилища (чтение/запись файла, БД недоступна)"""
    pass
