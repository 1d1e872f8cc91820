# academy/storage/base.py

"""
Контракт хранилища: пользователи, refresh-токены, лиды, расписания.

Две реализации с одинаковым поведением:
- storage/sql.py   — SQLAlchemy (PostgreSQL / SQLite)
- storage/files.py — JSON-файлы, телефон и email лидов зашифрованы

Какая из них активна, решает STORAGE_BACKEND при старте (storage/factory.py).
"""

import secrets
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from academy.schemas.auth import StoredRefreshToken
from academy.schemas.availability import Schedule, SlotState
from academy.schemas.lead import Lead, LeadCreate, LeadStatus
from academy.schemas.user import User
from academy.utils.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite и JSON теряют часовой пояс: считаем такие даты UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_lead_id() -> str:
    """Миллисекунды + 8 hex-символов, чтобы одновременные заявки не совпали."""
    return f"{int(time.time() * 1000)}{secrets.token_hex(4)}"


def persisted_slots(schedule: Schedule) -> list[tuple[str, str, str]]:
    """Ячейки расписания, которые реально хранятся (всё, кроме unset)."""
    slots = []
    for day, times in (schedule or {}).items():
        for time_slot, state in (times or {}).items():
            try:
                state = SlotState(state)
            except ValueError:
                raise ValidationError([{
                    "field": f"availability.{day}.{time_slot}",
                    "message": "State must be one of: unset, available, unavailable",
                }])
            if state != SlotState.unset:
                slots.append((day, time_slot, state.value))
    return slots


def parse_status(status) -> LeadStatus:
    try:
        return LeadStatus(status)
    except ValueError:
        raise ValidationError([{
            "field": "status",
            "message": "Status must be one of: new, contacted, converted, rejected",
        }])


class UserStore(ABC):
    @abstractmethod
    async def find_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def create(self, username: str, password_hash: str) -> User:
        """Бросает ConflictError, если логин занят."""

    @abstractmethod
    async def list_all(self) -> list[User]: ...

    @abstractmethod
    async def count(self) -> int: ...


class RefreshTokenStore(ABC):
    # ограничение числа токенов на всё хранилище; None — без ограничения
    limit: Optional[int] = None

    @abstractmethod
    async def save(self, username: str, token: str, expires_at: datetime) -> StoredRefreshToken: ...

    @abstractmethod
    async def get(self, token: str) -> Optional[StoredRefreshToken]: ...

    @abstractmethod
    async def delete(self, token: str) -> None:
        """Отсутствующий токен — не ошибка."""

    @abstractmethod
    async def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """Удаляет токены с истёкшим expires_at, возвращает их число."""


class LeadStore(ABC):
    @abstractmethod
    async def create(self, fields: LeadCreate) -> Lead: ...

    @abstractmethod
    async def list_all(self) -> list[Lead]:
        """Все лиды, новые первыми."""

    @abstractmethod
    async def update_status(self, lead_id: str, status: LeadStatus, actor: str) -> Lead:
        """Бросает NotFoundError."""

    @abstractmethod
    async def delete(self, lead_id: str) -> None:
        """Бросает NotFoundError или NotSupportedError."""


class AvailabilityStore(ABC):
    @abstractmethod
    async def get(self, username: str) -> dict[str, dict[str, str]]: ...

    @abstractmethod
    async def replace(self, username: str, schedule: Schedule) -> None:
        """Атомарно заменяет всё расписание пользователя."""


class Storage:
    """Набор хранилищ одного бэкенда и его жизненный цикл."""

    backend = ""

    def __init__(self, users: UserStore, tokens: RefreshTokenStore, leads: LeadStore,
                 availability: AvailabilityStore):
        self.users = users
        self.tokens = tokens
        self.leads = leads
        self.availability = availability

    async def init(self) -> None:
        """Создаёт таблицы / файлы. Ошибка здесь прерывает запуск."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass
