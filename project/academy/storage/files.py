# academy/storage/files.py

"""
Файловое хранилище: по одному JSON-документу на таблицу в DATA_DIR.

    users.json           {"users": [...]}
    refresh_tokens.json  {"tokens": [...]}
    leads.json           {"leads": [...]}   телефон и email зашифрованы
    availability.json    {"schedules": {username: {day: {time: state}}}}

Каждая запись идёт через временный файл и os.replace, поэтому файл
никогда не остаётся записанным наполовину. Блокировок между запросами
и процессами нет: параллельные записи в один документ — последняя побеждает.
"""

import copy
import json
import os
import uuid
from datetime import datetime
from typing import Any, Callable, Optional

import aiofiles
import aiofiles.os

from academy.schemas.auth import StoredRefreshToken
from academy.schemas.availability import Schedule
from academy.schemas.lead import Lead, LeadCreate, LeadStatus
from academy.schemas.user import User
from academy.storage.base import (
    AvailabilityStore,
    LeadStore,
    RefreshTokenStore,
    Storage,
    UserStore,
    as_utc,
    new_lead_id,
    parse_status,
    persisted_slots,
    utcnow,
)
from academy.utils.crypto import FieldCipher
from academy.utils.errors import ConflictError, NotFoundError, StorageError
from academy.utils.log import Log


class JsonDocument:
    """Один JSON-файл с содержимым по умолчанию."""

    def __init__(self, path: str, default: Callable[[], dict]):
        self.path = path
        self.default = default

    async def exists(self) -> bool:
        return await aiofiles.os.path.exists(self.path)

    async def ensure(self) -> bool:
        """Создаёт файл с содержимым по умолчанию; True, если файл создан."""
        if await self.exists():
            return False
        await self.write(self.default())
        return True

    async def read(self) -> dict:
        if not await self.exists():
            return self.default()
        try:
            async with aiofiles.open(self.path, mode="r", encoding="utf-8") as f:
                return json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Не удалось прочитать {self.path}: {e}") from e

    async def write(self, data: dict) -> None:
        # свой временный файл на каждую запись: параллельные записи не смешиваются
        tmp_path = f"{self.path}.{uuid.uuid4().hex}.tmp"
        try:
            async with aiofiles.open(tmp_path, mode="w", encoding="utf-8") as f:
                await f.write(json.dumps(data, indent=2, ensure_ascii=False))
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise StorageError(f"Не удалось сохранить {self.path}: {e}") from e


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class FileUserStore(UserStore):
    def __init__(self, doc: JsonDocument):
        self.doc = doc

    @staticmethod
    def _user(record: dict) -> User:
        return User(
            username=record["username"],
            password_hash=record["passwordHash"],
            created_at=as_utc(datetime.fromisoformat(record["createdAt"])),
        )

    async def find_by_username(self, username: str) -> Optional[User]:
        data = await self.doc.read()
        record = next((u for u in data["users"] if u["username"] == username), None)
        return self._user(record) if record else None

    async def create(self, username: str, password_hash: str) -> User:
        data = await self.doc.read()
        if any(u["username"] == username for u in data["users"]):
            raise ConflictError("User already exists")

        record = {"username": username, "passwordHash": password_hash, "createdAt": _iso(utcnow())}
        data["users"].append(record)
        await self.doc.write(data)
        return self._user(record)

    async def list_all(self) -> list[User]:
        data = await self.doc.read()
        return sorted((self._user(u) for u in data["users"]), key=lambda u: u.username)

    async def count(self) -> int:
        data = await self.doc.read()
        return len(data["users"])


class FileRefreshTokenStore(RefreshTokenStore):
    def __init__(self, doc: JsonDocument, limit: Optional[int] = 10):
        self.doc = doc
        self.limit = limit

    @staticmethod
    def _token(record: dict) -> StoredRefreshToken:
        return StoredRefreshToken(
            token=record["token"],
            username=record["username"],
            created_at=as_utc(datetime.fromisoformat(record["createdAt"])),
            expires_at=as_utc(datetime.fromisoformat(record["expiresAt"])),
        )

    async def save(self, username: str, token: str, expires_at: datetime) -> StoredRefreshToken:
        data = await self.doc.read()
        record = {
            "token": token,
            "username": username,
            "createdAt": _iso(utcnow()),
            "expiresAt": _iso(expires_at),
        }
        data["tokens"].append(record)

        # храним только последние N токенов на всё хранилище (не на пользователя)
        if self.limit and len(data["tokens"]) > self.limit:
            data["tokens"] = data["tokens"][-self.limit:]

        await self.doc.write(data)
        return self._token(record)

    async def get(self, token: str) -> Optional[StoredRefreshToken]:
        data = await self.doc.read()
        record = next((t for t in data["tokens"] if t["token"] == token), None)
        return self._token(record) if record else None

    async def delete(self, token: str) -> None:
        data = await self.doc.read()
        remaining = [t for t in data["tokens"] if t["token"] != token]
        if len(remaining) != len(data["tokens"]):
            data["tokens"] = remaining
            await self.doc.write(data)

    async def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        data = await self.doc.read()
        remaining = [t for t in data["tokens"] if self._token(t).expires_at >= now]
        removed = len(data["tokens"]) - len(remaining)
        if removed:
            data["tokens"] = remaining
            await self.doc.write(data)
        return removed


class FileLeadStore(LeadStore):
    def __init__(self, doc: JsonDocument, cipher: FieldCipher, log: Log):
        self.doc = doc
        self.cipher = cipher
        self.log = log

    def _encrypt(self, lead: Lead) -> dict[str, Any]:
        """Запись для диска: вместо phone/email — зашифрованные поля."""
        record = lead.model_dump(by_alias=True, mode="json", exclude={"phone", "email"})
        record["phone_encrypted"] = self.cipher.encrypt(lead.phone)
        record["email_encrypted"] = self.cipher.encrypt(lead.email)
        return record

    async def _decrypt(self, record: dict[str, Any]) -> Lead:
        """
        Расшифровывает одну запись. Поле, которое не удалось расшифровать
        (сменился ключ, данные испорчены), возвращается как есть, ошибка в лог.
        """
        record = copy.deepcopy(record)
        for field in ("phone", "email"):
            raw = record.pop(f"{field}_encrypted", None)
            if not raw:
                continue
            try:
                record[field] = self.cipher.decrypt(raw)
            except ValueError:
                await self.log.log_error("storage", "Ошибка расшифровки лида", {"id": record.get("id"), "field": field})
                record[field] = raw
        return Lead.model_validate(record)

    async def create(self, fields: LeadCreate) -> Lead:
        lead = Lead(
            id=new_lead_id(),
            status=LeadStatus.new,
            created_at=utcnow(),
            **fields.model_dump(),
        )
        data = await self.doc.read()
        data["leads"].append(self._encrypt(lead))
        await self.doc.write(data)
        return lead

    async def list_all(self) -> list[Lead]:
        data = await self.doc.read()
        leads = [await self._decrypt(record) for record in data["leads"]]
        leads.sort(key=lambda lead: (lead.created_at, lead.id), reverse=True)
        return leads

    async def update_status(self, lead_id: str, status: LeadStatus, actor: str) -> Lead:
        data = await self.doc.read()
        record = next((lead for lead in data["leads"] if lead.get("id") == lead_id), None)
        if record is None:
            raise NotFoundError("Lead not found")

        record["status"] = parse_status(status).value
        record["updatedAt"] = _iso(utcnow())
        record["updatedBy"] = actor
        await self.doc.write(data)
        return await self._decrypt(record)

    async def delete(self, lead_id: str) -> None:
        data = await self.doc.read()
        remaining = [lead for lead in data["leads"] if lead.get("id") != lead_id]
        if len(remaining) == len(data["leads"]):
            raise NotFoundError("Lead not found")
        data["leads"] = remaining
        await self.doc.write(data)


class FileAvailabilityStore(AvailabilityStore):
    def __init__(self, doc: JsonDocument):
        self.doc = doc

    async def get(self, username: str) -> dict[str, dict[str, str]]:
        data = await self.doc.read()
        return data["schedules"].get(username, {})

    async def replace(self, username: str, schedule: Schedule) -> None:
        availability: dict[str, dict[str, str]] = {}
        for day, time_slot, state in persisted_slots(schedule):
            availability.setdefault(day, {})[time_slot] = state

        data = await self.doc.read()
        if availability:
            data["schedules"][username] = availability
        else:
            data["schedules"].pop(username, None)
        # один os.replace: либо старое расписание целиком, либо новое
        await self.doc.write(data)


class FileStorage(Storage):
    backend = "file"

    def __init__(self, data_dir: str, cipher: FieldCipher, log: Log, token_limit: Optional[int] = 10):
        self.data_dir = data_dir
        self.log = log
        self.documents = {
            "users": JsonDocument(os.path.join(data_dir, "users.json"), lambda: {"users": []}),
            "tokens": JsonDocument(os.path.join(data_dir, "refresh_tokens.json"), lambda: {"tokens": []}),
            "leads": JsonDocument(os.path.join(data_dir, "leads.json"), lambda: {"leads": []}),
            "availability": JsonDocument(os.path.join(data_dir, "availability.json"), lambda: {"schedules": {}}),
        }
        super().__init__(
            users=FileUserStore(self.documents["users"]),
            tokens=FileRefreshTokenStore(self.documents["tokens"], limit=token_limit),
            leads=FileLeadStore(self.documents["leads"], cipher, log),
            availability=FileAvailabilityStore(self.documents["availability"]),
        )

    async def init(self) -> None:
        await aiofiles.os.makedirs(self.data_dir, exist_ok=True)
        for name, doc in self.documents.items():
            if await doc.ensure():
                await self.log.log_info("storage", "Создан файл данных", {"file": doc.path})
            else:
                # битый файл должен остановить запуск, а не всплыть позже
                await doc.read()
        await self.log.log_info("storage", "Файловое хранилище готово", {"data_dir": self.data_dir})

    async def ping(self) -> bool:
        return await aiofiles.os.path.isdir(self.data_dir)
