# academy/storage/sql.py

"""
Реляционное хранилище (SQLAlchemy async).

Сессия открывается на каждую операцию из общей фабрики Database.
Лиды не удаляются физически: жизненный цикл только через status.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from academy.models.availability import AvailabilitySlot as SlotModel
from academy.models.lead import Lead as LeadModel
from academy.models.refresh_token import RefreshToken as RefreshTokenModel
from academy.models.user import User as UserModel
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
from academy.utils.database import Database
from academy.utils.errors import ConflictError, NotFoundError, NotSupportedError
from academy.utils.log import Log


def _user(row: UserModel) -> User:
    return User(username=row.username, password_hash=row.password_hash, created_at=as_utc(row.created_at))


def _token(row: RefreshTokenModel) -> StoredRefreshToken:
    return StoredRefreshToken(
        token=row.token,
        username=row.username,
        created_at=as_utc(row.created_at),
        expires_at=as_utc(row.expires_at),
    )


def _lead(row: LeadModel) -> Lead:
    return Lead(
        id=row.id,
        name=row.name,
        phone=row.phone,
        email=row.email,
        message=row.message,
        location=row.location,
        demo_date=row.demo_date,
        demo_time=row.demo_time,
        type=row.type,
        level=row.level,
        status=row.status,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at) if row.updated_at else None,
        updated_by=row.updated_by,
    )


class SqlUserStore(UserStore):
    def __init__(self, db: Database):
        self.db = db

    async def find_by_username(self, username: str) -> Optional[User]:
        async with self.db.session() as session:
            result = await session.execute(select(UserModel).where(UserModel.username == username))
            row = result.scalar_one_or_none()
            return _user(row) if row else None

    async def create(self, username: str, password_hash: str) -> User:
        async with self.db.session() as session:
            exists = await session.execute(select(UserModel.id).where(UserModel.username == username))
            if exists.scalar_one_or_none() is not None:
                raise ConflictError("User already exists")

            row = UserModel(username=username, password_hash=password_hash, created_at=utcnow())
            session.add(row)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise ConflictError("User already exists")
            return _user(row)

    async def list_all(self) -> list[User]:
        async with self.db.session() as session:
            result = await session.execute(select(UserModel).order_by(UserModel.username))
            return [_user(row) for row in result.scalars().all()]

    async def count(self) -> int:
        async with self.db.session() as session:
            result = await session.execute(select(func.count(UserModel.id)))
            return result.scalar_one()


class SqlRefreshTokenStore(RefreshTokenStore):
    def __init__(self, db: Database):
        self.db = db

    async def save(self, username: str, token: str, expires_at: datetime) -> StoredRefreshToken:
        async with self.db.session() as session:
            row = RefreshTokenModel(username=username, token=token, created_at=utcnow(), expires_at=expires_at)
            session.add(row)
            await session.commit()
            return _token(row)

    async def get(self, token: str) -> Optional[StoredRefreshToken]:
        async with self.db.session() as session:
            result = await session.execute(select(RefreshTokenModel).where(RefreshTokenModel.token == token))
            row = result.scalars().first()
            return _token(row) if row else None

    async def delete(self, token: str) -> None:
        async with self.db.session() as session:
            await session.execute(delete(RefreshTokenModel).where(RefreshTokenModel.token == token))
            await session.commit()

    async def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        async with self.db.session() as session:
            result = await session.execute(
                delete(RefreshTokenModel).where(RefreshTokenModel.expires_at < (now or utcnow()))
            )
            await session.commit()
            return result.rowcount or 0


class SqlLeadStore(LeadStore):
    def __init__(self, db: Database):
        self.db = db

    async def create(self, fields: LeadCreate) -> Lead:
        async with self.db.session() as session:
            row = LeadModel(
                id=new_lead_id(),
                status=LeadStatus.new.value,
                created_at=utcnow(),
                **fields.model_dump(),
            )
            session.add(row)
            await session.commit()
            return _lead(row)

    async def list_all(self) -> list[Lead]:
        async with self.db.session() as session:
            result = await session.execute(
                select(LeadModel).order_by(LeadModel.created_at.desc(), LeadModel.id.desc())
            )
            return [_lead(row) for row in result.scalars().all()]

    async def update_status(self, lead_id: str, status: LeadStatus, actor: str) -> Lead:
        async with self.db.session() as session:
            result = await session.execute(select(LeadModel).where(LeadModel.id == lead_id))
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Lead not found")

            row.status = parse_status(status).value
            row.updated_at = utcnow()
            row.updated_by = actor
            await session.commit()
            return _lead(row)

    async def delete(self, lead_id: str) -> None:
        raise NotSupportedError("Leads are never deleted in the relational store; change the status instead")


class SqlAvailabilityStore(AvailabilityStore):
    def __init__(self, db: Database):
        self.db = db

    async def get(self, username: str) -> dict[str, dict[str, str]]:
        async with self.db.session() as session:
            result = await session.execute(select(SlotModel).where(SlotModel.username == username))
            availability: dict[str, dict[str, str]] = {}
            for row in result.scalars().all():
                availability.setdefault(row.day_of_week, {})[row.time_slot] = row.status
            return availability

    async def replace(self, username: str, schedule: Schedule) -> None:
        slots = persisted_slots(schedule)
        async with self.db.session() as session:
            # delete + insert в одной транзакции; при ошибке — rollback
            async with session.begin():
                await session.execute(delete(SlotModel).where(SlotModel.username == username))
                session.add_all([
                    SlotModel(username=username, day_of_week=day, time_slot=time_slot, status=state, updated_at=utcnow())
                    for day, time_slot, state in slots
                ])


class SqlStorage(Storage):
    backend = "sql"

    def __init__(self, db: Database, log: Log):
        self.db = db
        self.log = log
        super().__init__(
            users=SqlUserStore(db),
            tokens=SqlRefreshTokenStore(db),
            leads=SqlLeadStore(db),
            availability=SqlAvailabilityStore(db),
        )

    async def init(self) -> None:
        await self.db.init()
        await self.ping()
        await self.log.log_info("storage", "База данных инициализирована", {"backend": self.backend})

    async def ping(self) -> bool:
        return await self.db.ping()

    async def close(self) -> None:
        await self.db.close()
        await self.log.log_info("storage", "Соединения с базой закрыты")
