# academy/utils/database.py

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy import text

# ────────────── Base для моделей ──────────────
Base = declarative_base()  # базовый класс для всех моделей SQLAlchemy


class Database:
    """
    Движок и фабрика сессий на весь процесс.
    Создаётся один раз в lifespan: init() → ping() → ... → close().
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        # ────────────── Асинхронный движок ──────────────
        self.engine = create_async_engine(url, echo=echo)
        # ────────────── Асинхронная сессия ──────────────
        self.session_factory = sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def init(self):
        """Создаёт все таблицы в базе данных (если ещё не созданы)"""
        # модели регистрируются в Base.metadata при импорте
        from academy.models import user, lead, refresh_token, availability  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def close(self):
        await self.engine.dispose()
