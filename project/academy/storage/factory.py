# academy/storage/factory.py

from academy.config import Settings
from academy.storage.base import Storage
from academy.utils.log import Log


def build_storage(settings: Settings, log: Log) -> Storage:
    """Создаёт хранилище, выбранное в STORAGE_BACKEND. Вызывается один раз при старте."""
    if settings.STORAGE_BACKEND == "sql":
        from academy.storage.sql import SqlStorage
        from academy.utils.database import Database

        return SqlStorage(Database(settings.DATABASE_URL), log)

    from academy.storage.files import FileStorage
    from academy.utils.crypto import FieldCipher

    return FileStorage(
        settings.DATA_DIR,
        FieldCipher(settings.encryption_secret),
        log,
        token_limit=settings.REFRESH_TOKEN_LIMIT,
    )
