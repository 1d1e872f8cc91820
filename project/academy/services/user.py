# academy/services/user.py

from academy.config import Settings
from academy.schemas.user import User, UserCreate
from academy.storage.base import UserStore
from academy.utils.log import Log
from academy.utils.security import hash_password, is_password_hash


async def seed_users(users: UserStore, settings: Settings, log: Log) -> int:
    """
    Первичное заполнение: только если пользователей ещё нет.
    Пароль из ADMIN_PASSWORDS может быть готовым bcrypt-хэшем — тогда он
    сохраняется как есть.
    """
    if await users.count() > 0:
        return 0

    seeded = 0
    for username, password in settings.admin_accounts:
        password_hash = password if is_password_hash(password) else hash_password(password, settings.BCRYPT_ROUNDS)
        await users.create(username, password_hash)
        seeded += 1

    await log.log_info("startup", f"Создано администраторов: {seeded}")
    return seeded


async def create_user_service(user: UserCreate, actor: str, users: UserStore, settings: Settings, log: Log) -> User:
    """
    Добавление администратора. ConflictError, если логин занят.
    """
    created = await users.create(user.name, hash_password(user.password, settings.BCRYPT_ROUNDS))
    await log.log_info("user", "Пользователь добавлен", {"username": created.username, "by": actor})
    return created
