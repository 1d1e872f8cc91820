# academy/config.py

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # хранилище: "sql" (SQLAlchemy) или "file" (JSON-файлы с шифрованием)
    STORAGE_BACKEND: Literal["sql", "file"] = "file"
    DATABASE_URL: str = "sqlite+aiosqlite:///./academy.db"
    DATA_DIR: str = "data"

    JWT_ACCESS_SECRET: str = "default_secret_change_in_production"
    JWT_REFRESH_SECRET: str = "default_refresh_secret_change_in_production"
    ENCRYPTION_SECRET: str = ""     # пусто → берём JWT_ACCESS_SECRET
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_TOKEN_LIMIT: int = 10   # только для file-хранилища
    BCRYPT_ROUNDS: int = 10

    # первичные администраторы (через запятую, по позициям)
    ADMIN_USERS: str = "mpandit,pburli,amadkar,nchanav,ppatil"
    ADMIN_PASSWORDS: str = (
        "MithiChArch@123,PranavChArch@123,AtharvaChArch@123,"
        "NameetChArch@123,PruthvirajChArch@123"
    )

    CORS_ORIGIN: str = "http://localhost:5173"
    RATE_LIMIT_ENABLED: bool = True

    HOST: str = "127.0.0.1"
    PORT: int = 3001

    LOG_DIR: str = "log"
    LOG_PRINT: str = "0"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @property
    def encryption_secret(self) -> str:
        return self.ENCRYPTION_SECRET or self.JWT_ACCESS_SECRET

    @property
    def admin_accounts(self) -> list[tuple[str, str]]:
        """Пары (логин, пароль или bcrypt-хэш) из ADMIN_USERS / ADMIN_PASSWORDS."""
        users = [u.strip() for u in self.ADMIN_USERS.split(",") if u.strip()]
        passwords = [p.strip() for p in self.ADMIN_PASSWORDS.split(",") if p.strip()]
        return list(zip(users, passwords))

settings = Settings()
