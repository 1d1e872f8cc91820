import asyncio
import os
import tempfile

# лог модульного app = create_app() не должен попадать в рабочую папку
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="academy-log-"))

import pytest
from fastapi.testclient import TestClient

from academy.config import Settings
from academy.main import create_app
from academy.storage.factory import build_storage
from academy.utils.log import Log

ADMIN = ("mpandit", "MithiChArch@123")


def make_settings(tmp_path, backend: str, **overrides) -> Settings:
    values = dict(
        STORAGE_BACKEND=backend,
        DATA_DIR=str(tmp_path / "data"),
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'academy.db'}",
        LOG_DIR=str(tmp_path / "log"),
        LOG_PRINT="0",
        BCRYPT_ROUNDS=4,
        RATE_LIMIT_ENABLED=False,
        JWT_ACCESS_SECRET="test-access-secret-0123456789abcdef",
        JWT_REFRESH_SECRET="test-refresh-secret-0123456789abcdef",
        ENCRYPTION_SECRET="test-encryption-secret",
    )
    values.update(overrides)
    return Settings(**values)


def run_with_storage(settings: Settings, scenario):
    """Запускает async-сценарий scenario(storage, log) на свежем хранилище."""

    async def main():
        log = Log(settings.LOG_DIR, "0")
        storage = build_storage(settings, log)
        await storage.init()
        try:
            return await scenario(storage, log)
        finally:
            await storage.close()
            await log.shutdown()

    return asyncio.run(main())


def login(client: TestClient, username: str = ADMIN[0], password: str = ADMIN[1]):
    return client.post("/api/auth/login", json={"username": username, "password": password})


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(params=["file", "sql"])
def backend(request):
    return request.param


@pytest.fixture
def settings(tmp_path, backend):
    return make_settings(tmp_path, backend)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def tokens(client):
    res = login(client)
    assert res.status_code == 200, res.text
    return res.json()


@pytest.fixture
def auth_headers(tokens):
    return bearer(tokens["accessToken"])
