# academy/main.py

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
from dotenv import load_dotenv
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from academy.config import Settings, settings as default_settings
from academy.utils.log import Log
from academy.utils.errors import AppError
from academy.storage.factory import build_storage
from academy.services.auth import TokenService
from academy.services.user import seed_users
from academy.middleware.rate_limit import RateLimitMiddleware
from academy.middleware.security_headers import SecurityHeadersMiddleware

import os
import multiprocessing

# --- загрузка переменных окружения ---
load_dotenv()


# ────────────── Lifespan ──────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    boot_log: Log = app.state.boot_log
    boot_log.log_info_sync(target="startup", message="lifespan: startup начат",
                           data={"backend": settings.STORAGE_BACKEND})

    app.state.log = Log(settings.LOG_DIR, settings.LOG_PRINT)
    await app.state.log.log_info(target="startup", message="Async Log инициализирован")

    # Хранилище: ошибка здесь (БД недоступна, битый файл) прерывает запуск
    storage = build_storage(settings, app.state.log)
    try:
        await storage.init()
        await seed_users(storage.users, settings, app.state.log)
    except Exception as e:
        boot_log.log_error_sync(target="startup", message=f"Хранилище недоступно: {e}", is_console=True)
        await storage.close()
        await app.state.log.shutdown()
        raise

    app.state.storage = storage
    app.state.tokens = TokenService(storage.users, storage.tokens, settings, app.state.log)
    boot_log.log_info_sync(target="startup", message="Хранилище готово", data={"backend": storage.backend})

    yield

    # shutdown
    await app.state.log.log_info(target="shutdown", message="Остановка приложения")
    await storage.close()
    await app.state.log.shutdown()
    boot_log.log_info_sync(target="shutdown", message="Log корректно завершён")


# ────────────── Обработчики ошибок ──────────────
def register_error_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or None,
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)},
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log = getattr(request.app.state, "log", None)
        if log:
            await log.log_error("server", f"Необработанная ошибка: {exc}", {"path": request.url.path})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ────────────── Создаём FastAPI приложение ──────────────
def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(title="Chess Academy Leads API", lifespan=lifespan)
    app.state.settings = settings

    # --- sync логгер для раннего старта ---
    app.state.boot_log = Log(settings.LOG_DIR, settings.LOG_PRINT)
    if os.environ.get("RUN_MAIN") == "true" or multiprocessing.current_process().name == "MainProcess":
        app.state.boot_log.log_info_sync(target="startup", message="Приложение создано")

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Ограничение частоты запросов
    app.add_middleware(RateLimitMiddleware, enabled=settings.RATE_LIMIT_ENABLED)

    # Защитные заголовки (внешний слой: попадают и в ответы 429)
    app.add_middleware(SecurityHeadersMiddleware)

    register_error_handlers(app)

    @app.get("/api/health", tags=["health"])
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    # ────────────── Подключение роутов ──────────────
    from academy.routes import auth, lead, user, availability

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(lead.router, prefix="/api/leads", tags=["leads"])
    app.include_router(user.router, prefix="/api/users", tags=["users"])
    app.include_router(availability.router, prefix="/api/availability", tags=["availability"])

    return app


app = create_app()

# ────────────── Запуск uvicorn ──────────────
if __name__ == "__main__":
    app.state.boot_log.log_info_sync(target="startup", message="Запуск uvicorn.run")
    uvicorn.run(
        "academy.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level="info",
        reload=True
    )
