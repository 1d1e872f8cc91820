# academy/routes/lead.py

from fastapi import APIRouter, Depends, status

from academy.routes.auth import get_current_user, get_log, get_storage
from academy.schemas.lead import LeadCreate, LeadStatusUpdate
from academy.services.lead import (
    create_lead_service,
    delete_lead_service,
    read_leads_service,
    update_lead_status_service,
)
from academy.storage.base import Storage
from academy.utils.errors import AppError, InternalError
from academy.utils.log import Log

router = APIRouter()

# ────────────── CREATE (публичная форма) ──────────────
@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Создать лид (форма на сайте)",
    response_description="Лид сохранён",
    responses={
        201: {"description": "Лид успешно создан"},
        400: {"description": "Неверные данные формы"},
        429: {"description": "Слишком много заявок"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def create_lead(
    lead: LeadCreate,
    storage: Storage = Depends(get_storage),
    log: Log = Depends(get_log),
):
    try:
        db_lead = await create_lead_service(lead, storage.leads, log)
    except AppError:
        raise
    except Exception as e:
        await log.log_error("lead", f"Ошибка при создании лида: {str(e)}")
        raise InternalError()
    return {"success": True, "message": "Lead saved successfully", "id": db_lead.id}

# ────────────── READ ALL ──────────────
@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="Получить список лидов",
    response_description="Все лиды, новые первыми",
    responses={
        200: {"description": "Список лидов успешно получен"},
        401: {"description": "Нет токена"},
        403: {"description": "Токен неверный или истёк"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def read_leads(
    storage: Storage = Depends(get_storage),
    log: Log = Depends(get_log),
    _: str = Depends(get_current_user),
):
    try:
        leads = await read_leads_service(storage.leads, log)
    except AppError:
        raise
    except Exception as e:
        await log.log_error("lead", f"Ошибка при получении списка лидов: {str(e)}")
        raise InternalError()
    return {"leads": [lead.model_dump(by_alias=True, mode="json") for lead in leads]}

# ────────────── UPDATE STATUS ──────────────
@router.patch(
    "/{id}",
    status_code=status.HTTP_200_OK,
    summary="Сменить статус лида",
    responses={
        200: {"description": "Статус обновлён"},
        400: {"description": "Недопустимый статус"},
        401: {"description": "Нет токена"},
        403: {"description": "Токен неверный или истёк"},
        404: {"description": "Лид не найден"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def update_lead(
    id: str,
    body: LeadStatusUpdate,
    storage: Storage = Depends(get_storage),
    log: Log = Depends(get_log),
    current_user: str = Depends(get_current_user),
):
    try:
        lead = await update_lead_status_service(id, body.status, current_user, storage.leads, log)
    except AppError as e:
        await log.log_warning("lead", f"Статус не обновлён: {e.message}", {"id": id})
        raise
    except Exception as e:
        await log.log_error("lead", f"Ошибка при обновлении лида: {str(e)}", {"id": id})
        raise InternalError()
    return {
        "success": True,
        "message": "Lead updated successfully",
        "lead": lead.model_dump(by_alias=True, mode="json"),
    }

# ────────────── DELETE ──────────────
@router.delete(
    "/{id}",
    status_code=status.HTTP_200_OK,
    summary="Удалить лид",
    responses={
        200: {"description": "Лид удалён"},
        401: {"description": "Нет токена"},
        403: {"description": "Токен неверный или истёк"},
        404: {"description": "Лид не найден"},
        405: {"description": "Реляционное хранилище не удаляет лиды"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def delete_lead(
    id: str,
    storage: Storage = Depends(get_storage),
    log: Log = Depends(get_log),
    current_user: str = Depends(get_current_user),
):
    try:
        await delete_lead_service(id, current_user, storage.leads, log)
    except AppError as e:
        await log.log_warning("lead", f"Лид не удалён: {e.message}", {"id": id})
        raise
    except Exception as e:
        await log.log_error("lead", f"Ошибка при удалении лида: {str(e)}", {"id": id})
        raise InternalError()
    return {"success": True, "message": "Lead deleted successfully"}
