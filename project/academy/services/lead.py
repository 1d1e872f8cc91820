# academy/services/lead.py

from typing import Optional

from academy.schemas.lead import Lead, LeadCreate, LeadStatus
from academy.storage.base import LeadStore
from academy.utils.log import Log

SANITIZE_LIMIT = 500


def sanitize(value: Optional[str]) -> Optional[str]:
    """Убирает угловые скобки, пробелы по краям и обрезает до 500 символов."""
    if not isinstance(value, str):
        return value
    return value.replace("<", "").replace(">", "").strip()[:SANITIZE_LIMIT]


async def create_lead_service(lead: LeadCreate, leads: LeadStore, log: Log) -> Lead:
    """
    Создание нового лида из публичной формы.
    """
    clean = lead.model_copy(update={
        "name": sanitize(lead.name),
        "phone": sanitize(lead.phone),
        "email": sanitize(lead.email),
        "message": sanitize(lead.message),
        "location": sanitize(lead.location),
    })
    db_lead = await leads.create(clean)
    await log.log_info("lead", "Лид создан", {"id": db_lead.id, "type": db_lead.type})
    return db_lead


async def read_leads_service(leads: LeadStore, log: Log) -> list[Lead]:
    """
    Получение списка лидов (новые первыми).
    """
    items = await leads.list_all()
    await log.log_info("lead", f"{len(items)} лидов загружено")
    return items


async def update_lead_status_service(lead_id: str, status: LeadStatus, actor: str, leads: LeadStore, log: Log) -> Lead:
    """
    Смена статуса лида.
    """
    db_lead = await leads.update_status(lead_id, status, actor)
    await log.log_info("lead", "Статус лида обновлён", {"id": lead_id, "status": db_lead.status, "by": actor})
    return db_lead


async def delete_lead_service(lead_id: str, actor: str, leads: LeadStore, log: Log) -> None:
    """
    Удаление лида (только файловое хранилище).
    """
    await leads.delete(lead_id)
    await log.log_info("lead", "Лид удалён", {"id": lead_id, "by": actor})
