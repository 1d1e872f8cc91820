# academy/services/availability.py

from academy.schemas.availability import Schedule
from academy.storage.base import AvailabilityStore
from academy.utils.log import Log


async def read_availability_service(username: str, store: AvailabilityStore, log: Log) -> dict:
    availability = await store.get(username)
    await log.log_info("availability", "Расписание загружено", {"username": username})
    return availability


async def save_availability_service(username: str, schedule: Schedule, store: AvailabilityStore, log: Log) -> None:
    """Полная замена недельного расписания пользователя (unset не сохраняется)."""
    await store.replace(username, schedule)
    slots = sum(1 for times in schedule.values() for state in times.values() if state != "unset")
    await log.log_info("availability", "Расписание сохранено", {"username": username, "slots": slots})
