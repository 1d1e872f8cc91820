import pytest
from conftest import make_settings, run_with_storage
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.models.availability import AvailabilitySlot as SlotModel
from academy.utils.errors import ValidationError

SCHEDULE = {
    "Monday": {"10:00": "available", "11:00": "unavailable", "12:00": "unset"},
    "Tuesday": {"10:00": "unset"},
    "Saturday": {"09:00": "available"},
}

EXPECTED = {
    "Monday": {"10:00": "available", "11:00": "unavailable"},
    "Saturday": {"09:00": "available"},
}


def test_save_then_read_returns_only_set_slots(client, auth_headers):
    res = client.post("/api/availability", json={"availability": SCHEDULE}, headers=auth_headers)
    assert res.status_code == 200, res.text
    assert res.json()["success"] is True

    res = client.get("/api/availability/mpandit", headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {"availability": EXPECTED}


def test_repeated_save_is_idempotent(client, auth_headers):
    for _ in range(3):
        client.post("/api/availability", json={"availability": SCHEDULE}, headers=auth_headers)
    res = client.get("/api/availability/mpandit", headers=auth_headers)
    assert res.json()["availability"] == EXPECTED


def test_save_replaces_whole_schedule(client, auth_headers):
    client.post("/api/availability", json={"availability": SCHEDULE}, headers=auth_headers)
    client.post(
        "/api/availability",
        json={"availability": {"Sunday": {"18:00": "unavailable"}}},
        headers=auth_headers,
    )
    res = client.get("/api/availability/mpandit", headers=auth_headers)
    assert res.json()["availability"] == {"Sunday": {"18:00": "unavailable"}}

    # всё unset — расписание пустое
    client.post("/api/availability", json={"availability": {"Sunday": {"18:00": "unset"}}}, headers=auth_headers)
    res = client.get("/api/availability/mpandit", headers=auth_headers)
    assert res.json()["availability"] == {}


def test_schedules_are_per_user(client, auth_headers):
    client.post("/api/availability", json={"availability": SCHEDULE}, headers=auth_headers)
    res = client.get("/api/availability/pburli", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["availability"] == {}


def test_invalid_state_is_rejected(client, auth_headers):
    res = client.post(
        "/api/availability",
        json={"availability": {"Monday": {"10:00": "maybe"}}},
        headers=auth_headers,
    )
    assert res.status_code == 400


def test_availability_requires_token(client):
    assert client.get("/api/availability/mpandit").status_code == 401
    assert client.post("/api/availability", json={"availability": {}}).status_code == 401


def test_failed_replace_keeps_previous_schedule(settings):
    async def scenario(storage, log):
        await storage.availability.replace("coach", SCHEDULE)
        with pytest.raises(ValidationError):
            await storage.availability.replace("coach", {"Monday": {"10:00": "available", "11:00": "maybe"}})
        return await storage.availability.get("coach")

    assert run_with_storage(settings, scenario) == EXPECTED


def test_insert_failure_after_delete_rolls_back(tmp_path, monkeypatch):
    settings = make_settings(tmp_path, "sql")
    add_all = AsyncSession.add_all

    def add_all_with_duplicate(self, instances):
        instances = list(instances)
        first = instances[0]
        # повтор (username, day, slot) — insert упадёт на уникальном индексе уже после DELETE
        duplicate = SlotModel(
            username=first.username,
            day_of_week=first.day_of_week,
            time_slot=first.time_slot,
            status=first.status,
            updated_at=first.updated_at,
        )
        add_all(self, instances + [duplicate])

    async def scenario(storage, log):
        await storage.availability.replace("coach", SCHEDULE)
        monkeypatch.setattr(AsyncSession, "add_all", add_all_with_duplicate)
        with pytest.raises(IntegrityError):
            await storage.availability.replace("coach", {"Sunday": {"18:00": "available"}})
        monkeypatch.undo()
        return await storage.availability.get("coach")

    assert run_with_storage(settings, scenario) == EXPECTED
