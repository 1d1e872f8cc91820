import pytest
from conftest import login, make_settings
from fastapi.testclient import TestClient

from academy.main import create_app
from academy.middleware.rate_limit import RateLimitRule


@pytest.fixture
def limited_client(tmp_path):
    settings = make_settings(tmp_path, "file", RATE_LIMIT_ENABLED=True)
    with TestClient(create_app(settings)) as client:
        yield client


def test_lead_form_is_limited_per_minute(limited_client):
    for _ in range(10):
        res = limited_client.post("/api/leads", json={"name": "Jo", "phone": "9876543210"})
        assert res.status_code == 201

    res = limited_client.post("/api/leads", json={"name": "Jo", "phone": "9876543210"})
    assert res.status_code == 429
    assert "error" in res.json()


def test_only_failed_logins_count(limited_client):
    for _ in range(12):
        assert login(limited_client).status_code == 200

    for _ in range(10):
        assert login(limited_client, password="WrongPass#1").status_code == 401
    assert login(limited_client).status_code == 429


def test_rejected_request_keeps_security_headers(limited_client):
    for _ in range(10):
        limited_client.post("/api/leads", json={"name": "Jo", "phone": "9876543210"})
    res = limited_client.post("/api/leads", json={"name": "Jo", "phone": "9876543210"})
    assert res.status_code == 429
    assert res.headers["x-content-type-options"] == "nosniff"


def test_lapsed_clients_are_evicted():
    rule = RateLimitRule("/api/", limit=5, window=60, message="slow down")
    rule.register("10.0.0.1", now=1000.0)
    rule.register("10.0.0.2", now=1030.0)
    assert set(rule.hits) == {"10.0.0.1", "10.0.0.2"}

    # окно первого истекло: при следующем обращении запись удаляется
    rule.register("10.0.0.3", now=1070.0)
    assert set(rule.hits) == {"10.0.0.2", "10.0.0.3"}
    assert not rule.exceeded("10.0.0.1", now=1070.0)
