import asyncio
import json
from pathlib import Path

import pytest
from conftest import make_settings, run_with_storage
from fastapi.testclient import TestClient

from academy.main import create_app
from academy.schemas.lead import LeadCreate
from academy.utils.crypto import FieldCipher


@pytest.fixture
def file_settings(tmp_path):
    return make_settings(tmp_path, "file")


def leads_file(settings) -> Path:
    return Path(settings.DATA_DIR) / "leads.json"


@pytest.mark.parametrize("value", ["9876543210", "+919876543210", "coach@example.com", "ünïcødé ♞"])
def test_cipher_round_trip(value):
    cipher = FieldCipher("server-secret")
    encrypted = cipher.encrypt(value)
    assert encrypted != value
    assert cipher.decrypt(encrypted) == value


def test_cipher_passes_empty_values_through():
    cipher = FieldCipher("server-secret")
    assert cipher.encrypt(None) is None
    assert cipher.encrypt("") is None
    assert cipher.decrypt(None) is None


def test_cipher_with_other_key_fails():
    encrypted = FieldCipher("server-secret").encrypt("9876543210")
    with pytest.raises(ValueError):
        FieldCipher("another-secret").decrypt(encrypted)


def test_phone_and_email_are_encrypted_on_disk(file_settings):
    async def scenario(storage, log):
        lead = await storage.leads.create(
            LeadCreate(name="Jo", phone="9876543210", email="jo@example.com")
        )
        listed = await storage.leads.list_all()
        return lead, listed

    lead, listed = run_with_storage(file_settings, scenario)
    assert listed[0].phone == "9876543210"
    assert listed[0].email == "jo@example.com"

    raw = leads_file(file_settings).read_text(encoding="utf-8")
    assert "9876543210" not in raw
    assert "jo@example.com" not in raw
    record = json.loads(raw)["leads"][0]
    assert record["id"] == lead.id
    assert "phone" not in record and "email" not in record
    assert record["phone_encrypted"] and record["email_encrypted"]


def test_broken_record_does_not_break_listing(file_settings):
    async def create_two(storage, log):
        await storage.leads.create(LeadCreate(name="Good", phone="9876543210"))
        await storage.leads.create(LeadCreate(name="Broken", phone="9123456789"))

    run_with_storage(file_settings, create_two)

    path = leads_file(file_settings)
    data = json.loads(path.read_text(encoding="utf-8"))
    broken = next(r for r in data["leads"] if r["name"] == "Broken")
    broken["phone_encrypted"] = "garbled-ciphertext"
    path.write_text(json.dumps(data), encoding="utf-8")

    async def list_all(storage, log):
        return await storage.leads.list_all()

    leads = {lead.name: lead for lead in run_with_storage(file_settings, list_all)}
    assert leads["Good"].phone == "9876543210"
    assert leads["Broken"].phone == "garbled-ciphertext"


def test_only_the_broken_field_falls_back(file_settings):
    async def create(storage, log):
        await storage.leads.create(LeadCreate(name="Jo", phone="9876543210", email="jo@example.com"))

    run_with_storage(file_settings, create)

    path = leads_file(file_settings)
    data = json.loads(path.read_text(encoding="utf-8"))
    data["leads"][0]["email_encrypted"] = "garbled-ciphertext"
    path.write_text(json.dumps(data), encoding="utf-8")

    async def list_all(storage, log):
        return await storage.leads.list_all()

    lead = run_with_storage(file_settings, list_all)[0]
    assert lead.phone == "9876543210"
    assert lead.email == "garbled-ciphertext"


def test_concurrent_writes_keep_document_readable(file_settings):
    async def scenario(storage, log):
        for _ in range(10):
            await asyncio.gather(
                storage.leads.create(LeadCreate(name="Long", phone="9876543210", message="x" * 1000)),
                storage.leads.create(LeadCreate(name="Short", phone="9123456789")),
                storage.leads.create(LeadCreate(name="Third", phone="9000000000")),
            )
        return await storage.leads.list_all()

    leads = run_with_storage(file_settings, scenario)
    # параллельные записи: последняя побеждает, но документ целый
    assert leads

    data_dir = Path(file_settings.DATA_DIR)
    data = json.loads((data_dir / "leads.json").read_text(encoding="utf-8"))
    assert len(data["leads"]) == len(leads)
    assert not list(data_dir.glob("*.tmp"))


def test_changed_secret_passes_raw_values(tmp_path):
    async def create(storage, log):
        await storage.leads.create(LeadCreate(name="Jo", phone="9876543210"))

    run_with_storage(make_settings(tmp_path, "file"), create)

    async def list_all(storage, log):
        return await storage.leads.list_all()

    leads = run_with_storage(make_settings(tmp_path, "file", ENCRYPTION_SECRET="rotated"), list_all)
    assert len(leads) == 1
    assert leads[0].phone != "9876543210"


def test_init_creates_all_documents(file_settings):
    async def noop(storage, log):
        return None

    run_with_storage(file_settings, noop)
    data_dir = Path(file_settings.DATA_DIR)
    assert json.loads((data_dir / "users.json").read_text()) == {"users": []}
    assert json.loads((data_dir / "refresh_tokens.json").read_text()) == {"tokens": []}
    assert json.loads((data_dir / "leads.json").read_text()) == {"leads": []}
    assert json.loads((data_dir / "availability.json").read_text()) == {"schedules": {}}


def test_seeded_users_are_stored_as_bcrypt_hashes(file_settings):
    with TestClient(create_app(file_settings)):
        pass

    users = json.loads((Path(file_settings.DATA_DIR) / "users.json").read_text())["users"]
    assert [u["username"] for u in users] == ["mpandit", "pburli", "amadkar", "nchanav", "ppatil"]
    assert all(u["passwordHash"].startswith("$2") for u in users)
    assert "MithiChArch@123" not in json.dumps(users)


def test_corrupt_document_aborts_startup(file_settings):
    data_dir = Path(file_settings.DATA_DIR)
    data_dir.mkdir(parents=True)
    (data_dir / "users.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(Exception):
        with TestClient(create_app(file_settings)):
            pass
