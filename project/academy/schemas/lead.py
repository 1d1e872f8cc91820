# academy/schemas/lead.py

import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

PHONE_RE = re.compile(r"^[+]?[0-9]{10,15}$")


class LeadStatus(str, Enum):
    new = "new"
    contacted = "contacted"
    converted = "converted"
    rejected = "rejected"


class LeadType(str, Enum):
    demo_request = "demo_request"
    contact_form = "contact_form"


class LeadLevel(str, Enum):
    beginner = "Beginner"
    intermediate = "Intermediate"
    advanced = "Advanced"
    individual = "Individual"


# ────────────── Базовая схема (camelCase в JSON) ──────────────
class LeadBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    location: Optional[str] = None
    demo_date: Optional[str] = None
    demo_time: Optional[str] = None
    type: Optional[LeadType] = None
    level: Optional[LeadLevel] = None


# ────────────── Схема для CREATE (публичная форма) ──────────────
class LeadCreate(LeadBase):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )

    name: str = Field(..., min_length=2, max_length=100)
    phone: str
    email: Optional[EmailStr] = None
    message: Optional[str] = Field(None, max_length=1000)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        if not PHONE_RE.match(value):
            raise ValueError("Phone must be 10-15 digits, optionally starting with +")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, value):
        if isinstance(value, str):
            value = value.strip()
        return value or None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else None

    @field_validator("message", "location", "demo_date", "demo_time")
    @classmethod
    def empty_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


# ────────────── Схема записи (то, что отдаёт хранилище) ──────────────
class Lead(LeadBase):
    id: str
    status: LeadStatus = LeadStatus.new
    created_at: datetime
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


class LeadStatusUpdate(BaseModel):
    status: LeadStatus
