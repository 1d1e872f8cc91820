# academy/schemas/auth.py

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=100)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

class RefreshRequest(BaseModel):
    refreshToken: Optional[str] = None

class LogoutRequest(BaseModel):
    refreshToken: Optional[str] = None

class TokenPair(BaseModel):
    accessToken: str
    refreshToken: str

class StoredRefreshToken(BaseModel):
    """Запись о refresh-токене в хранилище"""
    token: str
    username: str
    created_at: datetime
    expires_at: datetime
