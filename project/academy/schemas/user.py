# academy/schemas/user.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

class User(BaseModel):
    """
    Учётная запись администратора, как её отдаёт хранилище.
    """
    username: str
    password_hash: str
    created_at: datetime

class UserCreate(BaseModel):
    """
    Схема для добавления администратора (POST /api/users).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=100)

class UserResponse(BaseModel):
    """
    Схема ответа API: без хэша пароля.
    """
    username: str
    createdAt: datetime
