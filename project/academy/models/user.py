# academy/models/user.py

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from academy.utils.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)  # автоинкремент
    username = Column(String(100), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
