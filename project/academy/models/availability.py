# academy/models/availability.py

from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from academy.utils.database import Base

class AvailabilitySlot(Base):
    __tablename__ = "availability"
    __table_args__ = (
        UniqueConstraint("username", "day_of_week", "time_slot", name="uq_availability_slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False, index=True)
    day_of_week = Column(String(20), nullable=False)
    time_slot = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False)             # available / unavailable
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
