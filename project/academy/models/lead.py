# academy/models/lead.py

from sqlalchemy import Column, String, Text, DateTime
from academy.utils.database import Base

class Lead(Base):
    __tablename__ = "leads"

    id = Column(String(64), primary_key=True)              # время + случайный суффикс
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    message = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    demo_date = Column(Text, nullable=True)
    demo_time = Column(Text, nullable=True)
    type = Column(String(50), nullable=True)                # demo_request / contact_form
    level = Column(String(50), nullable=True)
    status = Column(String(50), nullable=False, default="new", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    updated_by = Column(String(100), nullable=True)
