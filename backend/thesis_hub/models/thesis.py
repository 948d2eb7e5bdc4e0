"""Thesis ORM model. Access requests reference it but never write it."""
import uuid
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from thesis_hub.database import Base


class Thesis(Base):
    __tablename__ = "theses"

    thesis_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(500), nullable=False)
    author = Column(String(255), nullable=False)
    college_department = Column(String(150), nullable=True)
    batch = Column(String(20), nullable=True)
    abstract = Column(Text, nullable=True)
    file_url = Column(String(1000), nullable=True)
    qr_code_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
