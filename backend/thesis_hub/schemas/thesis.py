"""Pydantic schemas for Theses."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ThesisCreate(BaseModel):
    title: str
    author: str
    college_department: Optional[str] = None
    batch: Optional[str] = None
    abstract: Optional[str] = None
    file_url: Optional[str] = None
    qr_code_url: Optional[str] = None


class ThesisOut(ThesisCreate):
    thesis_id: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
