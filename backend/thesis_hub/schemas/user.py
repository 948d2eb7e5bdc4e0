"""Pydantic schemas for Users."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from thesis_hub.models.user import UserRole


class UserCreate(BaseModel):
    full_name: str
    email: str
    role: UserRole = UserRole.student
    student_id: Optional[str] = None
    college: Optional[str] = None


class UserOut(BaseModel):
    user_id: str
    full_name: str
    email: str
    role: UserRole
    student_id: Optional[str] = None
    college: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
