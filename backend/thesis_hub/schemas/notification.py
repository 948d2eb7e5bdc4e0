"""Pydantic schemas for Notifications."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from thesis_hub.models.notification import NotificationType


class NotificationOut(BaseModel):
    notification_id: str
    user_id: str
    thesis_id: Optional[str] = None
    access_request_id: Optional[str] = None
    title: str
    message: str
    type: NotificationType
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountOut(BaseModel):
    unread: int


class BulkResultOut(BaseModel):
    affected: int
