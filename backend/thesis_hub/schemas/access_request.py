"""Pydantic schemas for AccessRequests."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from thesis_hub.models.access_request import AccessRequestStatus
from thesis_hub.services.access_request_service import ExpiryBadge


class AccessRequestCreate(BaseModel):
    requester_id: str
    thesis_id: str
    purpose: Optional[str] = None
    duration_days: int = Field(7, gt=0, le=365)  # 3/7/14/30 in the UI; display only


class AccessRequestOut(BaseModel):
    request_id: str
    requester_id: str
    thesis_id: str
    status: AccessRequestStatus
    purpose: Optional[str] = None
    duration_days: Optional[int] = None
    requested_at: datetime
    approved_at: Optional[datetime] = None
    removed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CurrentAccessOut(AccessRequestOut):
    """An approved request annotated for the admin view."""
    requester_name: Optional[str] = None
    thesis_title: Optional[str] = None
    days_remaining: int
    expiry_badge: ExpiryBadge
    expiry_label: str


class RequestStatsOut(BaseModel):
    pending: int
    approved: int
    expiring_soon: int
    requested_this_month: int


class SweepReportOut(BaseModel):
    ran_at: datetime
    expired: list[str]
    expiring_soon: list[str]


class AdminOverviewOut(BaseModel):
    sweep: SweepReportOut
    stats: RequestStatsOut
    pending: list[AccessRequestOut]
    current: list[CurrentAccessOut]
    history: list[AccessRequestOut]
