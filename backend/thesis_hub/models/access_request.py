"""AccessRequest ORM model.

Status moves one way only:

    pending  -> approved | rejected | cancelled
    approved -> removed | expired

Only services.access_request_service writes status, approved_at and removed_at.
"""
import uuid
import enum
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship
from thesis_hub.database import Base


class AccessRequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    removed = "removed"
    expired = "expired"
    cancelled = "cancelled"


TERMINAL_STATUSES = frozenset({
    AccessRequestStatus.rejected,
    AccessRequestStatus.removed,
    AccessRequestStatus.expired,
    AccessRequestStatus.cancelled,
})


class AccessRequest(Base):
    __tablename__ = "access_requests"

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    requester_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    thesis_id = Column(String(36), ForeignKey("theses.thesis_id"), nullable=False, index=True)
    status = Column(SAEnum(AccessRequestStatus), nullable=False, default=AccessRequestStatus.pending, index=True)
    purpose = Column(Text, nullable=True)
    duration_days = Column(Integer, nullable=True)  # requester's choice, not used for expiry
    requested_at = Column(DateTime(timezone=True), nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    removed_at = Column(DateTime(timezone=True), nullable=True)
    expiry_warned_at = Column(DateTime(timezone=True), nullable=True)

    requester = relationship("User", lazy="joined")
    thesis = relationship("Thesis", lazy="joined")
