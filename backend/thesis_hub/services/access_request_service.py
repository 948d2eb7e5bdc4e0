"""Access request lifecycle engine.

Responsibilities:
- Submission of new requests (validated against users and theses)
- Admin transitions: approve, reject, remove
- Requester withdrawal of a pending request
- Automatic expiration sweep and the admin "expiring soon" warning sweep
- Days-remaining arithmetic and badge classification for display

Every transition is a single conditional UPDATE guarded on the current status,
so concurrent callers racing on the same request produce exactly one winner.
The loser gets InvalidTransition.  Nothing is cached between calls.
"""
import enum
import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytz
from sqlalchemy import update
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from thesis_hub.config import settings
from thesis_hub.errors import (
    InvalidTransition,
    NotRequestOwner,
    RequesterNotFound,
    RequestNotFound,
    StoreUnavailable,
    ThesisNotFound,
)
from thesis_hub.models.access_request import AccessRequest, AccessRequestStatus, TERMINAL_STATUSES
from thesis_hub.models.notification import NotificationType
from thesis_hub.models.thesis import Thesis
from thesis_hub.models.user import User
from thesis_hub.services import notification_service

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class ExpiryBadge(str, enum.Enum):
    expired = "expired"
    expiring_soon = "expiring_soon"
    days_left_amber = "days_left_amber"
    days_left_green = "days_left_green"


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------
def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    """Normalise to aware UTC. Naive values (SQLite round-trips) are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _format_local(dt: datetime) -> str:
    tz = pytz.timezone(settings.DISPLAY_TIMEZONE)
    return _as_utc(dt).astimezone(tz).strftime("%B %d, %Y %I:%M %p")


def _local_month_start(now: datetime) -> datetime:
    """First instant of the current calendar month in the display timezone, as UTC."""
    tz = pytz.timezone(settings.DISPLAY_TIMEZONE)
    local = now.astimezone(tz)
    return tz.localize(datetime(local.year, local.month, 1)).astimezone(timezone.utc)


def expires_at(request: AccessRequest, expiration_window_days: int) -> datetime:
    if request.approved_at is None:
        raise ValueError(f"Access request {request.request_id} has never been approved")
    return _as_utc(request.approved_at) + timedelta(days=expiration_window_days)


def days_remaining(request: AccessRequest, expiration_window_days: int, now: Optional[datetime] = None) -> int:
    """Whole days left before automatic expiry, rounded up. 0 or less means expired."""
    now = _as_utc(now) if now else _utcnow()
    delta = expires_at(request, expiration_window_days) - now
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def classify_days_remaining(days: int) -> ExpiryBadge:
    if days <= 0:
        return ExpiryBadge.expired
    if days <= 3:
        return ExpiryBadge.expiring_soon
    if days <= 7:
        return ExpiryBadge.days_left_amber
    return ExpiryBadge.days_left_green


def badge_label(days: int) -> str:
    badge = classify_days_remaining(days)
    if badge == ExpiryBadge.expired:
        return "Expired"
    if badge == ExpiryBadge.expiring_soon:
        return f"Expiring in {days} day{'s' if days != 1 else ''}"
    return f"{days} days left"


# ---------------------------------------------------------------------------
# Store access
# ---------------------------------------------------------------------------
@contextmanager
def _store(db: Session):
    """Translate connectivity failures into StoreUnavailable. No retries here."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        db.rollback()
        logger.error("Record store unavailable: %s", exc)
        raise StoreUnavailable() from exc


def _try_transition(
    db: Session,
    request_id: str,
    expected: AccessRequestStatus,
    target: AccessRequestStatus,
    extra_where: tuple = (),
    **values: Any,
) -> bool:
    """Atomic compare-and-set on status. True if this call made the change."""
    with _store(db):
        result = db.execute(
            update(AccessRequest)
            .where(AccessRequest.request_id == request_id, AccessRequest.status == expected, *extra_where)
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    return result.rowcount == 1


def _transition(
    db: Session,
    request_id: str,
    expected: AccessRequestStatus,
    target: AccessRequestStatus,
    action: str,
    **values: Any,
) -> AccessRequest:
    if not _try_transition(db, request_id, expected, target, **values):
        with _store(db):
            current = db.query(AccessRequest.status).filter(AccessRequest.request_id == request_id).scalar()
        if current is None:
            raise RequestNotFound(request_id)
        raise InvalidTransition(request_id, AccessRequestStatus(current).value, action)

    with _store(db):
        req = db.get(AccessRequest, request_id, populate_existing=True)
    logger.info("Access request %s: %s -> %s", request_id, expected.value, target.value)
    return req


def _thesis_title(req: AccessRequest) -> str:
    return req.thesis.title if req.thesis else "the requested thesis"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_request(db: Session, request_id: str) -> AccessRequest:
    with _store(db):
        req = db.query(AccessRequest).filter(AccessRequest.request_id == request_id).first()
    if not req:
        raise RequestNotFound(request_id)
    return req


def list_requests(
    db: Session,
    status: Optional[AccessRequestStatus] = None,
    requester_id: Optional[str] = None,
) -> list[AccessRequest]:
    """All matching requests, newest first."""
    with _store(db):
        query = db.query(AccessRequest)
        if status:
            query = query.filter(AccessRequest.status == status)
        if requester_id:
            query = query.filter(AccessRequest.requester_id == requester_id)
        return query.order_by(AccessRequest.requested_at.desc()).all()


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
def submit_request(
    db: Session,
    requester_id: str,
    thesis_id: str,
    purpose: Optional[str],
    duration_days: Optional[int],
    now: Optional[datetime] = None,
) -> AccessRequest:
    """Create a pending request. Admins find it by listing; nobody is notified."""
    now = _as_utc(now) if now else _utcnow()
    with _store(db):
        if not db.query(User).filter(User.user_id == requester_id).first():
            raise RequesterNotFound(requester_id)
        if not db.query(Thesis).filter(Thesis.thesis_id == thesis_id).first():
            raise ThesisNotFound(thesis_id)

        req = AccessRequest(
            requester_id=requester_id,
            thesis_id=thesis_id,
            purpose=purpose,
            duration_days=duration_days,
            status=AccessRequestStatus.pending,
            requested_at=now,
        )
        db.add(req)
        db.commit()
        db.refresh(req)
    logger.info("Access request %s submitted by %s for thesis %s", req.request_id, requester_id, thesis_id)
    return req


def approve(
    db: Session,
    request_id: str,
    now: Optional[datetime] = None,
    expiration_window_days: Optional[int] = None,
) -> AccessRequest:
    now = _as_utc(now) if now else _utcnow()
    window = expiration_window_days if expiration_window_days is not None else settings.EXPIRATION_DAYS
    req = _transition(
        db, request_id, AccessRequestStatus.pending, AccessRequestStatus.approved, "approve",
        approved_at=now,
    )
    notification_service.emit(
        db,
        req.requester_id,
        "Access Request Approved",
        f'Your request to access "{_thesis_title(req)}" has been approved. '
        f"Access is available until {_format_local(now + timedelta(days=window))}.",
        NotificationType.success,
        thesis_id=req.thesis_id,
        access_request_id=req.request_id,
        now=now,
    )
    return req


def reject(db: Session, request_id: str, now: Optional[datetime] = None) -> AccessRequest:
    now = _as_utc(now) if now else _utcnow()
    req = _transition(db, request_id, AccessRequestStatus.pending, AccessRequestStatus.rejected, "reject")
    notification_service.emit(
        db,
        req.requester_id,
        "Access Request Rejected",
        f'Your request to access "{_thesis_title(req)}" has been rejected.',
        NotificationType.error,
        thesis_id=req.thesis_id,
        access_request_id=req.request_id,
        now=now,
    )
    return req


def admin_remove(db: Session, request_id: str, now: Optional[datetime] = None) -> AccessRequest:
    """Manually revoke approved access. Ends in `removed`, never `expired`."""
    now = _as_utc(now) if now else _utcnow()
    req = _transition(
        db, request_id, AccessRequestStatus.approved, AccessRequestStatus.removed, "remove",
        removed_at=now,
    )
    notification_service.emit(
        db,
        req.requester_id,
        "Access Removed",
        f'Your access to "{_thesis_title(req)}" was removed by an administrator.',
        NotificationType.warning,
        thesis_id=req.thesis_id,
        access_request_id=req.request_id,
        now=now,
    )
    return req


def cancel(db: Session, request_id: str, requester_id: str, now: Optional[datetime] = None) -> AccessRequest:
    """Requester withdraws their own pending request."""
    req = get_request(db, request_id)
    if req.requester_id != requester_id:
        raise NotRequestOwner(request_id)
    return _transition(db, request_id, AccessRequestStatus.pending, AccessRequestStatus.cancelled, "cancel")


# ---------------------------------------------------------------------------
# Sweeps
# ---------------------------------------------------------------------------
def sweep_expirations(db: Session, expiration_window_days: int, now: Optional[datetime] = None) -> list[str]:
    """Expire every approved request older than the window. Returns expired ids.

    Safe to run repeatedly and concurrently: a row only counts (and only
    notifies) when this call's conditional update moved it out of `approved`.
    """
    now = _as_utc(now) if now else _utcnow()
    cutoff = now - timedelta(days=expiration_window_days)
    with _store(db):
        candidates = (
            db.query(AccessRequest.request_id, AccessRequest.requester_id, AccessRequest.thesis_id, Thesis.title)
            .join(Thesis, Thesis.thesis_id == AccessRequest.thesis_id)
            .filter(AccessRequest.status == AccessRequestStatus.approved, AccessRequest.approved_at <= cutoff)
            .order_by(AccessRequest.approved_at)
            .all()
        )

    expired = []
    for request_id, requester_id, thesis_id, title in candidates:
        if not _try_transition(
            db, request_id, AccessRequestStatus.approved, AccessRequestStatus.expired, removed_at=now
        ):
            continue
        expired.append(request_id)
        notification_service.emit(
            db,
            requester_id,
            "Access Expired",
            f'Your access to "{title}" expired after {expiration_window_days} days.',
            NotificationType.warning,
            thesis_id=thesis_id,
            access_request_id=request_id,
            now=now,
        )

    if expired:
        logger.info("Expiration sweep expired %d access request(s)", len(expired))
    return expired


def sweep_expiring_soon(
    db: Session,
    warn_window_days: int,
    expiration_window_days: int,
    now: Optional[datetime] = None,
    dedupe: bool = False,
) -> list[str]:
    """Warn every admin about approved requests that expire within the warn window.

    Without ``dedupe`` the same request is reported again on every sweep.
    With it, each request is reported once and stamped with expiry_warned_at;
    a request no admin could be told about keeps no stamp.
    """
    now = _as_utc(now) if now else _utcnow()
    # now < approved_at + window <= now + warn
    oldest = now - timedelta(days=expiration_window_days)
    newest = oldest + timedelta(days=warn_window_days)
    with _store(db):
        query = (
            db.query(AccessRequest)
            .filter(
                AccessRequest.status == AccessRequestStatus.approved,
                AccessRequest.approved_at > oldest,
                AccessRequest.approved_at <= newest,
            )
        )
        if dedupe:
            query = query.filter(AccessRequest.expiry_warned_at.is_(None))
        candidates = [
            (r.request_id, r.thesis_id, _thesis_title(r), r.requester.full_name if r.requester else r.requester_id,
             days_remaining(r, expiration_window_days, now))
            for r in query.order_by(AccessRequest.approved_at).all()
        ]

    warned = []
    for request_id, thesis_id, title, requester_name, days in candidates:
        if dedupe and not _try_transition(
            db, request_id, AccessRequestStatus.approved, AccessRequestStatus.approved,
            extra_where=(AccessRequest.expiry_warned_at.is_(None),),
            expiry_warned_at=now,
        ):
            continue
        sent = notification_service.emit_to_admins(
            db,
            "Access Expiring Soon",
            f'{requester_name}\'s access to "{title}" expires in {days} day{"s" if days != 1 else ""}.',
            NotificationType.warning,
            thesis_id=thesis_id,
            access_request_id=request_id,
            now=now,
        )
        if dedupe and not sent:
            # nobody was told; release the stamp so the next sweep retries
            _try_transition(
                db, request_id, AccessRequestStatus.approved, AccessRequestStatus.approved,
                extra_where=(AccessRequest.expiry_warned_at == now,),
                expiry_warned_at=None,
            )
            continue
        warned.append(request_id)

    if warned:
        logger.info("Expiring-soon sweep warned admins about %d access request(s)", len(warned))
    return warned


# ---------------------------------------------------------------------------
# Admin dashboard
# ---------------------------------------------------------------------------
@dataclass
class RequestStats:
    pending: int
    approved: int
    expiring_soon: int
    requested_this_month: int


def request_stats(
    db: Session,
    expiration_window_days: int,
    warn_window_days: int,
    now: Optional[datetime] = None,
) -> RequestStats:
    now = _as_utc(now) if now else _utcnow()
    month_start = _local_month_start(now)
    oldest = now - timedelta(days=expiration_window_days)
    with _store(db):
        base = db.query(AccessRequest)
        return RequestStats(
            pending=base.filter(AccessRequest.status == AccessRequestStatus.pending).count(),
            approved=base.filter(AccessRequest.status == AccessRequestStatus.approved).count(),
            expiring_soon=base.filter(
                AccessRequest.status == AccessRequestStatus.approved,
                AccessRequest.approved_at > oldest,
                AccessRequest.approved_at <= oldest + timedelta(days=warn_window_days),
            ).count(),
            requested_this_month=base.filter(AccessRequest.requested_at >= month_start).count(),
        )


def is_terminal(req: AccessRequest) -> bool:
    return req.status in TERMINAL_STATUSES
