"""Access request API routes: a thin layer over access_request_service.

Lifecycle errors (not found, invalid transition, store down) are raised by the
service as typed HTTPExceptions and rendered by the handler in main.py.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from thesis_hub.config import settings
from thesis_hub.database import get_db
from thesis_hub.deps import Actor, get_actor, require_admin
from thesis_hub.models.access_request import AccessRequest, AccessRequestStatus
from thesis_hub.schemas.access_request import (
    AccessRequestCreate,
    AccessRequestOut,
    AdminOverviewOut,
    CurrentAccessOut,
    RequestStatsOut,
    SweepReportOut,
)
from thesis_hub.services import access_request_service as service
from thesis_hub.services.scheduler import run_sweeps

logger = logging.getLogger(__name__)
router = APIRouter()


def _current_access(req: AccessRequest, now) -> CurrentAccessOut:
    days = service.days_remaining(req, settings.EXPIRATION_DAYS, now)
    return CurrentAccessOut(
        **AccessRequestOut.model_validate(req).model_dump(),
        requester_name=req.requester.full_name if req.requester else None,
        thesis_title=req.thesis.title if req.thesis else None,
        days_remaining=days,
        expiry_badge=service.classify_days_remaining(days),
        expiry_label=service.badge_label(days),
    )


@router.post("/", response_model=AccessRequestOut, status_code=status.HTTP_201_CREATED)
def submit_request(payload: AccessRequestCreate, db: Session = Depends(get_db)):
    """Submit a request to view a thesis. It starts out pending."""
    return service.submit_request(
        db,
        requester_id=payload.requester_id,
        thesis_id=payload.thesis_id,
        purpose=payload.purpose,
        duration_days=payload.duration_days,
    )


@router.get("/", response_model=list[AccessRequestOut])
def list_requests(
    status_filter: Optional[AccessRequestStatus] = Query(None, alias="status"),
    requester_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List requests, optionally filtered by status or requester."""
    return service.list_requests(db, status=status_filter, requester_id=requester_id)


@router.get("/admin", response_model=AdminOverviewOut)
def admin_overview(_admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    """Admin access-management view. Runs the expiration sweeps before listing."""
    report = run_sweeps(db, settings)
    now = report.ran_at
    requests = service.list_requests(db)
    stats = service.request_stats(db, settings.EXPIRATION_DAYS, settings.EXPIRY_WARNING_DAYS, now)
    return AdminOverviewOut(
        sweep=SweepReportOut(ran_at=now, expired=report.expired, expiring_soon=report.expiring_soon),
        stats=RequestStatsOut(**vars(stats)),
        pending=[AccessRequestOut.model_validate(r) for r in requests if r.status == AccessRequestStatus.pending],
        current=[_current_access(r, now) for r in requests if r.status == AccessRequestStatus.approved],
        history=[AccessRequestOut.model_validate(r) for r in requests if service.is_terminal(r)],
    )


@router.post("/sweep", response_model=SweepReportOut)
def sweep(_admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    """Run both sweeps now."""
    report = run_sweeps(db, settings)
    return SweepReportOut(ran_at=report.ran_at, expired=report.expired, expiring_soon=report.expiring_soon)


@router.get("/{request_id}", response_model=AccessRequestOut)
def get_request(request_id: str, db: Session = Depends(get_db)):
    return service.get_request(db, request_id)


@router.post("/{request_id}/approve", response_model=AccessRequestOut)
def approve_request(request_id: str, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    logger.info("Admin %s approving access request %s", admin.user_id, request_id)
    return service.approve(db, request_id)


@router.post("/{request_id}/reject", response_model=AccessRequestOut)
def reject_request(request_id: str, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    logger.info("Admin %s rejecting access request %s", admin.user_id, request_id)
    return service.reject(db, request_id)


@router.post("/{request_id}/remove", response_model=AccessRequestOut)
def remove_access(request_id: str, admin: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    """Revoke approved access before it expires."""
    logger.info("Admin %s removing access request %s", admin.user_id, request_id)
    return service.admin_remove(db, request_id)


@router.post("/{request_id}/cancel", response_model=AccessRequestOut)
def cancel_request(request_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Requester withdraws their own pending request."""
    return service.cancel(db, request_id, actor.user_id)
