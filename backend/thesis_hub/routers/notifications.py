"""Notification routes, always scoped to the calling actor."""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from thesis_hub.database import get_db
from thesis_hub.deps import Actor, get_actor
from thesis_hub.schemas.notification import BulkResultOut, NotificationOut, UnreadCountOut
from thesis_hub.services import notification_service

router = APIRouter()


@router.get("/", response_model=list[NotificationOut])
def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """The actor's notifications, newest first."""
    return notification_service.list_for_user(db, actor.user_id, limit=limit, unread_only=unread_only)


@router.get("/unread-count", response_model=UnreadCountOut)
def unread_count(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return UnreadCountOut(unread=notification_service.unread_count(db, actor.user_id))


@router.post("/{notification_id}/read", response_model=NotificationOut)
def mark_read(notification_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    notification = notification_service.mark_as_read(db, notification_id, actor.user_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.post("/read-all", response_model=BulkResultOut)
def mark_all_read(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return BulkResultOut(affected=notification_service.mark_all_as_read(db, actor.user_id))


@router.delete("/", response_model=BulkResultOut)
def delete_notifications(
    only_read: bool = Query(False),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Bulk-delete the actor's notifications."""
    return BulkResultOut(affected=notification_service.delete_for_user(db, actor.user_id, only_read=only_read))
