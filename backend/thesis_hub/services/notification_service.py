"""Notification emitter and recipient-side notification operations.

Emission is best-effort: the state transition that triggers a notification has
already been committed, so a failed insert is logged and dropped rather than
propagated.  Stored notifications are also published to in-process
subscribers (live badge refreshers and the like).
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from thesis_hub.models.notification import Notification, NotificationType
from thesis_hub.models.user import User, UserRole

logger = logging.getLogger(__name__)

Subscriber = Callable[[Notification], None]

_subscribers: list[Subscriber] = []


def subscribe(callback: Subscriber) -> None:
    """Register a callback invoked with every stored notification."""
    if callback not in _subscribers:
        _subscribers.append(callback)


def unsubscribe(callback: Subscriber) -> None:
    if callback in _subscribers:
        _subscribers.remove(callback)


def _publish(notification: Notification) -> None:
    for callback in list(_subscribers):
        try:
            callback(notification)
        except Exception:
            logger.exception("Notification subscriber %r failed", callback)


def emit(
    db: Session,
    user_id: str,
    title: str,
    message: str,
    type: NotificationType,
    thesis_id: Optional[str] = None,
    access_request_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[Notification]:
    """Insert one unread notification and commit it on its own.

    Returns None when the insert fails.
    """
    notification = Notification(
        user_id=user_id,
        thesis_id=thesis_id,
        access_request_id=access_request_id,
        title=title,
        message=message,
        type=type,
        is_read=False,
        created_at=now or datetime.now(timezone.utc),
    )
    try:
        db.add(notification)
        db.commit()
        db.refresh(notification)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to emit '%s' notification to user %s", title, user_id)
        return None

    logger.info("Notification %s (%s) sent to user %s", notification.notification_id, type.value, user_id)
    _publish(notification)
    return notification


def admin_ids(db: Session) -> list[str]:
    """The admin roster used for fan-out."""
    rows = db.query(User.user_id).filter(User.role == UserRole.admin).all()
    return [row.user_id for row in rows]


def emit_to_admins(
    db: Session,
    title: str,
    message: str,
    type: NotificationType,
    thesis_id: Optional[str] = None,
    access_request_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[Notification]:
    """Send one copy of the notification to every admin.

    Best-effort like ``emit``: a failed roster read is logged and nobody is notified.
    """
    try:
        recipients = admin_ids(db)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to load admin roster for '%s' notification", title)
        return []

    sent = []
    for admin_id in recipients:
        n = emit(db, admin_id, title, message, type, thesis_id, access_request_id, now)
        if n is not None:
            sent.append(n)
    return sent


# ---------------------------------------------------------------------------
# Recipient-side operations
# ---------------------------------------------------------------------------
def list_for_user(db: Session, user_id: str, limit: int = 20, unread_only: bool = False) -> list[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc()).limit(limit).all()


def unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .count()
    )


def mark_as_read(db: Session, notification_id: str, user_id: str) -> Optional[Notification]:
    """Mark one of the user's notifications read. Returns None if it is not theirs."""
    notification = (
        db.query(Notification)
        .filter(Notification.notification_id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if not notification:
        return None
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user_id: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    logger.info("Marked %d notifications read for user %s", updated, user_id)
    return updated


def delete_for_user(db: Session, user_id: str, only_read: bool = False) -> int:
    """Bulk-delete a user's notifications."""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if only_read:
        query = query.filter(Notification.is_read.is_(True))
    deleted = query.delete(synchronize_session=False)
    db.commit()
    logger.info("Deleted %d notifications for user %s", deleted, user_id)
    return deleted
