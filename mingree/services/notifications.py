"""
User-facing notification rows. Writers only add to the session; the caller's
operation commits them together with the change they describe.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from mingree.core.errors import NotFound
from mingree.models.notification import Notification
from mingree.models.user import User


def notify(
    db: Session,
    user_id: int,
    type: str,
    title: str,
    message: str,
    campaign_id: Optional[int] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        campaign_id=campaign_id,
    )
    db.add(notification)
    return notification


def notify_admins(db: Session, type: str, title: str, message: str, campaign_id: Optional[int] = None) -> int:
    admin_ids = [row.id for row in db.query(User.id).filter(User.role == "admin").all()]
    for admin_id in admin_ids:
        notify(db, admin_id, type, title, message, campaign_id)
    return len(admin_ids)


def list_notifications(db: Session, user_id: int, limit: int = 50) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def unread_count(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read == False,  # noqa: E712
    ).count()


def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first()
    if not notification:
        raise NotFound("Notification not found")
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    updated = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read == False,  # noqa: E712
    ).update({Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return updated
