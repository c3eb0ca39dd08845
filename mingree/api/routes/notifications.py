from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from mingree.db.session import get_db
from mingree.dependencies.auth import get_current_user_id
from mingree.schemas.common import NotificationResponse
from mingree.services import notifications as notification_service

router = APIRouter()


@router.get("", response_model=List[NotificationResponse])
def list_notifications(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return notification_service.list_notifications(db, user_id)


@router.get("/unread-count")
def unread_count(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return {"count": notification_service.unread_count(db, user_id)}


@router.post("/read-all")
def mark_all_read(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return {"updated": notification_service.mark_all_read(db, user_id)}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return notification_service.mark_read(db, user_id, notification_id)
