from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from mingree.db.session import get_db
from mingree.dependencies.auth import require_creator
from mingree.models.user import User
from mingree.schemas.campaign import ReservationResponse, SubmissionCreate, SubmissionResponse
from mingree.services import reservations as reservation_service

router = APIRouter()


@router.get("", response_model=List[ReservationResponse])
def list_reservations(
    db: Session = Depends(get_db),
    user: User = Depends(require_creator)
):
    """Current creator's reservations (expired ones are hidden)"""
    return reservation_service.list_user_reservations(db, user)


@router.post("/{reservation_id}/submit", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
def submit_content(
    reservation_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_creator)
):
    """Submit content for a reserved spot"""
    return reservation_service.submit(db, user, reservation_id, payload.model_dump())
