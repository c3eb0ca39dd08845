from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from mingree.db.session import get_db
from mingree.dependencies.auth import get_current_user, require_creator
from mingree.models.user import User
from mingree.schemas.auth import ProfileUpdate, InstagramUpdate, UserResponse
from mingree.services import users as user_service
from mingree.services.reservations import earnings_summary

router = APIRouter()


@router.patch("/me", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Update name, handle or country"""
    return user_service.update_profile(db, user, payload.model_dump(exclude_unset=True))


@router.put("/me/instagram", response_model=UserResponse)
def update_instagram(
    payload: InstagramUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_creator)
):
    """Link or unlink Instagram; re-derives the follower tier"""
    return user_service.update_instagram(
        db,
        user,
        payload.instagram_username,
        payload.instagram_followers,
        payload.instagram_profile_url,
    )


@router.get("/me/earnings")
def get_earnings(
    db: Session = Depends(get_db),
    user: User = Depends(require_creator)
):
    """Lifetime gross, TDS and net earnings"""
    summary = earnings_summary(db, user)
    return {key: float(value) for key, value in summary.items()}


@router.delete("/me")
def delete_account(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Delete the account (requires zero balance and no pending withdrawal)"""
    user_service.delete_account(db, user)
    return {"message": "Account deleted"}
