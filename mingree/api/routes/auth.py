from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from mingree.db.session import get_db
from mingree.dependencies.auth import get_current_user
from mingree.models.user import User
from mingree.schemas.auth import SignupRequest, LoginRequest, TokenResponse, UserResponse
from mingree.services import users as user_service
from mingree.services.subscriptions import downgrade_if_trial_expired
from mingree.utils.auth import create_access_token

router = APIRouter()


def _token_response(user: User) -> dict:
    return {
        "access_token": create_access_token({"sub": str(user.id), "role": user.role}),
        "token_type": "bearer",
        "user": user,
    }


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    """Create a creator or sponsor account and return a session token"""
    user = user_service.signup(db, payload.model_dump())
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email + password for a session token"""
    user = user_service.authenticate(db, payload.email, payload.password)
    return _token_response(user)


@router.get("/user", response_model=UserResponse)
def current_user(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Get the signed-in user. Expired trials are downgraded on read."""
    downgrade_if_trial_expired(db, user)
    return user
