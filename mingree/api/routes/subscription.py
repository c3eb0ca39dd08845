from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from mingree.db.session import get_db
from mingree.dependencies.auth import get_current_user
from mingree.models.user import User
from mingree.schemas.common import SubscriptionPlanResponse
from mingree.services import subscriptions as subscription_service

router = APIRouter()


@router.get("/plans", response_model=List[SubscriptionPlanResponse])
def list_plans(db: Session = Depends(get_db)):
    """Active subscription plans"""
    return subscription_service.list_plans(db)


@router.get("/status")
def subscription_status(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Current plan and whether Pro is active"""
    subscription_service.downgrade_if_trial_expired(db, user)
    return subscription_service.get_status(user)
