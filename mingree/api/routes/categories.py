from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from mingree.db.session import get_db
from mingree.dependencies.auth import get_current_user, require_creator
from mingree.models.user import User
from mingree.schemas.campaign import CampaignResponse
from mingree.schemas.common import CategoryGroupRequest, CategoryGroupResponse
from mingree.services import categories as category_service

router = APIRouter()


@router.get("/categories")
def list_categories():
    """Fixed campaign categories"""
    return category_service.list_categories()


@router.get("/categories/{category}/campaigns", response_model=List[CampaignResponse])
def category_campaigns(
    category: str,
    tier: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Active campaigns in a category, optionally for a single tier"""
    return category_service.category_campaigns(db, category, tier)


@router.get("/category-subscriptions", response_model=List[CategoryGroupResponse])
def list_groups(
    db: Session = Depends(get_db),
    user: User = Depends(require_creator)
):
    """Groups the creator has joined"""
    return category_service.list_groups(db, user)


@router.post("/category-subscriptions", response_model=CategoryGroupResponse, status_code=status.HTTP_201_CREATED)
def join_group(
    payload: CategoryGroupRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_creator)
):
    """Join a (category, tier) group"""
    return category_service.join_group(db, user, payload.category, payload.tier)


@router.delete("/category-subscriptions")
def leave_group(
    category: str,
    tier: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_creator)
):
    """Leave a (category, tier) group"""
    category_service.leave_group(db, user, category, tier)
    return {"message": "Unsubscribed"}


@router.get("/category-subscriptions/feed", response_model=List[CampaignResponse])
def group_feed(
    db: Session = Depends(get_db),
    user: User = Depends(require_creator)
):
    """Campaigns from every joined group"""
    return category_service.group_feed(db, user)
