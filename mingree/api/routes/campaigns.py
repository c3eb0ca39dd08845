from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from mingree.core.errors import NotFound
from mingree.db.session import get_db
from mingree.dependencies.auth import get_current_user, require_creator
from mingree.models.campaign import Campaign
from mingree.models.user import User
from mingree.schemas.campaign import CampaignResponse, ReservationResponse
from mingree.services import reservations as reservation_service
from mingree.services.eligibility import can_view, visible_campaigns

router = APIRouter()


@router.get("", response_model=List[CampaignResponse])
def list_campaigns(
    country: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Campaigns open to the current creator's tier and country"""
    reservation_service.expire_reservations(db)
    if user.role == "creator":
        return visible_campaigns(db, user, country)
    return (
        db.query(Campaign)
        .filter(Campaign.is_approved == True, Campaign.status == "active")  # noqa: E712
        .order_by(Campaign.created_at.desc())
        .all()
    )


@router.get("/{campaign_id}", response_model=CampaignResponse)
def get_campaign(
    campaign_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Get a single campaign"""
    reservation_service.expire_reservations(db)
    campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
    if not campaign:
        raise NotFound("Campaign not found")
    if user.role == "creator" and not can_view(user, campaign):
        raise NotFound("Campaign not found")
    if user.role == "sponsor" and campaign.sponsor_id != user.id and not campaign.is_approved:
        raise NotFound("Campaign not found")
    return campaign


@router.post("/{campaign_id}/reserve", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def reserve_campaign(
    campaign_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_creator)
):
    """Reserve a spot for 48 hours (Pro subscribers only)"""
    return reservation_service.reserve(db, user, campaign_id)
