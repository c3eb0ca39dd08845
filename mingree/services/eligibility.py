"""Tier/country gating of campaign visibility and reservation."""
from typing import List, Optional
from sqlalchemy.orm import Session

from mingree.core.errors import Forbidden
from mingree.core.tiers import tier_number
from mingree.models.campaign import Campaign
from mingree.models.user import User


def targets_country(campaign: Campaign, country: Optional[str]) -> bool:
    countries = campaign.target_country_list
    if not countries or not country:
        return True
    return country.upper() in countries


def can_view(user: User, campaign: Campaign, country: Optional[str] = None) -> bool:
    if not campaign.is_approved or campaign.status != "active":
        return False
    if not targets_country(campaign, country or user.country):
        return False
    return tier_number(campaign.tier) <= tier_number(user.tier)


def check_can_reserve(user: User, campaign: Campaign) -> None:
    if user.role != "creator":
        raise Forbidden("Only creators can reserve campaigns")
    if not can_view(user, campaign):
        raise Forbidden("This campaign is not available for your tier or country")
    if (user.followers or 0) < (campaign.min_followers or 0):
        raise Forbidden(f"Minimum {campaign.min_followers} followers required for this campaign")


def visible_campaigns(db: Session, user: User, country: Optional[str] = None) -> List[Campaign]:
    """Approved, active campaigns the creator's tier and country unlock, newest first."""
    campaigns = (
        db.query(Campaign)
        .filter(Campaign.is_approved == True, Campaign.status == "active")  # noqa: E712
        .order_by(Campaign.created_at.desc(), Campaign.id.desc())
        .all()
    )
    return [c for c in campaigns if can_view(user, c, country)]
