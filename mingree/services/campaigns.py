"""Admin moderation of campaigns (approval and status changes)."""
from typing import List
from sqlalchemy.orm import Session

from mingree.core.errors import NotFound, ValidationFailed
from mingree.models.campaign import Campaign
from mingree.services.notifications import notify

CAMPAIGN_STATUSES = ("active", "paused", "completed")


def _get(db: Session, campaign_id: int) -> Campaign:
    campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
    if not campaign:
        raise NotFound("Campaign not found")
    return campaign


def pending_approval(db: Session) -> List[Campaign]:
    return (
        db.query(Campaign)
        .filter(Campaign.is_approved == False, Campaign.status != "rejected")  # noqa: E712
        .order_by(Campaign.created_at)
        .all()
    )


def approve_campaign(db: Session, campaign_id: int, is_promotional: bool = False, star_reward: int = 0) -> Campaign:
    campaign = _get(db, campaign_id)
    if campaign.status == "rejected":
        raise ValidationFailed("Rejected campaigns cannot be approved")
    if campaign.is_approved:
        raise ValidationFailed("Campaign already approved")
    campaign.is_approved = True
    campaign.status = "active"
    campaign.is_promotional = is_promotional
    campaign.star_reward = star_reward if is_promotional else 0
    if campaign.sponsor_id:
        notify(
            db, campaign.sponsor_id, "campaign_approved", "Campaign approved",
            f"Your campaign '{campaign.title}' is now live for creators.",
            campaign.id,
        )
    db.commit()
    db.refresh(campaign)
    return campaign


def set_status(db: Session, campaign_id: int, status: str) -> Campaign:
    if status not in CAMPAIGN_STATUSES:
        raise ValidationFailed("Status must be one of: " + ", ".join(CAMPAIGN_STATUSES))
    campaign = _get(db, campaign_id)
    if campaign.status == "rejected":
        raise ValidationFailed("Rejected campaigns cannot change status")
    campaign.status = status
    db.commit()
    db.refresh(campaign)
    return campaign
