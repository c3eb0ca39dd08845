from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from mingree.core.errors import Forbidden, NotFound
from mingree.db.session import get_db
from mingree.dependencies.auth import require_sponsor
from mingree.models.campaign import Campaign
from mingree.models.reservation import Reservation
from mingree.models.transaction import Transaction
from mingree.models.user import User
from mingree.schemas.admin import RejectRequest
from mingree.schemas.campaign import CampaignCreate, CampaignResponse, ReservationResponse
from mingree.schemas.wallet import TransactionResponse
from mingree.services import escrow
from mingree.services import reservations as reservation_service

router = APIRouter()


def _own_campaign(db: Session, sponsor: User, campaign_id: int) -> Campaign:
    campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
    if not campaign:
        raise NotFound("Campaign not found")
    if campaign.sponsor_id != sponsor.id:
        raise Forbidden("Not your campaign")
    return campaign


@router.get("/{sponsor_id}/wallet")
def get_wallet(
    sponsor_id: int,
    db: Session = Depends(get_db),
    sponsor: User = Depends(require_sponsor)
):
    """Sponsor wallet balance, escrow totals and recent transactions"""
    if sponsor_id != sponsor.id:
        raise Forbidden("You can only view your own wallet")
    campaigns = db.query(Campaign).filter(Campaign.sponsor_id == sponsor.id).all()
    in_escrow = sum(
        (escrow.pending_amount(c) for c in campaigns if c.escrow_status == "active"),
        escrow.ZERO,
    )
    transactions = (
        db.query(Transaction)
        .filter(Transaction.user_id == sponsor.id)
        .order_by(Transaction.created_at.desc())
        .limit(50)
        .all()
    )
    return {
        "balance": float(sponsor.balance or 0),
        "in_escrow": float(in_escrow),
        "transactions": [TransactionResponse.model_validate(t) for t in transactions],
    }


@router.get("/deposit-quote")
def deposit_quote(
    amount: float = Query(..., gt=0),
    sponsor: User = Depends(require_sponsor)
):
    """Fee breakdown for a wallet top-up: GST at home, a processing fee for international sponsors"""
    quote = escrow.deposit_quote(amount, escrow.is_international(sponsor))
    return {key: float(value) for key, value in quote.items()}


@router.get("/payment-quote")
def payment_quote(
    tier: str,
    promotion_style: str = "face_ad",
    total_spots: int = Query(1, ge=1),
    sponsor: User = Depends(require_sponsor)
):
    """Suggested creator pay for a tier and promotion style, and what the campaign would cost"""
    quote = escrow.payment_quote(tier, promotion_style, total_spots)
    return {key: float(value) for key, value in quote.items()}


@router.get("/campaigns", response_model=List[CampaignResponse])
def list_my_campaigns(
    db: Session = Depends(get_db),
    sponsor: User = Depends(require_sponsor)
):
    """Campaigns created by the current sponsor"""
    reservation_service.expire_reservations(db)
    return (
        db.query(Campaign)
        .filter(Campaign.sponsor_id == sponsor.id)
        .order_by(Campaign.created_at.desc())
        .all()
    )


@router.post("/campaigns", response_model=CampaignResponse, status_code=status.HTTP_201_CREATED)
def create_campaign(
    payload: CampaignCreate,
    db: Session = Depends(get_db),
    sponsor: User = Depends(require_sponsor)
):
    """Create a campaign; its full cost moves from the wallet into escrow"""
    return escrow.create_campaign(db, sponsor, payload.model_dump())


@router.get("/campaigns/{campaign_id}/escrow")
def campaign_escrow(
    campaign_id: int,
    db: Session = Depends(get_db),
    sponsor: User = Depends(require_sponsor)
):
    """Escrow breakdown for one of the sponsor's campaigns"""
    campaign = _own_campaign(db, sponsor, campaign_id)
    return {key: (float(v) if key != "escrow_status" else v) for key, v in escrow.release_summary(campaign).items()}


@router.get("/campaigns/{campaign_id}/submissions", response_model=List[ReservationResponse])
def campaign_submissions(
    campaign_id: int,
    db: Session = Depends(get_db),
    sponsor: User = Depends(require_sponsor)
):
    """Reservations and submissions on one of the sponsor's campaigns"""
    campaign = _own_campaign(db, sponsor, campaign_id)
    return (
        db.query(Reservation)
        .filter(Reservation.campaign_id == campaign.id, Reservation.status != "expired")
        .order_by(Reservation.reserved_at.desc())
        .all()
    )


@router.post("/campaigns/{campaign_id}/submissions/{reservation_id}/reject", response_model=ReservationResponse)
def reject_submission(
    campaign_id: int,
    reservation_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    sponsor: User = Depends(require_sponsor)
):
    """Reject a submission on one of the sponsor's campaigns"""
    campaign = _own_campaign(db, sponsor, campaign_id)
    reservation = db.query(Reservation).filter(
        Reservation.id == reservation_id,
        Reservation.campaign_id == campaign.id,
    ).first()
    if not reservation:
        raise NotFound("Reservation not found")
    return reservation_service.reject_submission(db, reservation.id, payload.reason)
