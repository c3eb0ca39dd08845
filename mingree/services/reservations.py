"""
Reservation lifecycle: reserved -> submitted -> approved | rejected, or
reserved -> expired once the 48 hour window passes.

Spots are taken and returned with single guarded UPDATE statements, so two
creators racing for the last spot can't both get it and spots_remaining
stays within [0, total_spots].
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mingree.core.errors import Conflict, NoSpotsAvailable, NotFound, SubscriptionRequired, ValidationFailed
from mingree.core.plans import RESERVATION_HOURS
from mingree.core.tiers import TDS_PERCENT, percent_of, to_money
from mingree.models.campaign import Campaign
from mingree.models.reservation import Reservation
from mingree.models.submission import Submission
from mingree.models.transaction import Transaction
from mingree.models.user import User
from mingree.services import escrow, ledger
from mingree.services.eligibility import check_can_reserve
from mingree.services.notifications import notify
from mingree.services.subscriptions import apply_star_reward, downgrade_if_trial_expired, is_pro_active

logger = logging.getLogger(__name__)


def take_spot(db: Session, campaign_id: int) -> bool:
    """Atomically claim one spot. False when none are left."""
    updated = db.query(Campaign).filter(
        Campaign.id == campaign_id,
        Campaign.spots_remaining > 0,
    ).update(
        {Campaign.spots_remaining: Campaign.spots_remaining - 1},
        synchronize_session="fetch",
    )
    return updated == 1


def return_spot(db: Session, campaign_id: int) -> bool:
    updated = db.query(Campaign).filter(
        Campaign.id == campaign_id,
        Campaign.spots_remaining < Campaign.total_spots,
    ).update(
        {Campaign.spots_remaining: Campaign.spots_remaining + 1},
        synchronize_session="fetch",
    )
    return updated == 1


def _expire_one(db: Session, reservation_id: int, campaign_id: int) -> bool:
    # Guarded on status so overlapping expiry passes only return the spot once
    updated = db.query(Reservation).filter(
        Reservation.id == reservation_id,
        Reservation.status == "reserved",
    ).update({Reservation.status: "expired"}, synchronize_session="fetch")
    if updated:
        return_spot(db, campaign_id)
    return bool(updated)


def expire_reservations(db: Session) -> int:
    """Expire every reserved reservation past its deadline and give the spot back."""
    stale = db.query(Reservation.id, Reservation.campaign_id).filter(
        Reservation.status == "reserved",
        Reservation.expires_at < datetime.utcnow(),
    ).all()
    expired = 0
    for reservation_id, campaign_id in stale:
        if _expire_one(db, reservation_id, campaign_id):
            expired += 1
    if expired:
        db.commit()
        logger.info("Expired %s reservations", expired)
    return expired


def reserve(db: Session, user: User, campaign_id: int) -> Reservation:
    expire_reservations(db)
    downgrade_if_trial_expired(db, user)
    if not is_pro_active(user):
        raise SubscriptionRequired()

    campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
    if not campaign:
        raise NotFound("Campaign not found")
    check_can_reserve(user, campaign)

    existing = db.query(Reservation).filter(
        Reservation.user_id == user.id,
        Reservation.campaign_id == campaign.id,
    ).first()
    if existing:
        raise Conflict("You have already reserved this campaign")

    if campaign.spots_remaining <= 0 or not take_spot(db, campaign.id):
        raise NoSpotsAvailable()

    now = datetime.utcnow()
    reservation = Reservation(
        user_id=user.id,
        campaign_id=campaign.id,
        status="reserved",
        reserved_at=now,
        expires_at=now + timedelta(hours=RESERVATION_HOURS),
    )
    db.add(reservation)
    try:
        db.flush()
    except IntegrityError:
        # Same creator reserving twice concurrently; the spot decrement rolls back with it
        db.rollback()
        raise Conflict("You have already reserved this campaign")

    notify(
        db, user.id, "campaign_reserved", "Spot reserved",
        f"You reserved a spot in '{campaign.title}'. Submit your content within {RESERVATION_HOURS} hours.",
        campaign.id,
    )
    if campaign.sponsor_id:
        notify(
            db, campaign.sponsor_id, "campaign_reserved", "New reservation",
            f"@{user.handle} reserved a spot in '{campaign.title}'.",
            campaign.id,
        )
    db.commit()
    db.refresh(reservation)
    logger.info("User %s reserved campaign %s", user.id, campaign.id)
    return reservation


def submit(db: Session, user: User, reservation_id: int, data: Dict[str, Any]) -> Submission:
    reservation = db.query(Reservation).filter(
        Reservation.id == reservation_id,
        Reservation.user_id == user.id,
    ).first()
    if not reservation:
        raise NotFound("Reservation not found")

    if reservation.status == "reserved" and reservation.expires_at < datetime.utcnow():
        _expire_one(db, reservation.id, reservation.campaign_id)
        db.commit()
        raise ValidationFailed("Reservation has expired")
    if reservation.status != "reserved":
        raise ValidationFailed(f"Cannot submit for a reservation that is {reservation.status}")

    submission = Submission(
        reservation_id=reservation.id,
        link=data["link"],
        clip_url=data.get("clip_url"),
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
    )
    db.add(submission)
    reservation.status = "submitted"

    campaign = reservation.campaign
    notify(
        db, user.id, "submission_received", "Submission received",
        f"Your content for '{campaign.title}' is under review.",
        campaign.id,
    )
    if campaign.sponsor_id:
        notify(
            db, campaign.sponsor_id, "submission_received", "New submission",
            f"@{user.handle} submitted content for '{campaign.title}'.",
            campaign.id,
        )
    db.commit()
    db.refresh(submission)
    return submission


def _get_submitted(db: Session, reservation_id: int) -> Reservation:
    reservation = db.query(Reservation).filter(Reservation.id == reservation_id).first()
    if not reservation:
        raise NotFound("Reservation not found")
    if reservation.status != "submitted" or reservation.submission is None:
        raise ValidationFailed("Only submitted content can be reviewed")
    return reservation


def approve_submission(db: Session, reservation_id: int) -> Dict[str, Any]:
    """
    Approve a creator's content. Promotional campaigns pay in stars; everything
    else releases pay_amount from escrow, withholding TDS from the creator.
    """
    reservation = _get_submitted(db, reservation_id)
    campaign = reservation.campaign
    creator = reservation.user
    now = datetime.utcnow()
    result: Dict[str, Any] = {"reservation_id": reservation.id, "status": "approved"}

    if campaign.is_promotional and (campaign.star_reward or 0) > 0:
        months = apply_star_reward(db, creator, campaign.star_reward, campaign.id)
        notify(
            db, creator.id, "submission_approved", "Submission approved",
            f"Your content for '{campaign.title}' was approved. You earned {campaign.star_reward} stars.",
            campaign.id,
        )
        result.update({"stars_awarded": campaign.star_reward, "months_granted": months})
    else:
        pay = to_money(campaign.pay_amount or 0)
        if pay > 0:
            tax = percent_of(pay, TDS_PERCENT)
            net = pay - tax
            escrow.release(db, campaign, pay)
            ledger.adjust_admin_wallet(db, balance=-pay, payouts=pay)
            ledger.record_admin_transaction(
                db, "debit", "creator_payout", pay,
                description=f"Payout to @{creator.handle} for '{campaign.title}'",
                campaign_id=campaign.id, user_id=creator.id,
            )
            ledger.record_transaction(
                db, creator.id, "credit", "earning",
                amount=pay, tax=tax, net=net,
                description=f"Earning: {campaign.title} (TDS {TDS_PERCENT}% withheld)",
                campaign_id=campaign.id, reservation_id=reservation.id,
            )
            ledger.credit_balance(db, creator, net)
            result.update({"amount": pay, "tax": tax, "net": net})
            message = f"Your content for '{campaign.title}' was approved. INR {net:.2f} was added to your wallet."
        else:
            message = f"Your content for '{campaign.title}' was approved."
        notify(db, creator.id, "submission_approved", "Submission approved", message, campaign.id)

    reservation.status = "approved"
    reservation.submission.reviewed_at = now
    db.commit()
    logger.info("Approved reservation %s (campaign %s)", reservation.id, campaign.id)
    return result


def reject_submission(db: Session, reservation_id: int, reason: Optional[str] = None) -> Reservation:
    """Reject content and put the spot back on the campaign; escrow stays until the deadline."""
    reservation = _get_submitted(db, reservation_id)
    campaign = reservation.campaign

    reservation.status = "rejected"
    reservation.submission.reviewed_at = datetime.utcnow()
    reservation.submission.rejection_reason = reason
    return_spot(db, campaign.id)

    message = f"Your content for '{campaign.title}' was rejected."
    if reason:
        message += f" Reason: {reason}"
    notify(db, reservation.user_id, "submission_rejected", "Submission rejected", message, campaign.id)
    db.commit()
    db.refresh(reservation)
    return reservation


def list_user_reservations(db: Session, user: User) -> List[Reservation]:
    expire_reservations(db)
    return (
        db.query(Reservation)
        .filter(Reservation.user_id == user.id, Reservation.status != "expired")
        .order_by(Reservation.reserved_at.desc())
        .all()
    )


def earnings_summary(db: Session, user: User) -> Dict[str, Decimal]:
    rows = db.query(Transaction).filter(
        Transaction.user_id == user.id,
        Transaction.category == "earning",
    ).all()
    return {
        "gross": sum((to_money(t.amount) for t in rows), Decimal("0.00")),
        "tax": sum((to_money(t.tax) for t in rows), Decimal("0.00")),
        "net": sum((to_money(t.net) for t in rows), Decimal("0.00")),
    }
