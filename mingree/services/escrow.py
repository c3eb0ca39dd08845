"""
Campaign escrow: funding on creation, release on approved submissions, and
refunds at the deadline or when an admin rejects the campaign.

Invariant kept on every path: released_amount + refunded_amount <= total_budget.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from mingree.core.errors import InsufficientBalance, NotFound, ValidationFailed
from mingree.core.categories import is_valid_category
from mingree.core.tiers import (
    GST_PERCENT,
    INTERNATIONAL_FEE_PERCENT,
    PLATFORM_FEE_PERCENT,
    PROMOTION_STYLES,
    calculate_payment,
    get_tier_by_name,
    round_rupees,
    to_money,
)
from mingree.models.campaign import Campaign
from mingree.models.reservation import Reservation
from mingree.models.user import User
from mingree.services import ledger
from mingree.services.email import send_escrow_refund_email
from mingree.services.notifications import notify, notify_admins

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def campaign_cost(pay_amount, total_spots: int) -> Dict[str, Decimal]:
    creator_payment = to_money(Decimal(str(pay_amount)) * total_spots)
    platform_fee = round_rupees(creator_payment * PLATFORM_FEE_PERCENT / Decimal("100"))
    return {
        "creator_payment": creator_payment,
        "platform_fee": platform_fee,
        "total_cost": creator_payment + platform_fee,
    }


def payment_quote(tier: str, promotion_style: str = "face_ad", total_spots: int = 1) -> Dict[str, Decimal]:
    """Suggested per-creator pay for a tier and style, with the cost of funding total_spots."""
    if not get_tier_by_name(tier or ""):
        raise ValidationFailed("Invalid tier")
    if promotion_style not in PROMOTION_STYLES:
        raise ValidationFailed("Invalid promotion style")
    if total_spots < 1:
        raise ValidationFailed("total_spots must be at least 1")
    pay_amount = calculate_payment(tier, promotion_style)
    return {"pay_amount": pay_amount, **campaign_cost(pay_amount, total_spots)}


def is_international(user: User) -> bool:
    return (user.country or "IN").upper() != "IN"


def deposit_quote(amount, international: bool = False) -> Dict[str, Any]:
    """
    Domestic top-ups pay 18% GST (whole rupees) on top of the base amount.
    International top-ups pay a 5% processing fee instead, rounded to paise.
    """
    base = to_money(amount)
    if base <= 0:
        raise ValidationFailed("Amount must be a positive number")
    if international:
        gst = ZERO
        processing_fee = to_money(base * INTERNATIONAL_FEE_PERCENT / Decimal("100"))
    else:
        gst = round_rupees(base * GST_PERCENT / Decimal("100"))
        processing_fee = ZERO
    return {
        "base_amount": base,
        "gst_amount": gst,
        "gst_percent": 0 if international else int(GST_PERCENT),
        "processing_fee": processing_fee,
        "processing_fee_percent": int(INTERNATIONAL_FEE_PERCENT) if international else 0,
        "total_amount": base + gst + processing_fee,
    }


def confirm_deposit(db: Session, sponsor: User, amount, reference: Optional[str] = None) -> Dict[str, Any]:
    """Credit a settled wallet top-up: the sponsor pays base plus GST or fee and receives base."""
    quote = deposit_quote(amount, is_international(sponsor))
    ledger.credit_balance(db, sponsor, quote["base_amount"])
    description = "Wallet deposit"
    if reference:
        description += f" (ref {reference})"
    ledger.record_transaction(
        db, sponsor.id, "credit", "deposit",
        amount=quote["total_amount"], tax=quote["gst_amount"] + quote["processing_fee"], net=quote["base_amount"],
        description=description,
    )
    notify(db, sponsor.id, "deposit_received", "Deposit received",
           f"INR {quote['base_amount']:.2f} has been added to your wallet.")
    db.commit()
    db.refresh(sponsor)
    return quote


def create_campaign(db: Session, sponsor: User, data: Dict[str, Any]) -> Campaign:
    """
    Create a sponsor campaign and move its full cost out of the sponsor's wallet.

    Cash campaigns cost pay_amount * total_spots for creators plus the platform
    fee; product campaigns carry no cash payout.
    """
    campaign_type = data.get("campaign_type") or "cash"
    if campaign_type not in ("cash", "product"):
        raise ValidationFailed("campaign_type must be 'cash' or 'product'")
    if not get_tier_by_name(data.get("tier") or ""):
        raise ValidationFailed("Invalid tier")
    if not is_valid_category(data.get("category") or ""):
        raise ValidationFailed("Invalid category")
    promotion_style = data.get("promotion_style") or "face_ad"
    if promotion_style not in PROMOTION_STYLES:
        raise ValidationFailed("Invalid promotion style")
    total_spots = int(data.get("total_spots") or 0)
    if total_spots < 1:
        raise ValidationFailed("total_spots must be at least 1")
    deadline = data.get("deadline")
    if not deadline or deadline <= datetime.utcnow():
        raise ValidationFailed("Deadline must be in the future")

    if campaign_type == "product":
        pay_amount = ZERO
    elif data.get("pay_amount") is None:
        pay_amount = calculate_payment(data["tier"], promotion_style)
    else:
        pay_amount = to_money(data["pay_amount"])
    if campaign_type == "cash" and pay_amount <= 0:
        raise ValidationFailed("pay_amount must be positive for cash campaigns")

    cost = campaign_cost(pay_amount, total_spots)
    total_cost = cost["total_cost"]
    if to_money(sponsor.balance or 0) < total_cost:
        raise InsufficientBalance(required=total_cost, available=to_money(sponsor.balance or 0))

    target_countries = data.get("target_countries") or [sponsor.country or "IN"]
    if isinstance(target_countries, str):
        target_countries = [target_countries]

    campaign = Campaign(
        sponsor_id=sponsor.id,
        title=data["title"],
        brand=data.get("brand") or sponsor.company_name or sponsor.name,
        brand_logo=data.get("brand_logo"),
        category=data["category"],
        description=data.get("description"),
        tier=data["tier"],
        min_followers=int(data.get("min_followers") or 0),
        type=data.get("type") or "reel",
        content_types=",".join(data.get("content_types") or []) or None,
        promotion_style=promotion_style,
        target_countries=",".join(c.strip().upper() for c in target_countries if c.strip()),
        pay_amount=pay_amount,
        deadline=deadline,
        total_spots=total_spots,
        spots_remaining=total_spots,
        status="active",
        is_approved=False,
        campaign_type=campaign_type,
        product_name=data.get("product_name"),
        product_value=to_money(data["product_value"]) if data.get("product_value") is not None else None,
        total_budget=cost["creator_payment"],
        released_amount=ZERO,
        refunded_amount=ZERO,
        escrow_status="product" if campaign_type == "product" else "active",
    )
    db.add(campaign)
    db.flush()

    ledger.debit_balance(db, sponsor, total_cost)
    ledger.adjust_admin_wallet(db, balance=total_cost, earnings=cost["platform_fee"])
    ledger.record_transaction(
        db, sponsor.id, "debit", "campaign_payment",
        amount=total_cost, tax=cost["platform_fee"], net=cost["creator_payment"],
        description=f"Campaign payment: {campaign.title}",
        campaign_id=campaign.id,
    )
    ledger.record_admin_transaction(
        db, "credit", "campaign_deposit", total_cost,
        description=f"Campaign deposit: {campaign.title}",
        campaign_id=campaign.id, user_id=sponsor.id,
    )
    notify_admins(
        db, "new_campaign", "New campaign awaiting approval",
        f"{sponsor.company_name or sponsor.name} created '{campaign.title}' ({campaign.tier}, {total_spots} spots).",
        campaign.id,
    )
    db.commit()
    db.refresh(campaign)
    logger.info(
        "Campaign %s funded by sponsor %s: payment=%s fee=%s",
        campaign.id, sponsor.id, cost["creator_payment"], cost["platform_fee"],
    )
    return campaign


def pending_amount(campaign: Campaign) -> Decimal:
    return to_money(campaign.total_budget or 0) - to_money(campaign.released_amount or 0) - to_money(campaign.refunded_amount or 0)


def release(db: Session, campaign: Campaign, amount) -> None:
    """Mark amount as paid out to a creator from this campaign's escrow."""
    amount = to_money(amount)
    if amount > pending_amount(campaign):
        raise ValidationFailed("Release exceeds the campaign's remaining escrow")
    campaign.released_amount = to_money(campaign.released_amount or 0) + amount
    settled = to_money(campaign.released_amount) + to_money(campaign.refunded_amount or 0)
    campaign.escrow_status = "completed" if settled >= to_money(campaign.total_budget) else "active"


def held_for_open_reservations(db: Session, campaign: Campaign, now: Optional[datetime] = None) -> Decimal:
    """Escrow still owed to creators holding a live reservation or awaiting review."""
    now = now or datetime.utcnow()
    open_count = db.query(Reservation).filter(
        Reservation.campaign_id == campaign.id,
        or_(
            Reservation.status == "submitted",
            and_(Reservation.status == "reserved", Reservation.expires_at > now),
        ),
    ).count()
    return to_money(campaign.pay_amount or 0) * open_count


def refund_campaign(db: Session, campaign: Campaign) -> Decimal:
    """
    Return a campaign's unreleased escrow to its sponsor, keeping back pay for
    reservations that can still be approved. Escrow stays active until those
    settle; a later pass refunds whatever they leave. Returns the amount refunded.
    """
    sponsor = db.query(User).filter(User.id == campaign.sponsor_id).first() if campaign.sponsor_id else None
    if sponsor is None:
        logger.warning("Campaign %s has no sponsor account, escrow left untouched", campaign.id)
        return ZERO

    held = held_for_open_reservations(db, campaign)
    refundable = pending_amount(campaign) - held
    if refundable > 0:
        ledger.adjust_admin_wallet(db, balance=-refundable, refunds=refundable)
        ledger.record_admin_transaction(
            db, "debit", "sponsor_refund", refundable,
            description=f"Escrow refund: {campaign.title}",
            campaign_id=campaign.id, user_id=sponsor.id,
        )
        ledger.credit_balance(db, sponsor, refundable)
        ledger.record_transaction(
            db, sponsor.id, "credit", "escrow_refund",
            amount=refundable, tax=ZERO, net=refundable,
            description=f"Unused budget refunded: {campaign.title}",
            campaign_id=campaign.id,
        )
        notify(
            db, sponsor.id, "escrow_refund", "Campaign budget refunded",
            f"INR {refundable:.2f} of unused budget from '{campaign.title}' was returned to your wallet.",
            campaign.id,
        )
        campaign.refunded_amount = to_money(campaign.refunded_amount or 0) + refundable
        logger.info("Refunded %s escrow for campaign %s", refundable, campaign.id)
    else:
        refundable = ZERO

    if held <= 0:
        campaign.escrow_status = "completed"
    return refundable


def process_escrow_refunds(db: Session) -> Dict[str, Any]:
    """
    Close every non-promotional campaign whose deadline has passed and refund
    its unused budget. Campaigns with submissions still under review are
    revisited on later passes.
    """
    now = datetime.utcnow()
    campaigns = db.query(Campaign).filter(
        Campaign.deadline < now,
        Campaign.escrow_status == "active",
        Campaign.is_promotional == False,  # noqa: E712
    ).all()

    processed = 0
    total_refunded = ZERO
    emails = []
    for campaign in campaigns:
        if campaign.status in ("active", "paused"):
            campaign.status = "completed"
        refunded = refund_campaign(db, campaign)
        if refunded > 0 or campaign.escrow_status == "completed":
            processed += 1
        total_refunded += refunded
        if refunded > 0:
            emails.append((campaign.sponsor.email, campaign.title, refunded))
    db.commit()

    for to_email, title, amount in emails:
        send_escrow_refund_email(to_email, title, amount)

    if processed:
        logger.info("Escrow refund pass: %s campaigns, %s refunded", processed, total_refunded)
    return {"processed": processed, "total_refunded": total_refunded}


def reject_campaign(db: Session, campaign_id: int, reason: Optional[str] = None) -> Campaign:
    """
    Admin rejection of a campaign awaiting approval: the sponsor gets back
    everything they paid, including the platform fee.
    """
    campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
    if not campaign:
        raise NotFound("Campaign not found")
    if campaign.is_approved:
        raise ValidationFailed("Approved campaigns cannot be rejected; pause or complete them instead")
    if campaign.status == "rejected":
        raise ValidationFailed("Campaign already rejected")

    cost = campaign_cost(campaign.pay_amount or 0, campaign.total_spots)
    refund_total = cost["total_cost"]
    if refund_total > 0:
        ledger.adjust_admin_wallet(
            db, balance=-refund_total, earnings=-cost["platform_fee"], refunds=refund_total,
        )
        ledger.record_admin_transaction(
            db, "debit", "sponsor_refund", refund_total,
            description=f"Rejected campaign refund: {campaign.title}",
            campaign_id=campaign.id, user_id=campaign.sponsor_id,
        )
        if campaign.sponsor is not None:
            ledger.credit_balance(db, campaign.sponsor, refund_total)
            ledger.record_transaction(
                db, campaign.sponsor_id, "credit", "refund",
                amount=refund_total, tax=ZERO, net=refund_total,
                description=f"Campaign rejected: {campaign.title}",
                campaign_id=campaign.id,
            )

    campaign.status = "rejected"
    campaign.escrow_status = "refunded"
    campaign.refunded_amount = to_money(campaign.total_budget or 0) - to_money(campaign.released_amount or 0)
    if campaign.sponsor_id:
        message = f"Your campaign '{campaign.title}' was not approved. INR {refund_total:.2f} has been refunded to your wallet."
        if reason:
            message += f" Reason: {reason}"
        notify(db, campaign.sponsor_id, "campaign_rejected", "Campaign rejected", message, campaign.id)
    db.commit()
    db.refresh(campaign)
    return campaign


def release_summary(campaign: Campaign) -> Dict[str, Any]:
    return {
        "total_budget": to_money(campaign.total_budget or 0),
        "released_amount": to_money(campaign.released_amount or 0),
        "refunded_amount": to_money(campaign.refunded_amount or 0),
        "pending_amount": pending_amount(campaign),
        "escrow_status": campaign.escrow_status,
        "platform_fee": campaign_cost(campaign.pay_amount or 0, campaign.total_spots)["platform_fee"],
    }
