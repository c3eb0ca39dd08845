"""Read models for the admin console."""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from mingree.core.tiers import to_money
from mingree.models.campaign import Campaign
from mingree.models.reservation import Reservation
from mingree.models.transaction import Transaction
from mingree.models.user import User
from mingree.models.withdrawal import WithdrawalRequest


def _sum(db: Session, column, *criteria) -> Decimal:
    value = db.query(func.coalesce(func.sum(column), 0)).filter(*criteria).scalar()
    return to_money(value or 0)


def dashboard_stats(db: Session) -> Dict[str, Any]:
    return {
        "total_users": db.query(User).count(),
        "total_creators": db.query(User).filter(User.role == "creator").count(),
        "total_sponsors": db.query(User).filter(User.role == "sponsor").count(),
        "total_campaigns": db.query(Campaign).count(),
        "active_campaigns": db.query(Campaign).filter(
            Campaign.status == "active", Campaign.is_approved == True  # noqa: E712
        ).count(),
        "pending_withdrawals": db.query(WithdrawalRequest).filter(WithdrawalRequest.status == "pending").count(),
        "pending_withdrawal_amount": _sum(db, WithdrawalRequest.amount, WithdrawalRequest.status == "pending"),
        "total_withdrawals_processed": _sum(db, WithdrawalRequest.amount, WithdrawalRequest.status == "completed"),
        "pending_submissions": db.query(Reservation).filter(Reservation.status == "submitted").count(),
        "pending_verifications": db.query(User).filter(User.instagram_verification_status == "pending").count(),
    }


def list_users(db: Session, role: Optional[str] = None) -> List[Dict[str, Any]]:
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    users = query.order_by(User.created_at.desc()).all()

    rows = []
    for user in users:
        rows.append({
            "user": user,
            "total_earnings": _sum(db, Transaction.net, Transaction.user_id == user.id, Transaction.category == "earning"),
            "pending_withdrawals": _sum(
                db, WithdrawalRequest.amount,
                WithdrawalRequest.user_id == user.id, WithdrawalRequest.status == "pending",
            ),
            "active_reservations": db.query(Reservation).filter(
                Reservation.user_id == user.id, Reservation.status.in_(["reserved", "submitted"])
            ).count(),
            "completed_reservations": db.query(Reservation).filter(
                Reservation.user_id == user.id, Reservation.status == "approved"
            ).count(),
            "campaigns_created": db.query(Campaign).filter(Campaign.sponsor_id == user.id).count(),
        })
    return rows


def campaign_submissions(db: Session, campaign_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """Reservations that reached the submission stage, grouped per campaign."""
    query = db.query(Reservation).filter(
        Reservation.status.in_(["submitted", "approved", "rejected"])
    )
    if campaign_id is not None:
        query = query.filter(Reservation.campaign_id == campaign_id)
    grouped: Dict[int, Dict[str, Any]] = {}
    for reservation in query.order_by(Reservation.reserved_at.desc()).all():
        entry = grouped.setdefault(reservation.campaign_id, {"campaign": reservation.campaign, "reservations": []})
        entry["reservations"].append(reservation)
    return list(grouped.values())
