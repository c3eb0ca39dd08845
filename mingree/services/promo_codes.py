"""
Promo codes: discount, trial and wallet-credit codes, each redeemable once per user.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mingree.core.errors import Conflict, NotFound, ValidationFailed
from mingree.core.tiers import to_money
from mingree.models.promo_code import PromoCode, PromoCodeUsage
from mingree.models.user import User
from mingree.services import ledger
from mingree.services.notifications import notify
from mingree.services.subscriptions import extend_pro

logger = logging.getLogger(__name__)

PROMO_TYPES = ("discount", "trial", "credit")
AFTER_TRIAL_ACTIONS = ("downgrade", "continue")


def _validate_definition(data: Dict[str, Any]) -> None:
    promo_type = data.get("type")
    if promo_type not in PROMO_TYPES:
        raise ValidationFailed("Promo type must be one of: " + ", ".join(PROMO_TYPES))
    if promo_type == "discount":
        percent = data.get("discount_percent")
        if percent is None or not 1 <= int(percent) <= 100:
            raise ValidationFailed("Discount percent must be between 1 and 100")
    elif promo_type == "trial":
        days = data.get("trial_days")
        if days is None or int(days) < 1:
            raise ValidationFailed("Trial days must be at least 1")
        if data.get("after_trial_action") not in AFTER_TRIAL_ACTIONS:
            raise ValidationFailed("after_trial_action must be 'downgrade' or 'continue'")
    elif promo_type == "credit":
        amount = data.get("credit_amount")
        if amount is None or to_money(amount) <= 0:
            raise ValidationFailed("Credit amount must be positive")
    valid_from, valid_until = data.get("valid_from"), data.get("valid_until")
    if valid_from and valid_until and valid_until < valid_from:
        raise ValidationFailed("valid_until must be after valid_from")


def create_promo_code(db: Session, data: Dict[str, Any]) -> PromoCode:
    code = (data.get("code") or "").strip().upper()
    if not code:
        raise ValidationFailed("Code is required")
    _validate_definition(data)
    if db.query(PromoCode).filter(PromoCode.code == code).first():
        raise Conflict("Promo code already exists")

    promo = PromoCode(**{**data, "code": code})
    db.add(promo)
    db.commit()
    db.refresh(promo)
    return promo


def list_promo_codes(db: Session) -> List[PromoCode]:
    return db.query(PromoCode).order_by(PromoCode.created_at.desc()).all()


def _get(db: Session, promo_id: int) -> PromoCode:
    promo = db.query(PromoCode).filter(PromoCode.id == promo_id).first()
    if not promo:
        raise NotFound("Promo code not found")
    return promo


def update_promo_code(db: Session, promo_id: int, data: Dict[str, Any]) -> PromoCode:
    promo = _get(db, promo_id)
    merged = {
        "type": promo.type,
        "discount_percent": promo.discount_percent,
        "trial_days": promo.trial_days,
        "after_trial_action": promo.after_trial_action,
        "credit_amount": promo.credit_amount,
        "valid_from": promo.valid_from,
        "valid_until": promo.valid_until,
        **data,
    }
    _validate_definition(merged)
    for key, value in data.items():
        setattr(promo, key, value)
    db.commit()
    db.refresh(promo)
    return promo


def toggle_promo_code(db: Session, promo_id: int) -> PromoCode:
    promo = _get(db, promo_id)
    promo.is_active = not promo.is_active
    db.commit()
    db.refresh(promo)
    return promo


def delete_promo_code(db: Session, promo_id: int) -> None:
    promo = _get(db, promo_id)
    db.query(PromoCodeUsage).filter(PromoCodeUsage.promo_code_id == promo.id).delete(synchronize_session=False)
    db.delete(promo)
    db.commit()


def validate_promo_code(db: Session, user: User, code: str) -> PromoCode:
    """Return the promo if this user may redeem it now, otherwise raise ValidationFailed."""
    normalized = (code or "").strip().upper()
    promo = db.query(PromoCode).filter(PromoCode.code == normalized).first()
    if not promo:
        raise ValidationFailed("Invalid promo code")
    if not promo.is_active:
        raise ValidationFailed("This promo code is no longer active")
    now = datetime.utcnow()
    if promo.valid_from and promo.valid_from > now:
        raise ValidationFailed("This promo code is not valid yet")
    if promo.valid_until and promo.valid_until < now:
        raise ValidationFailed("This promo code has expired")
    if promo.max_uses is not None and promo.current_uses >= promo.max_uses:
        raise ValidationFailed("This promo code has reached its usage limit")
    used = db.query(PromoCodeUsage).filter(
        PromoCodeUsage.promo_code_id == promo.id,
        PromoCodeUsage.user_id == user.id,
    ).first()
    if used:
        raise ValidationFailed("You have already used this promo code")
    return promo


def describe(promo: PromoCode) -> Dict[str, Any]:
    return {
        "code": promo.code,
        "type": promo.type,
        "description": promo.description,
        "discount_percent": promo.discount_percent,
        "trial_days": promo.trial_days,
        "after_trial_action": promo.after_trial_action,
        "credit_amount": to_money(promo.credit_amount) if promo.credit_amount is not None else None,
    }


def apply_promo_code(db: Session, user: User, code: str) -> Dict[str, Any]:
    promo = validate_promo_code(db, user, code)

    # Claim the usage first; the unique (code, user) index makes a concurrent
    # second redemption by the same user fail here.
    db.add(PromoCodeUsage(promo_code_id=promo.id, user_id=user.id))
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ValidationFailed("You have already used this promo code")

    usage_filter = [PromoCode.id == promo.id]
    if promo.max_uses is not None:
        usage_filter.append(PromoCode.current_uses < PromoCode.max_uses)
    claimed = db.query(PromoCode).filter(*usage_filter).update(
        {PromoCode.current_uses: PromoCode.current_uses + 1},
        synchronize_session="fetch",
    )
    if not claimed:
        db.rollback()
        raise ValidationFailed("This promo code has reached its usage limit")

    result = describe(promo)
    if promo.type == "trial":
        expires_at = extend_pro(user, days=promo.trial_days, trial=True)
        user.auto_renew = promo.after_trial_action == "continue"
        result["subscription_expires_at"] = expires_at.isoformat()
        notify(db, user.id, "promo_applied", "Trial activated",
               f"Promo {promo.code} unlocked Pro for {promo.trial_days} days.")
    elif promo.type == "credit":
        amount = to_money(promo.credit_amount)
        ledger.credit_balance(db, user, amount)
        ledger.record_transaction(
            db, user.id, "credit", "promo_credit",
            amount=amount, description=f"Promo code {promo.code}",
        )
        notify(db, user.id, "promo_applied", "Wallet credit added",
               f"Promo {promo.code} added INR {amount:.2f} to your wallet.")
    db.commit()
    logger.info("User %s redeemed promo %s", user.id, promo.code)
    return result
