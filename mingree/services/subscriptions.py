"""
Creator subscription state: Pro checks, trial downgrade, star rewards, and the
editable plan catalogue.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from mingree.core.errors import NotFound, ValidationFailed, Conflict
from mingree.core.plans import DEFAULT_PLANS, FREE_PLAN, PRO_PLAN, STARS_PER_REWARD
from mingree.core.tiers import to_money
from mingree.models.subscription_plan import SubscriptionPlan
from mingree.models.user import User
from mingree.services import ledger
from mingree.services.notifications import notify

logger = logging.getLogger(__name__)


def is_pro_active(user: User, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    return (
        user.subscription_plan == PRO_PLAN
        and user.subscription_expires_at is not None
        and user.subscription_expires_at > now
    )


def _downgrade(user: User) -> None:
    user.subscription_plan = FREE_PLAN
    user.subscription_expires_at = None
    user.is_trial_subscription = False
    user.auto_renew = False


def downgrade_if_trial_expired(db: Session, user: User) -> bool:
    """Drop an expired trial back to free. Returns True if the user changed."""
    if not user.is_trial_subscription or user.subscription_expires_at is None:
        return False
    if user.subscription_expires_at > datetime.utcnow():
        return False
    _downgrade(user)
    db.commit()
    db.refresh(user)
    logger.info("Trial expired for user %s, downgraded to free", user.id)
    return True


def downgrade_expired_trials(db: Session) -> int:
    users = db.query(User).filter(
        User.is_trial_subscription == True,  # noqa: E712
        User.subscription_expires_at < datetime.utcnow(),
    ).all()
    for user in users:
        _downgrade(user)
        notify(db, user.id, "subscription_expired", "Trial ended",
               "Your Pro trial has ended and your account is back on the free plan.")
    db.commit()
    return len(users)


def extend_pro(user: User, months: int = 0, days: int = 0, trial: bool = False) -> datetime:
    """Push Pro expiry forward from whichever is later: now or the current expiry."""
    now = datetime.utcnow()
    start = now
    if is_pro_active(user, now):
        start = user.subscription_expires_at
    expires_at = start + relativedelta(months=months) + timedelta(days=days)
    user.subscription_plan = PRO_PLAN
    user.subscription_expires_at = expires_at
    user.is_trial_subscription = trial
    return expires_at


def apply_star_reward(db: Session, user: User, stars: int, campaign_id: Optional[int] = None) -> int:
    """
    Add promotional stars; every STARS_PER_REWARD stars converts into one
    month of Pro. Returns the number of months granted.
    """
    user.stars = (user.stars or 0) + stars
    months = 0
    while user.stars >= STARS_PER_REWARD:
        user.stars -= STARS_PER_REWARD
        months += 1
    if months:
        expires_at = extend_pro(user, months=months)
        notify(
            db, user.id, "subscription_reward", "Pro subscription earned",
            f"You collected {STARS_PER_REWARD} stars! Your Pro subscription now runs until "
            f"{expires_at:%d %b %Y}.",
            campaign_id,
        )
    return months


def update_subscription(db: Session, user: User, plan: str, expires_at: Optional[datetime]) -> User:
    if plan not in (FREE_PLAN, PRO_PLAN) and not db.query(SubscriptionPlan).filter(SubscriptionPlan.name == plan).first():
        raise ValidationFailed("Unknown subscription plan")
    user.subscription_plan = plan
    user.subscription_expires_at = expires_at
    user.is_trial_subscription = False
    if plan == FREE_PLAN:
        user.auto_renew = False
    db.commit()
    db.refresh(user)
    return user


def get_status(user: User) -> Dict[str, Any]:
    return {
        "plan": user.subscription_plan,
        "expires_at": user.subscription_expires_at.isoformat() if user.subscription_expires_at else None,
        "is_active": is_pro_active(user),
        "is_trial": user.is_trial_subscription,
        "auto_renew": user.auto_renew,
        "stars": user.stars,
    }


def ensure_default_plans(db: Session) -> None:
    existing = {p.name for p in db.query(SubscriptionPlan).all()}
    added = False
    for name, settings in DEFAULT_PLANS.items():
        if name not in existing:
            db.add(SubscriptionPlan(name=name, **settings))
            added = True
    if added:
        db.commit()


def list_plans(db: Session, include_inactive: bool = False) -> List[SubscriptionPlan]:
    ensure_default_plans(db)
    query = db.query(SubscriptionPlan)
    if not include_inactive:
        query = query.filter(SubscriptionPlan.is_active == True)  # noqa: E712
    return query.order_by(SubscriptionPlan.price).all()


def get_plan(db: Session, name: str) -> SubscriptionPlan:
    ensure_default_plans(db)
    plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.name == name).first()
    if not plan:
        raise NotFound("Subscription plan not found")
    return plan


def create_plan(db: Session, data: Dict[str, Any]) -> SubscriptionPlan:
    if db.query(SubscriptionPlan).filter(SubscriptionPlan.name == data["name"]).first():
        raise Conflict("A plan with this name already exists")
    plan = SubscriptionPlan(**data)
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan


def update_plan(db: Session, plan_id: int, data: Dict[str, Any]) -> SubscriptionPlan:
    plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.id == plan_id).first()
    if not plan:
        raise NotFound("Subscription plan not found")
    for key, value in data.items():
        setattr(plan, key, value)
    db.commit()
    db.refresh(plan)
    return plan


def delete_plan(db: Session, plan_id: int) -> None:
    plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.id == plan_id).first()
    if not plan:
        raise NotFound("Subscription plan not found")
    if plan.name in (FREE_PLAN, PRO_PLAN):
        raise ValidationFailed("Built-in plans can be deactivated but not deleted")
    db.delete(plan)
    db.commit()


def record_subscription_payment(db: Session, user: User, plan_name: str = PRO_PLAN) -> User:
    """
    Admin-confirmed subscription payment: extends Pro by the plan's duration and
    books the price as platform earnings.
    """
    plan = get_plan(db, plan_name)
    if not plan.can_reserve or plan.duration_days <= 0:
        raise ValidationFailed("Only paid plans can be recorded as payments")
    expires_at = extend_pro(user, days=plan.duration_days)
    price = to_money(plan.price)
    ledger.adjust_admin_wallet(db, balance=price, earnings=price)
    ledger.record_admin_transaction(
        db, "credit", "subscription_payment", price,
        description=f"{plan.display_name} subscription for {user.handle}",
        user_id=user.id,
    )
    notify(db, user.id, "subscription_activated", "Subscription activated",
           f"Your {plan.display_name} subscription is active until {expires_at:%d %b %Y}.")
    db.commit()
    db.refresh(user)
    logger.info("Recorded %s payment of %s for user %s", plan.name, price, user.id)
    return user
