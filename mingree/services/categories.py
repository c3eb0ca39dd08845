from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from mingree.core.categories import CATEGORIES, is_valid_category
from mingree.core.errors import Conflict, NotFound, ValidationFailed
from mingree.core.tiers import get_tier_by_name, tier_number
from mingree.models.campaign import Campaign
from mingree.models.category_subscription import CategorySubscription
from mingree.models.user import User


def list_categories() -> List[Dict[str, Any]]:
    return [{"id": key, **value} for key, value in CATEGORIES.items()]


def list_groups(db: Session, user: User) -> List[CategorySubscription]:
    return (
        db.query(CategorySubscription)
        .filter(CategorySubscription.user_id == user.id)
        .order_by(CategorySubscription.created_at)
        .all()
    )


def join_group(db: Session, user: User, category: str, tier: str) -> CategorySubscription:
    if not category or not tier:
        raise ValidationFailed("Category and tier are required")
    if not is_valid_category(category):
        raise ValidationFailed("Invalid category")
    if not get_tier_by_name(tier):
        raise ValidationFailed("Invalid tier")
    if tier_number(tier) > tier_number(user.tier):
        raise ValidationFailed("You can only join groups at or below your tier")

    existing = db.query(CategorySubscription).filter(
        CategorySubscription.user_id == user.id,
        CategorySubscription.category == category,
        CategorySubscription.tier == tier,
    ).first()
    if existing:
        raise Conflict("Already subscribed to this group")

    group = CategorySubscription(user_id=user.id, category=category, tier=tier)
    db.add(group)
    db.commit()
    db.refresh(group)
    return group


def leave_group(db: Session, user: User, category: str, tier: str) -> None:
    if not category or not tier:
        raise ValidationFailed("Category and tier are required")
    deleted = db.query(CategorySubscription).filter(
        CategorySubscription.user_id == user.id,
        CategorySubscription.category == category,
        CategorySubscription.tier == tier,
    ).delete(synchronize_session=False)
    if not deleted:
        raise NotFound("Group subscription not found")
    db.commit()


def category_campaigns(db: Session, category: str, tier: Optional[str] = None) -> List[Campaign]:
    if not is_valid_category(category):
        raise NotFound("Category not found")
    query = db.query(Campaign).filter(
        Campaign.category == category,
        Campaign.is_approved == True,  # noqa: E712
        Campaign.status == "active",
    )
    if tier:
        query = query.filter(Campaign.tier == tier)
    return query.order_by(Campaign.created_at.desc()).all()


def group_feed(db: Session, user: User) -> List[Campaign]:
    """Active campaigns in any (category, tier) group the creator has joined."""
    groups = {(g.category, g.tier) for g in list_groups(db, user)}
    if not groups:
        return []
    categories = {category for category, _ in groups}
    campaigns = (
        db.query(Campaign)
        .filter(
            Campaign.category.in_(categories),
            Campaign.is_approved == True,  # noqa: E712
            Campaign.status == "active",
        )
        .order_by(Campaign.created_at.desc())
        .all()
    )
    return [c for c in campaigns if (c.category, c.tier) in groups]
