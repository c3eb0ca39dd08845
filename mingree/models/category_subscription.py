from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime
from mingree.db.base import Base


class CategorySubscription(Base):
    """A creator's opt-in to a (category, tier) group."""

    __tablename__ = "category_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "category", "tier", name="uq_category_subscriptions_user_group"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String, nullable=False)
    tier = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
