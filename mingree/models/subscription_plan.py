from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric
from datetime import datetime
from mingree.db.base import Base


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)  # free | pro | ...
    display_name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    duration_days = Column(Integer, nullable=False, default=30)
    can_reserve = Column(Boolean, default=False, nullable=False)
    features = Column(String, nullable=True)  # comma separated
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
