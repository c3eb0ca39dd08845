from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric
from datetime import datetime
from mingree.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    handle = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="creator")  # creator | sponsor | admin
    company_name = Column(String, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)

    followers = Column(Integer, default=0, nullable=False)
    tier = Column(String, default="Tier 1", nullable=False)  # "Tier N" for creators, "Sponsor" for sponsors
    balance = Column(Numeric(10, 2), default=0, nullable=False)
    country = Column(String, default="IN", nullable=False)

    instagram_username = Column(String, nullable=True)
    instagram_profile_url = Column(String, nullable=True)
    instagram_followers = Column(Integer, nullable=True)
    instagram_verification_status = Column(String, default="none", nullable=False)  # none | pending | verified | rejected

    subscription_plan = Column(String, default="free", nullable=False)
    subscription_expires_at = Column(DateTime, nullable=True)
    is_trial_subscription = Column(Boolean, default=False, nullable=False)
    auto_renew = Column(Boolean, default=False, nullable=False)
    stars = Column(Integer, default=0, nullable=False)  # promotional reward counter

    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, handle={self.handle}, role={self.role})>"
