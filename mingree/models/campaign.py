from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from mingree.db.base import Base


class Campaign(Base):
    """
    A sponsor-funded listing with a fixed number of creator spots.

    Escrow: total_budget is what the sponsor put aside for creators
    (pay_amount * total_spots). Approved submissions move money into
    released_amount; the deadline refund job moves the rest into
    refunded_amount.
    """

    __tablename__ = "campaigns"
    __table_args__ = (
        CheckConstraint("spots_remaining >= 0", name="ck_campaigns_spots_non_negative"),
        CheckConstraint("spots_remaining <= total_spots", name="ck_campaigns_spots_within_total"),
        CheckConstraint(
            "released_amount + refunded_amount <= total_budget",
            name="ck_campaigns_escrow_within_budget",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    sponsor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String, nullable=False)
    brand = Column(String, nullable=False)
    brand_logo = Column(String, nullable=True)
    category = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)

    tier = Column(String, nullable=False)  # "Tier 1".."Tier 20"
    min_followers = Column(Integer, default=0, nullable=False)
    type = Column(String, nullable=False, default="reel")
    content_types = Column(String, nullable=True)  # comma separated
    promotion_style = Column(String, nullable=False, default="face_ad")
    target_countries = Column(String, nullable=False, default="IN")  # comma separated ISO codes

    pay_amount = Column(Numeric(10, 2), nullable=False, default=0)
    deadline = Column(DateTime, nullable=False)
    total_spots = Column(Integer, nullable=False)
    spots_remaining = Column(Integer, nullable=False)

    status = Column(String, nullable=False, default="active")  # active | paused | completed | rejected
    is_approved = Column(Boolean, default=False, nullable=False)
    is_promotional = Column(Boolean, default=False, nullable=False)
    star_reward = Column(Integer, default=0, nullable=False)

    campaign_type = Column(String, nullable=False, default="cash")  # cash | product
    product_name = Column(String, nullable=True)
    product_value = Column(Numeric(10, 2), nullable=True)

    total_budget = Column(Numeric(10, 2), nullable=False, default=0)
    released_amount = Column(Numeric(10, 2), nullable=False, default=0)
    refunded_amount = Column(Numeric(10, 2), nullable=False, default=0)
    escrow_status = Column(String, nullable=False, default="active")  # active | product | completed | refunded

    created_at = Column(DateTime, default=datetime.utcnow)

    sponsor = relationship("User")

    @property
    def target_country_list(self):
        return [c.strip().upper() for c in (self.target_countries or "").split(",") if c.strip()]

    def __repr__(self):
        return f"<Campaign(id={self.id}, title={self.title}, spots={self.spots_remaining}/{self.total_spots})>"
