from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric
from datetime import datetime
from mingree.db.base import Base


class AdminWallet(Base):
    """
    Platform wallet (single row). balance holds escrowed sponsor money plus
    platform fees; total_* are running counters for the admin dashboard.
    """

    __tablename__ = "admin_wallet"

    id = Column(Integer, primary_key=True, index=True)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    total_earnings = Column(Numeric(12, 2), nullable=False, default=0)
    total_payouts = Column(Numeric(12, 2), nullable=False, default=0)
    total_refunds = Column(Numeric(12, 2), nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AdminTransaction(Base):
    __tablename__ = "admin_transactions"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False)  # credit | debit
    category = Column(String, nullable=False)  # campaign_deposit | creator_payout | sponsor_refund | subscription_payment
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
