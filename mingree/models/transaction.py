from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric
from datetime import datetime
from mingree.db.base import Base


class Transaction(Base):
    """
    Append-only ledger row for a user's wallet.

    amount is gross, tax is what was withheld (fee, GST or TDS), net is what
    actually hit (or left) the balance.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)  # credit | debit
    category = Column(String, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    net = Column(Numeric(10, 2), nullable=False)
    description = Column(String, nullable=True)
    status = Column(String, nullable=False, default="completed")  # completed | pending | cancelled
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True)
    withdrawal_request_id = Column(Integer, ForeignKey("withdrawal_requests.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
