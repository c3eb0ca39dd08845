"""
Ledger entry writer and balance mutator.

Every money movement appends a Transaction (user side) and/or an
AdminTransaction (platform side). Balances only change through the guarded
single-statement UPDATEs below so concurrent requests can't overdraw a wallet.
"""
import logging
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from mingree.core.errors import InsufficientBalance
from mingree.core.tiers import to_money
from mingree.models.admin_wallet import AdminWallet, AdminTransaction
from mingree.models.transaction import Transaction
from mingree.models.user import User

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def record_transaction(
    db: Session,
    user_id: int,
    type: str,
    category: str,
    amount,
    tax=ZERO,
    net=None,
    description: Optional[str] = None,
    status: str = "completed",
    campaign_id: Optional[int] = None,
    reservation_id: Optional[int] = None,
    withdrawal_request_id: Optional[int] = None,
) -> Transaction:
    amount = to_money(amount)
    tax = to_money(tax)
    net = to_money(net) if net is not None else amount - tax
    tx = Transaction(
        user_id=user_id,
        type=type,
        category=category,
        amount=amount,
        tax=tax,
        net=net,
        description=description,
        status=status,
        campaign_id=campaign_id,
        reservation_id=reservation_id,
        withdrawal_request_id=withdrawal_request_id,
    )
    db.add(tx)
    return tx


def credit_balance(db: Session, user: User, amount) -> None:
    amount = to_money(amount)
    db.query(User).filter(User.id == user.id).update(
        {User.balance: User.balance + amount},
        synchronize_session="fetch",
    )
    logger.info("Credited %s to user %s", amount, user.id)


def debit_balance(db: Session, user: User, amount) -> None:
    """Subtract amount from the user's balance, or raise InsufficientBalance."""
    amount = to_money(amount)
    updated = db.query(User).filter(
        User.id == user.id,
        User.balance >= amount,
    ).update(
        {User.balance: User.balance - amount},
        synchronize_session="fetch",
    )
    if not updated:
        raise InsufficientBalance(required=amount, available=to_money(user.balance or 0))
    logger.info("Debited %s from user %s", amount, user.id)


def get_admin_wallet(db: Session) -> AdminWallet:
    wallet = db.query(AdminWallet).order_by(AdminWallet.id).first()
    if not wallet:
        wallet = AdminWallet(
            balance=ZERO,
            total_earnings=ZERO,
            total_payouts=ZERO,
            total_refunds=ZERO,
        )
        db.add(wallet)
        db.flush()
    return wallet


def adjust_admin_wallet(db: Session, balance=ZERO, earnings=ZERO, payouts=ZERO, refunds=ZERO) -> AdminWallet:
    """Apply deltas to the platform wallet counters in one statement."""
    wallet = get_admin_wallet(db)
    db.query(AdminWallet).filter(AdminWallet.id == wallet.id).update(
        {
            AdminWallet.balance: AdminWallet.balance + to_money(balance),
            AdminWallet.total_earnings: AdminWallet.total_earnings + to_money(earnings),
            AdminWallet.total_payouts: AdminWallet.total_payouts + to_money(payouts),
            AdminWallet.total_refunds: AdminWallet.total_refunds + to_money(refunds),
        },
        synchronize_session="fetch",
    )
    return wallet


def record_admin_transaction(
    db: Session,
    type: str,
    category: str,
    amount,
    description: Optional[str] = None,
    campaign_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> AdminTransaction:
    tx = AdminTransaction(
        type=type,
        category=category,
        amount=to_money(amount),
        description=description,
        campaign_id=campaign_id,
        user_id=user_id,
    )
    db.add(tx)
    return tx
