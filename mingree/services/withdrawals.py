"""
Creator payouts: bank accounts and withdrawal requests.

The balance is debited when the request is made (so it can't be spent twice)
and handed back if an admin rejects the request.
"""
import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from mingree.core.errors import Forbidden, NotFound, ValidationFailed, InsufficientBalance
from mingree.core.tiers import GST_PERCENT, round_rupees, to_money
from mingree.models.transaction import Transaction
from mingree.models.user import User
from mingree.models.withdrawal import BankAccount, WithdrawalRequest
from mingree.services import ledger
from mingree.services.email import send_withdrawal_processed_email
from mingree.services.notifications import notify
from mingree.services.settings import DEFAULT_MIN_WITHDRAWAL, MIN_WITHDRAWAL_KEY, get_setting, parse_amount_setting

logger = logging.getLogger(__name__)

IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
CURRENCY = "INR"


def min_withdrawal_amount(db: Session) -> Decimal:
    value = get_setting(db, MIN_WITHDRAWAL_KEY, DEFAULT_MIN_WITHDRAWAL)
    amount = parse_amount_setting(value)
    if amount is None:
        logger.warning("Ignoring invalid %s setting %r, using %s", MIN_WITHDRAWAL_KEY, value, DEFAULT_MIN_WITHDRAWAL)
        amount = parse_amount_setting(DEFAULT_MIN_WITHDRAWAL)
        if amount is None:
            amount = Decimal("500")
    return to_money(amount)


def wallet_info(db: Session) -> Dict[str, Any]:
    return {
        "min_withdrawal_amount": min_withdrawal_amount(db),
        "currency": CURRENCY,
        "gst_percent": int(GST_PERCENT),
    }


def gst_for(amount: Decimal) -> Decimal:
    return round_rupees(amount * GST_PERCENT / Decimal("100"))


# Bank accounts

def add_bank_account(db: Session, user: User, data: Dict[str, Any]) -> BankAccount:
    for field in ("account_holder_name", "account_number", "ifsc_code", "bank_name"):
        if not (data.get(field) or "").strip():
            raise ValidationFailed(f"{field} is required")
    ifsc = data["ifsc_code"].strip().upper()
    if not IFSC_PATTERN.match(ifsc):
        raise ValidationFailed("Invalid IFSC code")

    has_accounts = db.query(BankAccount).filter(BankAccount.user_id == user.id).count() > 0
    account = BankAccount(
        user_id=user.id,
        account_holder_name=data["account_holder_name"].strip(),
        account_number=data["account_number"].strip(),
        ifsc_code=ifsc,
        bank_name=data["bank_name"].strip(),
        upi_id=(data.get("upi_id") or "").strip() or None,
        is_default=not has_accounts,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def list_bank_accounts(db: Session, user: User) -> List[BankAccount]:
    return (
        db.query(BankAccount)
        .filter(BankAccount.user_id == user.id)
        .order_by(BankAccount.is_default.desc(), BankAccount.created_at)
        .all()
    )


def _owned_account(db: Session, user: User, account_id: int) -> BankAccount:
    account = db.query(BankAccount).filter(BankAccount.id == account_id).first()
    if not account:
        raise NotFound("Bank account not found")
    if account.user_id != user.id:
        raise Forbidden("This bank account does not belong to you")
    return account


def delete_bank_account(db: Session, user: User, account_id: int) -> None:
    account = _owned_account(db, user, account_id)
    was_default = account.is_default
    db.delete(account)
    db.flush()
    if was_default:
        replacement = db.query(BankAccount).filter(BankAccount.user_id == user.id).order_by(BankAccount.created_at).first()
        if replacement:
            replacement.is_default = True
    db.commit()


def set_default_bank_account(db: Session, user: User, account_id: int) -> BankAccount:
    account = _owned_account(db, user, account_id)
    db.query(BankAccount).filter(
        BankAccount.user_id == user.id,
        BankAccount.id != account.id,
    ).update({BankAccount.is_default: False}, synchronize_session="fetch")
    account.is_default = True
    db.commit()
    db.refresh(account)
    return account


# Withdrawal requests

def _parse_amount(amount) -> Decimal:
    try:
        value = to_money(amount)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationFailed("Amount must be a positive number")
    if value <= 0:
        raise ValidationFailed("Amount must be a positive number")
    return value


def request_withdrawal(db: Session, user: User, amount, bank_account_id: int) -> WithdrawalRequest:
    amount = _parse_amount(amount)
    minimum = min_withdrawal_amount(db)
    if amount < minimum:
        raise ValidationFailed(f"Minimum withdrawal amount is INR {minimum:.0f}")
    balance = to_money(user.balance or 0)
    if amount > balance:
        raise InsufficientBalance(required=amount, available=balance)

    pending = db.query(WithdrawalRequest).filter(
        WithdrawalRequest.user_id == user.id,
        WithdrawalRequest.status == "pending",
    ).first()
    if pending:
        raise ValidationFailed("You already have a pending withdrawal request")

    account = _owned_account(db, user, bank_account_id)

    gst = gst_for(amount)
    net = amount - gst
    request = WithdrawalRequest(
        user_id=user.id,
        bank_account_id=account.id,
        amount=amount,
        gst_amount=gst,
        net_amount=net,
        status="pending",
    )
    db.add(request)
    db.flush()

    ledger.debit_balance(db, user, amount)
    ledger.record_transaction(
        db, user.id, "debit", "withdrawal",
        amount=amount, tax=gst, net=net,
        description=f"Withdrawal to {account.bank_name} {account.masked_account_number}",
        status="pending",
        withdrawal_request_id=request.id,
    )
    notify(
        db, user.id, "withdrawal_requested", "Withdrawal requested",
        f"Your withdrawal of INR {amount:.2f} is being processed. You will receive INR {net:.2f} after GST.",
    )
    db.commit()
    db.refresh(request)
    logger.info("Withdrawal %s requested by user %s for %s", request.id, user.id, amount)
    return request


def list_user_withdrawals(db: Session, user: User) -> List[WithdrawalRequest]:
    return (
        db.query(WithdrawalRequest)
        .filter(WithdrawalRequest.user_id == user.id)
        .order_by(WithdrawalRequest.requested_at.desc())
        .all()
    )


def _pending_request(db: Session, request_id: int) -> WithdrawalRequest:
    request = db.query(WithdrawalRequest).filter(WithdrawalRequest.id == request_id).first()
    if not request:
        raise NotFound("Withdrawal request not found")
    if request.status != "pending":
        raise ValidationFailed(f"Withdrawal request is already {request.status}")
    return request


def _request_transaction(db: Session, request: WithdrawalRequest):
    return db.query(Transaction).filter(
        Transaction.withdrawal_request_id == request.id,
        Transaction.category == "withdrawal",
    ).first()


def approve_withdrawal(db: Session, request_id: int, utr_number: str) -> WithdrawalRequest:
    utr = (utr_number or "").strip()
    if len(utr) < 5:
        raise ValidationFailed("A valid UTR number (at least 5 characters) is required")
    request = _pending_request(db, request_id)

    request.status = "completed"
    request.utr_number = utr
    request.processed_at = datetime.utcnow()
    tx = _request_transaction(db, request)
    if tx:
        tx.status = "completed"
    notify(
        db, request.user_id, "withdrawal_approved", "Withdrawal completed",
        f"INR {to_money(request.net_amount):.2f} has been sent to your bank account. UTR: {utr}",
    )
    db.commit()
    db.refresh(request)

    if request.user is not None:
        send_withdrawal_processed_email(request.user.email, to_money(request.amount), to_money(request.net_amount), utr)
    logger.info("Withdrawal %s completed (UTR %s)", request.id, utr)
    return request


def reject_withdrawal(db: Session, request_id: int, admin_note: str = "") -> WithdrawalRequest:
    request = _pending_request(db, request_id)
    amount = to_money(request.amount)

    request.status = "rejected"
    request.admin_note = admin_note or None
    request.processed_at = datetime.utcnow()
    tx = _request_transaction(db, request)
    if tx:
        tx.status = "cancelled"

    user = db.query(User).filter(User.id == request.user_id).first()
    if user:
        ledger.credit_balance(db, user, amount)
        ledger.record_transaction(
            db, user.id, "credit", "refund",
            amount=amount, tax=Decimal("0.00"), net=amount,
            description="Withdrawal rejected - amount refunded",
            withdrawal_request_id=request.id,
        )
        message = f"Your withdrawal of INR {amount:.2f} was rejected and the amount was returned to your wallet."
        if admin_note:
            message += f" Note: {admin_note}"
        notify(db, user.id, "withdrawal_rejected", "Withdrawal rejected", message)
    db.commit()
    db.refresh(request)
    logger.info("Withdrawal %s rejected", request.id)
    return request
