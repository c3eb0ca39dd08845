from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from mingree.db.session import get_db
from mingree.dependencies.auth import get_current_user
from mingree.models.transaction import Transaction
from mingree.models.user import User
from mingree.schemas.wallet import (
    BankAccountCreate,
    BankAccountResponse,
    TransactionResponse,
    WithdrawalCreate,
    WithdrawalResponse,
)
from mingree.services import withdrawals as withdrawal_service

router = APIRouter()


@router.get("/info")
def wallet_info(db: Session = Depends(get_db)):
    """Withdrawal limits and currency"""
    info = withdrawal_service.wallet_info(db)
    info["min_withdrawal_amount"] = float(info["min_withdrawal_amount"])
    return info


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Ledger entries for the current user, newest first"""
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user.id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )


@router.get("/bank-accounts", response_model=List[BankAccountResponse])
def list_bank_accounts(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Saved payout accounts"""
    return withdrawal_service.list_bank_accounts(db, user)


@router.post("/bank-accounts", response_model=BankAccountResponse, status_code=status.HTTP_201_CREATED)
def add_bank_account(
    payload: BankAccountCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Add a payout account (the first one becomes the default)"""
    return withdrawal_service.add_bank_account(db, user, payload.model_dump())


@router.delete("/bank-accounts/{account_id}")
def delete_bank_account(
    account_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Remove a payout account"""
    withdrawal_service.delete_bank_account(db, user, account_id)
    return {"message": "Bank account deleted"}


@router.post("/bank-accounts/{account_id}/default", response_model=BankAccountResponse)
def set_default_bank_account(
    account_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Make a payout account the default"""
    return withdrawal_service.set_default_bank_account(db, user, account_id)


@router.get("/withdrawals", response_model=List[WithdrawalResponse])
def list_withdrawals(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Withdrawal history"""
    return withdrawal_service.list_user_withdrawals(db, user)


@router.post("/withdrawals", response_model=WithdrawalResponse, status_code=status.HTTP_201_CREATED)
def request_withdrawal(
    payload: WithdrawalCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Request a payout; the amount leaves the balance immediately"""
    return withdrawal_service.request_withdrawal(db, user, payload.amount, payload.bank_account_id)
