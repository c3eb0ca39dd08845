"""
Admin console: moderation of users, campaigns, submissions and payouts, plus
platform wallet, settings, plans and promo codes.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from mingree.core.errors import NotFound
from mingree.db.session import get_db
from mingree.dependencies.auth import require_admin
from mingree.models.admin_wallet import AdminTransaction
from mingree.models.transaction import Transaction
from mingree.models.user import User
from mingree.models.withdrawal import WithdrawalRequest
from mingree.schemas.admin import (
    CampaignApproval,
    CampaignStatusUpdate,
    PlanCreate,
    PlanUpdate,
    PromoCodeCreate,
    PromoCodeResponse,
    PromoCodeUpdate,
    RejectRequest,
    SettingUpdate,
    SubscriptionPayment,
    SubscriptionUpdate,
    WithdrawalApproval,
    WithdrawalRejection,
)
from mingree.schemas.auth import UserResponse
from mingree.schemas.campaign import CampaignResponse, ReservationResponse
from mingree.schemas.common import SubscriptionPlanResponse
from mingree.schemas.wallet import DepositConfirm, TransactionResponse, WithdrawalResponse
from mingree.services import admin as admin_service
from mingree.services import campaigns as campaign_service
from mingree.services import escrow, ledger
from mingree.services import promo_codes as promo_service
from mingree.services import reservations as reservation_service
from mingree.services import settings as settings_service
from mingree.services import subscriptions as subscription_service
from mingree.services import users as user_service
from mingree.services import withdrawals as withdrawal_service

router = APIRouter()


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


# Dashboard & users

@router.get("/stats")
def stats(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    data = admin_service.dashboard_stats(db)
    data["pending_withdrawal_amount"] = float(data["pending_withdrawal_amount"])
    data["total_withdrawals_processed"] = float(data["total_withdrawals_processed"])
    return data


@router.get("/users")
def list_users(
    role: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Users with earnings, payouts and activity counts"""
    rows = []
    for row in admin_service.list_users(db, role):
        user = UserResponse.model_validate(row.pop("user")).model_dump(mode="json")
        user.update({
            "total_earnings": float(row["total_earnings"]),
            "pending_withdrawals": float(row["pending_withdrawals"]),
            "active_reservations": row["active_reservations"],
            "completed_reservations": row["completed_reservations"],
            "campaigns_created": row["campaigns_created"],
        })
        rows.append(user)
    return rows


@router.post("/users/{user_id}/verify", response_model=UserResponse)
def verify_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = _get_user(db, user_id)
    user.is_verified = True
    db.commit()
    db.refresh(user)
    return user


@router.post("/users/{user_id}/instagram/verify", response_model=UserResponse)
def verify_instagram(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return user_service.set_instagram_verification(db, user_id, True)


@router.post("/users/{user_id}/instagram/reject", response_model=UserResponse)
def reject_instagram(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return user_service.set_instagram_verification(db, user_id, False)


@router.put("/users/{user_id}/subscription", response_model=UserResponse)
def set_subscription(
    user_id: int,
    payload: SubscriptionUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Set a user's plan and expiry directly"""
    user = _get_user(db, user_id)
    return subscription_service.update_subscription(db, user, payload.plan, payload.expires_at)


@router.post("/users/{user_id}/subscription-payment", response_model=UserResponse)
def record_subscription_payment(
    user_id: int,
    payload: SubscriptionPayment,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Record a settled subscription payment and extend the plan"""
    user = _get_user(db, user_id)
    return subscription_service.record_subscription_payment(db, user, payload.plan)


@router.post("/deposits")
def confirm_deposit(
    payload: DepositConfirm,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Credit a settled sponsor wallet top-up"""
    sponsor = _get_user(db, payload.user_id)
    quote = escrow.confirm_deposit(db, sponsor, payload.amount, payload.reference)
    return {key: float(value) for key, value in quote.items()}


# Campaigns

@router.get("/campaigns/pending", response_model=List[CampaignResponse])
def pending_campaigns(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return campaign_service.pending_approval(db)


@router.post("/campaigns/{campaign_id}/approve", response_model=CampaignResponse)
def approve_campaign(
    campaign_id: int,
    payload: CampaignApproval,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return campaign_service.approve_campaign(db, campaign_id, payload.is_promotional, payload.star_reward)


@router.post("/campaigns/{campaign_id}/reject", response_model=CampaignResponse)
def reject_campaign(
    campaign_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Reject a campaign awaiting approval and refund the sponsor in full"""
    return escrow.reject_campaign(db, campaign_id, payload.reason)


@router.patch("/campaigns/{campaign_id}/status", response_model=CampaignResponse)
def update_campaign_status(
    campaign_id: int,
    payload: CampaignStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return campaign_service.set_status(db, campaign_id, payload.status)


@router.get("/campaign-submissions")
def campaign_submissions(
    campaign_id: Optional[int] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Submissions grouped by campaign"""
    return [
        {
            "campaign": CampaignResponse.model_validate(group["campaign"]).model_dump(mode="json"),
            "reservations": [
                ReservationResponse.model_validate(r).model_dump(mode="json", exclude={"campaign"})
                for r in group["reservations"]
            ],
        }
        for group in admin_service.campaign_submissions(db, campaign_id)
    ]


@router.post("/reservations/{reservation_id}/approve")
def approve_submission(
    reservation_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Approve submitted content and pay the creator"""
    result = reservation_service.approve_submission(db, reservation_id)
    for key in ("amount", "tax", "net"):
        if key in result:
            result[key] = float(result[key])
    return result


@router.post("/reservations/{reservation_id}/reject", response_model=ReservationResponse)
def reject_submission(
    reservation_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return reservation_service.reject_submission(db, reservation_id, payload.reason)


@router.post("/escrow/process-refunds")
def process_escrow_refunds(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Run the deadline refund pass now"""
    result = escrow.process_escrow_refunds(db)
    return {"processed": result["processed"], "total_refunded": float(result["total_refunded"])}


# Withdrawals & ledger

@router.get("/withdrawals")
def list_withdrawals(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Withdrawal requests with masked bank details"""
    query = db.query(WithdrawalRequest)
    if status_filter:
        query = query.filter(WithdrawalRequest.status == status_filter)
    rows = []
    for request in query.order_by(WithdrawalRequest.requested_at.desc()).all():
        row = WithdrawalResponse.model_validate(request).model_dump(mode="json")
        account = request.bank_account
        row["user"] = {"id": request.user_id, "name": request.user.name, "email": request.user.email} if request.user else None
        row["bank_account"] = {
            "account_holder_name": account.account_holder_name,
            "account_number": account.masked_account_number,
            "ifsc_code": account.ifsc_code,
            "bank_name": account.bank_name,
            "upi_id": account.upi_id,
        } if account else None
        rows.append(row)
    return rows


@router.post("/withdrawals/{request_id}/approve", response_model=WithdrawalResponse)
def approve_withdrawal(
    request_id: int,
    payload: WithdrawalApproval,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return withdrawal_service.approve_withdrawal(db, request_id, payload.utr_number)


@router.post("/withdrawals/{request_id}/reject", response_model=WithdrawalResponse)
def reject_withdrawal(
    request_id: int,
    payload: WithdrawalRejection,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return withdrawal_service.reject_withdrawal(db, request_id, payload.admin_note or "")


@router.get("/transactions", response_model=List[TransactionResponse])
def all_transactions(
    limit: int = 200,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return db.query(Transaction).order_by(Transaction.created_at.desc(), Transaction.id.desc()).limit(limit).all()


@router.get("/wallet")
def admin_wallet(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    wallet = ledger.get_admin_wallet(db)
    db.commit()
    return {
        "balance": float(wallet.balance),
        "total_earnings": float(wallet.total_earnings),
        "total_payouts": float(wallet.total_payouts),
        "total_refunds": float(wallet.total_refunds),
        "updated_at": wallet.updated_at.isoformat() if wallet.updated_at else None,
    }


@router.get("/wallet/transactions")
def admin_wallet_transactions(
    limit: int = 200,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    rows = db.query(AdminTransaction).order_by(AdminTransaction.created_at.desc(), AdminTransaction.id.desc()).limit(limit).all()
    return [
        {
            "id": tx.id,
            "type": tx.type,
            "category": tx.category,
            "amount": float(tx.amount),
            "description": tx.description,
            "campaign_id": tx.campaign_id,
            "user_id": tx.user_id,
            "created_at": tx.created_at.isoformat() if tx.created_at else None,
        }
        for tx in rows
    ]


# Settings

@router.get("/settings")
def list_settings(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return [
        {"key": s.key, "value": s.value, "description": s.description}
        for s in settings_service.list_settings(db)
    ]


@router.put("/settings")
def upsert_setting(
    payload: SettingUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    setting = settings_service.set_setting(db, payload.key, payload.value, payload.description)
    return {"key": setting.key, "value": setting.value, "description": setting.description}


# Subscription plans

@router.get("/subscription-plans", response_model=List[SubscriptionPlanResponse])
def list_plans(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return subscription_service.list_plans(db, include_inactive=True)


@router.post("/subscription-plans", response_model=SubscriptionPlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(payload: PlanCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return subscription_service.create_plan(db, payload.model_dump())


@router.patch("/subscription-plans/{plan_id}", response_model=SubscriptionPlanResponse)
def update_plan(
    plan_id: int,
    payload: PlanUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return subscription_service.update_plan(db, plan_id, payload.model_dump(exclude_unset=True))


@router.delete("/subscription-plans/{plan_id}")
def delete_plan(plan_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    subscription_service.delete_plan(db, plan_id)
    return {"message": "Plan deleted"}


# Promo codes

@router.get("/promo-codes", response_model=List[PromoCodeResponse])
def list_promo_codes(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return promo_service.list_promo_codes(db)


@router.post("/promo-codes", response_model=PromoCodeResponse, status_code=status.HTTP_201_CREATED)
def create_promo_code(payload: PromoCodeCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return promo_service.create_promo_code(db, payload.model_dump())


@router.patch("/promo-codes/{promo_id}", response_model=PromoCodeResponse)
def update_promo_code(
    promo_id: int,
    payload: PromoCodeUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    return promo_service.update_promo_code(db, promo_id, payload.model_dump(exclude_unset=True))


@router.post("/promo-codes/{promo_id}/toggle", response_model=PromoCodeResponse)
def toggle_promo_code(promo_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return promo_service.toggle_promo_code(db, promo_id)


@router.delete("/promo-codes/{promo_id}")
def delete_promo_code(promo_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    promo_service.delete_promo_code(db, promo_id)
    return {"message": "Promo code deleted"}
