from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from mingree.db.session import get_db
from mingree.dependencies.auth import get_current_user
from mingree.models.user import User
from mingree.schemas.common import PromoCodeRequest
from mingree.services import promo_codes as promo_service

router = APIRouter()


def _jsonable(details: dict) -> dict:
    if details.get("credit_amount") is not None:
        details["credit_amount"] = float(details["credit_amount"])
    return details


@router.post("/validate")
def validate_promo_code(
    payload: PromoCodeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Check a code without redeeming it"""
    promo = promo_service.validate_promo_code(db, user, payload.code)
    return {"valid": True, **_jsonable(promo_service.describe(promo))}


@router.post("/apply")
def apply_promo_code(
    payload: PromoCodeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Redeem a code (once per user)"""
    return {"applied": True, **_jsonable(promo_service.apply_promo_code(db, user, payload.code))}
