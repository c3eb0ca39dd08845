import os
from decimal import Decimal, InvalidOperation
from typing import List, Optional
from sqlalchemy.orm import Session

from mingree.core.errors import ValidationFailed
from mingree.models.app_setting import AppSetting

MIN_WITHDRAWAL_KEY = "min_withdrawal_amount"
DEFAULT_MIN_WITHDRAWAL = os.getenv("MIN_WITHDRAWAL_AMOUNT", "500")

# Settings whose value must parse as a non-negative amount
NUMERIC_SETTINGS = (MIN_WITHDRAWAL_KEY,)


def parse_amount_setting(value: Optional[str]) -> Optional[Decimal]:
    """Decimal value of an amount setting, or None when it isn't a usable number."""
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def get_setting(db: Session, key: str, default: Optional[str] = None) -> Optional[str]:
    setting = db.query(AppSetting).filter(AppSetting.key == key).first()
    return setting.value if setting else default


def set_setting(db: Session, key: str, value: str, description: Optional[str] = None) -> AppSetting:
    if key in NUMERIC_SETTINGS and parse_amount_setting(value) is None:
        raise ValidationFailed(f"{key} must be a non-negative number")
    setting = db.query(AppSetting).filter(AppSetting.key == key).first()
    if setting:
        setting.value = value
        if description is not None:
            setting.description = description
    else:
        setting = AppSetting(key=key, value=value, description=description)
        db.add(setting)
    db.commit()
    db.refresh(setting)
    return setting


def list_settings(db: Session) -> List[AppSetting]:
    return db.query(AppSetting).order_by(AppSetting.key).all()
