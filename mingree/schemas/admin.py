from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CampaignApproval(BaseModel):
    is_promotional: bool = False
    star_reward: int = Field(0, ge=0)


class CampaignStatusUpdate(BaseModel):
    status: str


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class WithdrawalApproval(BaseModel):
    utr_number: str


class WithdrawalRejection(BaseModel):
    admin_note: Optional[str] = ""


class SettingUpdate(BaseModel):
    key: str
    value: str
    description: Optional[str] = None


class SubscriptionUpdate(BaseModel):
    plan: str
    expires_at: Optional[datetime] = None


class SubscriptionPayment(BaseModel):
    plan: str = "pro"


class PromoCodeCreate(BaseModel):
    code: str
    type: str
    description: Optional[str] = None
    discount_percent: Optional[int] = None
    trial_days: Optional[int] = None
    after_trial_action: Optional[str] = None
    credit_amount: Optional[float] = None
    max_uses: Optional[int] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True


class PromoCodeUpdate(BaseModel):
    description: Optional[str] = None
    discount_percent: Optional[int] = None
    trial_days: Optional[int] = None
    after_trial_action: Optional[str] = None
    credit_amount: Optional[float] = None
    max_uses: Optional[int] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class PromoCodeResponse(BaseModel):
    id: int
    code: str
    type: str
    description: Optional[str] = None
    discount_percent: Optional[int] = None
    trial_days: Optional[int] = None
    after_trial_action: Optional[str] = None
    credit_amount: Optional[float] = None
    max_uses: Optional[int] = None
    current_uses: int
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool

    class Config:
        from_attributes = True


class PlanCreate(BaseModel):
    name: str
    display_name: str
    price: float = 0
    duration_days: int = 30
    can_reserve: bool = False
    features: Optional[str] = None
    is_active: bool = True


class PlanUpdate(BaseModel):
    display_name: Optional[str] = None
    price: Optional[float] = None
    duration_days: Optional[int] = None
    can_reserve: Optional[bool] = None
    features: Optional[str] = None
    is_active: Optional[bool] = None
