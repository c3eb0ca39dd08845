from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    campaign_id: Optional[int] = None
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryGroupRequest(BaseModel):
    category: str
    tier: str


class CategoryGroupResponse(BaseModel):
    id: int
    category: str
    tier: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PromoCodeRequest(BaseModel):
    code: str


class SubscriptionPlanResponse(BaseModel):
    id: int
    name: str
    display_name: str
    price: float
    duration_days: int
    can_reserve: bool
    features: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True
