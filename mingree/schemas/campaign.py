from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class CampaignCreate(BaseModel):
    title: str = Field(..., min_length=2)
    brand: Optional[str] = None
    brand_logo: Optional[str] = None
    category: str
    description: Optional[str] = None
    tier: str
    min_followers: int = 0
    type: str = "reel"
    content_types: List[str] = []
    promotion_style: str = "face_ad"
    target_countries: Optional[List[str]] = None
    pay_amount: Optional[float] = None
    deadline: datetime
    total_spots: int = Field(..., ge=1)
    campaign_type: str = "cash"
    product_name: Optional[str] = None
    product_value: Optional[float] = None


class CampaignResponse(BaseModel):
    id: int
    sponsor_id: Optional[int] = None
    title: str
    brand: str
    brand_logo: Optional[str] = None
    category: str
    description: Optional[str] = None
    tier: str
    min_followers: int
    type: str
    content_types: Optional[str] = None
    promotion_style: str
    target_countries: str
    pay_amount: float
    deadline: datetime
    total_spots: int
    spots_remaining: int
    status: str
    is_approved: bool
    is_promotional: bool
    star_reward: int
    campaign_type: str
    product_name: Optional[str] = None
    product_value: Optional[float] = None
    total_budget: float
    released_amount: float
    refunded_amount: float
    escrow_status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmissionCreate(BaseModel):
    link: str = Field(..., min_length=1)
    clip_url: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class SubmissionResponse(BaseModel):
    id: int
    reservation_id: int
    link: str
    clip_url: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    class Config:
        from_attributes = True


class ReservationResponse(BaseModel):
    id: int
    user_id: int
    campaign_id: int
    status: str
    reserved_at: datetime
    expires_at: datetime
    campaign: Optional[CampaignResponse] = None
    submission: Optional[SubmissionResponse] = None

    class Config:
        from_attributes = True


class ReviewRequest(BaseModel):
    reason: Optional[str] = None
