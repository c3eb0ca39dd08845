from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime


class SignupRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    role: str = "creator"
    handle: Optional[str] = None
    company_name: Optional[str] = None
    country: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    handle: str
    email: str
    role: str
    company_name: Optional[str] = None
    is_verified: bool
    followers: int
    tier: str
    balance: float
    country: str
    instagram_username: Optional[str] = None
    instagram_profile_url: Optional[str] = None
    instagram_followers: Optional[int] = None
    instagram_verification_status: str
    subscription_plan: str
    subscription_expires_at: Optional[datetime] = None
    is_trial_subscription: bool
    auto_renew: bool
    stars: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    handle: Optional[str] = None
    country: Optional[str] = None
    company_name: Optional[str] = None


class InstagramUpdate(BaseModel):
    instagram_username: Optional[str] = None
    instagram_followers: Optional[int] = None
    instagram_profile_url: Optional[str] = None
