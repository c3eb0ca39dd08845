"""
Account lifecycle: signup, login, profile and Instagram updates, deletion.
"""
import logging
import re
import secrets
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from mingree.core.errors import Conflict, NotFound, ValidationFailed, MingreeError
from mingree.core.tiers import MIN_FOLLOWERS, SPONSOR_TIER, get_tier_by_followers
from mingree.models.campaign import Campaign
from mingree.models.user import User
from mingree.models.withdrawal import WithdrawalRequest
from mingree.services.notifications import notify_admins
from mingree.utils.auth import hash_password, verify_password

logger = logging.getLogger(__name__)

HANDLE_PATTERN = re.compile(r"^@?[a-zA-Z0-9._]+$")


def normalize_handle(handle: str) -> str:
    return handle.strip().lstrip("@").lower()


def _handle_taken(db: Session, handle: str) -> bool:
    return db.query(User).filter(func.lower(User.handle) == handle.lower()).first() is not None


def generate_handle(db: Session, base: str) -> str:
    slug = re.sub(r"[^a-z0-9._]", "", base.lower().replace(" ", "_")) or "user"
    handle = slug
    while _handle_taken(db, handle):
        handle = f"{slug}_{secrets.token_hex(2)}"
    return handle


def signup(db: Session, data: Dict[str, Any]) -> User:
    name = (data.get("name") or "").strip()
    if len(name) < 2:
        raise ValidationFailed("Name must be at least 2 characters")
    password = data.get("password") or ""
    if len(password) < 6:
        raise ValidationFailed("Password must be at least 6 characters")
    role = data.get("role") or "creator"
    if role not in ("creator", "sponsor"):
        raise ValidationFailed("Role must be creator or sponsor")
    company_name = (data.get("company_name") or "").strip()
    if role == "sponsor" and len(company_name) < 2:
        raise ValidationFailed("Company name must be at least 2 characters")

    email = data["email"].strip().lower()
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise Conflict("Email already registered")

    if data.get("handle"):
        if not HANDLE_PATTERN.match(data["handle"].strip()):
            raise ValidationFailed("Handle may only contain letters, numbers, dots and underscores")
        handle = normalize_handle(data["handle"])
        if _handle_taken(db, handle):
            raise Conflict("Handle already taken")
    else:
        handle = generate_handle(db, company_name if role == "sponsor" else name)

    user = User(
        name=name,
        handle=handle,
        email=email,
        hashed_password=hash_password(password),
        role=role,
        company_name=company_name or None,
        tier=SPONSOR_TIER if role == "sponsor" else "Tier 1",
        is_verified=role == "sponsor",
        country=(data.get("country") or "IN").upper(),
    )
    db.add(user)
    db.flush()
    if role == "creator":
        notify_admins(db, "new_creator_signup", "New creator signup", f"{name} (@{handle}) joined as a creator.")
    db.commit()
    db.refresh(user)
    logger.info("New %s signup: user %s", role, user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
    if not user or not verify_password(password, user.hashed_password):
        raise MingreeError("Invalid email or password", status_code=401)
    return user


def update_profile(db: Session, user: User, data: Dict[str, Any]) -> User:
    if data.get("name") is not None:
        if len(data["name"].strip()) < 2:
            raise ValidationFailed("Name must be at least 2 characters")
        user.name = data["name"].strip()
    if data.get("handle") is not None:
        if not HANDLE_PATTERN.match(data["handle"].strip()):
            raise ValidationFailed("Handle may only contain letters, numbers, dots and underscores")
        handle = normalize_handle(data["handle"])
        if handle != user.handle and _handle_taken(db, handle):
            raise Conflict("Handle already taken")
        user.handle = handle
    if data.get("country") is not None:
        user.country = data["country"].strip().upper()
    if data.get("company_name") is not None and user.role == "sponsor":
        user.company_name = data["company_name"].strip()
    db.commit()
    db.refresh(user)
    return user


def update_instagram(
    db: Session,
    user: User,
    username: Optional[str],
    followers: Optional[int],
    profile_url: Optional[str] = None,
) -> User:
    """Link (or unlink, with an empty username) an Instagram account and re-derive the tier."""
    if not username:
        user.instagram_username = None
        user.instagram_profile_url = None
        user.instagram_followers = None
        user.instagram_verification_status = "none"
        db.commit()
        db.refresh(user)
        return user

    if followers is None or followers < MIN_FOLLOWERS:
        raise ValidationFailed(f"Minimum {MIN_FOLLOWERS:,} followers required to link your Instagram account")

    username = username.strip().lstrip("@")
    user.instagram_username = username
    user.instagram_profile_url = profile_url or f"https://instagram.com/{username}"
    user.instagram_followers = followers
    user.instagram_verification_status = "pending"
    user.followers = followers
    tier = get_tier_by_followers(followers)
    if tier:
        user.tier = tier.name
    db.commit()
    db.refresh(user)
    return user


def set_instagram_verification(db: Session, user_id: int, verified: bool) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    if not user.instagram_username:
        raise ValidationFailed("User has not linked an Instagram account")
    user.instagram_verification_status = "verified" if verified else "rejected"
    db.commit()
    db.refresh(user)
    return user


def delete_account(db: Session, user: User) -> None:
    if (user.balance or 0) > 0:
        raise ValidationFailed("Withdraw your remaining balance before deleting your account")
    pending = db.query(WithdrawalRequest).filter(
        WithdrawalRequest.user_id == user.id,
        WithdrawalRequest.status == "pending",
    ).first()
    if pending:
        raise ValidationFailed("You have a pending withdrawal request")
    if user.role == "sponsor":
        funded = db.query(Campaign).filter(
            Campaign.sponsor_id == user.id,
            Campaign.escrow_status == "active",
        ).first()
        if funded:
            raise ValidationFailed("You have campaigns with funds still in escrow")
    user_id = user.id
    db.delete(user)
    db.commit()
    logger.info("Deleted account %s", user_id)
