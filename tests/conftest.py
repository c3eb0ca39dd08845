"""
Shared fixtures: an in-memory SQLite database, factories for users and
campaigns, and a TestClient wired to the same session.
"""
import itertools
import os
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mingree.core.tiers import SPONSOR_TIER, get_tier_by_followers
from mingree.db.base import Base
from mingree.db.session import get_db
from mingree.main import app
from mingree.models.campaign import Campaign
from mingree.models.user import User
from mingree.services import campaigns as campaign_service
from mingree.services import escrow
from mingree.utils.auth import create_access_token


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db) -> TestClient:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db) -> Callable[..., User]:
    counter = itertools.count(1)

    def _make(
        role: str = "creator",
        followers: int = 5000,
        balance="0",
        pro: bool = True,
        country: str = "IN",
        **fields,
    ) -> User:
        n = next(counter)
        if role == "sponsor":
            tier = SPONSOR_TIER
        else:
            resolved = get_tier_by_followers(followers)
            tier = resolved.name if resolved else "Tier 1"
        pro_creator = pro and role == "creator"
        attrs = dict(
            name=f"{role.title()} {n}",
            handle=f"{role}{n}",
            email=f"{role}{n}@example.com",
            hashed_password="not-a-real-hash",
            role=role,
            followers=followers if role == "creator" else 0,
            tier=tier,
            balance=Decimal(str(balance)),
            country=country,
            subscription_plan="pro" if pro_creator else "free",
            subscription_expires_at=datetime.utcnow() + timedelta(days=30) if pro_creator else None,
        )
        attrs.update(fields)
        user = User(**attrs)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin(make_user) -> User:
    return make_user(role="admin", pro=False)


@pytest.fixture
def sponsor(make_user) -> User:
    return make_user(role="sponsor", balance="10000.00", company_name="Acme Beverages")


@pytest.fixture
def creator(make_user) -> User:
    return make_user(role="creator", followers=5000)


@pytest.fixture
def make_campaign(db, sponsor) -> Callable[..., Campaign]:
    """Create a campaign through escrow funding and approve it."""

    def _make(approve: bool = True, owner: User = None, **overrides) -> Campaign:
        data: Dict = {
            "title": "Summer Launch",
            "category": "food",
            "tier": "Tier 3",
            "min_followers": 1000,
            "pay_amount": 100,
            "total_spots": 5,
            "deadline": datetime.utcnow() + timedelta(days=7),
        }
        data.update(overrides)
        campaign = escrow.create_campaign(db, owner or sponsor, data)
        if approve:
            campaign = campaign_service.approve_campaign(db, campaign.id)
        return campaign

    return _make


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token({"sub": str(user.id), "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
