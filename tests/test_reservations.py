"""Reservation lifecycle, expiry and the last-spot race."""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mingree.core.errors import Conflict, Forbidden, NoSpotsAvailable, SubscriptionRequired, ValidationFailed
from mingree.db.base import Base
from mingree.models.campaign import Campaign
from mingree.models.reservation import Reservation
from mingree.models.user import User
from mingree.services import reservations as reservation_service


class TestReserve:
    def test_reserve_takes_a_spot_for_48_hours(self, db, creator, make_campaign):
        campaign = make_campaign()
        reservation = reservation_service.reserve(db, creator, campaign.id)
        db.refresh(campaign)

        assert reservation.status == "reserved"
        assert reservation.expires_at - reservation.reserved_at == timedelta(hours=48)
        assert campaign.spots_remaining == 4

    def test_free_plan_cannot_reserve(self, db, make_user, make_campaign):
        campaign = make_campaign()
        free_user = make_user(pro=False)
        with pytest.raises(SubscriptionRequired):
            reservation_service.reserve(db, free_user, campaign.id)

    def test_expired_pro_cannot_reserve(self, db, make_user, make_campaign):
        campaign = make_campaign()
        lapsed = make_user(subscription_plan="pro", subscription_expires_at=datetime.utcnow() - timedelta(days=1))
        with pytest.raises(SubscriptionRequired):
            reservation_service.reserve(db, lapsed, campaign.id)

    def test_one_reservation_per_campaign(self, db, creator, make_campaign):
        campaign = make_campaign()
        reservation_service.reserve(db, creator, campaign.id)
        with pytest.raises(Conflict):
            reservation_service.reserve(db, creator, campaign.id)

    def test_tier_above_creator_is_refused(self, db, make_user, make_campaign):
        campaign = make_campaign(tier="Tier 10")
        small = make_user(followers=600)
        with pytest.raises(Forbidden):
            reservation_service.reserve(db, small, campaign.id)

    def test_min_followers_enforced(self, db, make_user, make_campaign):
        campaign = make_campaign(tier="Tier 1", min_followers=800)
        small = make_user(followers=600)
        with pytest.raises(Forbidden):
            reservation_service.reserve(db, small, campaign.id)

    def test_unapproved_campaign_cannot_be_reserved(self, db, creator, make_campaign):
        campaign = make_campaign(approve=False)
        with pytest.raises(Forbidden):
            reservation_service.reserve(db, creator, campaign.id)

    def test_spots_never_go_negative(self, db, make_user, make_campaign):
        campaign = make_campaign(total_spots=2)
        reservation_service.reserve(db, make_user(), campaign.id)
        reservation_service.reserve(db, make_user(), campaign.id)
        with pytest.raises(NoSpotsAvailable):
            reservation_service.reserve(db, make_user(), campaign.id)
        db.refresh(campaign)
        assert campaign.spots_remaining == 0


class TestExpiry:
    def test_stale_reservation_is_expired_on_next_read(self, db, creator, make_campaign):
        campaign = make_campaign()
        reservation = reservation_service.reserve(db, creator, campaign.id)
        reservation.expires_at = datetime.utcnow() - timedelta(seconds=1)
        db.commit()

        visible = reservation_service.list_user_reservations(db, creator)
        db.refresh(reservation)
        db.refresh(campaign)

        assert visible == []
        assert reservation.status == "expired"
        assert campaign.spots_remaining == campaign.total_spots

    def test_expiry_returns_each_spot_once(self, db, creator, make_campaign):
        campaign = make_campaign()
        reservation = reservation_service.reserve(db, creator, campaign.id)
        reservation.expires_at = datetime.utcnow() - timedelta(seconds=1)
        db.commit()

        assert reservation_service.expire_reservations(db) == 1
        assert reservation_service.expire_reservations(db) == 0
        db.refresh(campaign)
        assert campaign.spots_remaining == 5

    def test_submitting_after_deadline_fails(self, db, creator, make_campaign):
        campaign = make_campaign()
        reservation = reservation_service.reserve(db, creator, campaign.id)
        reservation.expires_at = datetime.utcnow() - timedelta(seconds=1)
        db.commit()

        with pytest.raises(ValidationFailed):
            reservation_service.submit(db, creator, reservation.id, {"link": "https://instagram.com/reel/x"})
        db.refresh(reservation)
        assert reservation.status == "expired"


class TestReview:
    def test_submit_then_reject_returns_spot(self, db, creator, make_campaign):
        campaign = make_campaign()
        reservation = reservation_service.reserve(db, creator, campaign.id)
        submission = reservation_service.submit(
            db, creator, reservation.id,
            {"link": "https://instagram.com/reel/abc", "start_time": "0:05", "end_time": "0:20"},
        )
        assert submission.start_time == "0:05"

        rejected = reservation_service.reject_submission(db, reservation.id, "Brand not visible")
        db.refresh(campaign)
        assert rejected.status == "rejected"
        assert rejected.submission.rejection_reason == "Brand not visible"
        assert campaign.spots_remaining == 5
        assert campaign.released_amount == Decimal("0.00")

    def test_only_submitted_content_can_be_reviewed(self, db, creator, make_campaign):
        campaign = make_campaign()
        reservation = reservation_service.reserve(db, creator, campaign.id)
        with pytest.raises(ValidationFailed):
            reservation_service.approve_submission(db, reservation.id)

    def test_promotional_approval_awards_stars_and_pro_month(self, db, make_user, make_campaign):
        campaign = make_campaign()
        campaign.is_promotional = True
        campaign.star_reward = 5
        db.commit()
        expires_at = datetime.utcnow() + timedelta(days=3)
        creator = make_user(stars=2, subscription_plan="pro", subscription_expires_at=expires_at)

        reservation = reservation_service.reserve(db, creator, campaign.id)
        reservation_service.submit(db, creator, reservation.id, {"link": "https://instagram.com/reel/p"})
        result = reservation_service.approve_submission(db, reservation.id)
        db.refresh(creator)
        db.refresh(campaign)

        assert result["months_granted"] == 1
        assert creator.stars == 2
        assert creator.subscription_expires_at > expires_at + timedelta(days=27)
        assert creator.balance == Decimal("0.00")
        assert campaign.released_amount == Decimal("0.00")


class TestLastSpotRace:
    """Two creators race for the final spot from separate sessions."""

    @pytest.fixture
    def race_db(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
        Base.metadata.create_all(bind=engine)
        Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        setup = Session()
        sponsor = User(name="Sponsor", handle="sponsor", email="s@example.com", hashed_password="x",
                       role="sponsor", tier="Sponsor", balance=Decimal("0"))
        setup.add(sponsor)
        setup.flush()
        creators = []
        for n in range(2):
            creator = User(
                name=f"Creator {n}", handle=f"creator{n}", email=f"c{n}@example.com", hashed_password="x",
                role="creator", followers=5000, tier="Tier 4", balance=Decimal("0"), country="IN",
                subscription_plan="pro", subscription_expires_at=datetime.utcnow() + timedelta(days=30),
            )
            setup.add(creator)
            creators.append(creator)
        campaign = Campaign(
            sponsor_id=sponsor.id, title="Last Spot", brand="Acme", category="food", tier="Tier 3",
            pay_amount=Decimal("100"), deadline=datetime.utcnow() + timedelta(days=3),
            total_spots=5, spots_remaining=1, is_approved=True, status="active", target_countries="IN",
            total_budget=Decimal("500"),
        )
        setup.add(campaign)
        setup.commit()
        ids = {"campaign": campaign.id, "creators": [c.id for c in creators]}
        setup.close()

        yield Session, ids
        engine.dispose()

    def test_guarded_decrement_rejects_stale_reader(self, race_db):
        Session, ids = race_db
        first, second = Session(), Session()
        try:
            # Both sessions have read spots_remaining == 1
            assert first.get(Campaign, ids["campaign"]).spots_remaining == 1
            assert second.get(Campaign, ids["campaign"]).spots_remaining == 1

            assert reservation_service.take_spot(first, ids["campaign"]) is True
            first.commit()
            assert reservation_service.take_spot(second, ids["campaign"]) is False
            second.rollback()
        finally:
            first.close()
            second.close()

    def test_exactly_one_reservation_succeeds(self, race_db):
        Session, ids = race_db
        first, second = Session(), Session()
        try:
            user_a = first.get(User, ids["creators"][0])
            user_b = second.get(User, ids["creators"][1])
            # second has a stale view of the campaign before first commits
            assert second.get(Campaign, ids["campaign"]).spots_remaining == 1

            reservation_service.reserve(first, user_a, ids["campaign"])
            with pytest.raises(NoSpotsAvailable):
                reservation_service.reserve(second, user_b, ids["campaign"])
            second.rollback()
        finally:
            first.close()
            second.close()

        check = Session()
        try:
            assert check.get(Campaign, ids["campaign"]).spots_remaining == 0
            assert check.query(Reservation).count() == 1
        finally:
            check.close()
