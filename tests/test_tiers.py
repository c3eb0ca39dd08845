"""Tier resolution, pricing and eligibility rules."""
from datetime import datetime, timedelta
from decimal import Decimal

from mingree.core.tiers import (
    MIN_FOLLOWERS,
    TIERS,
    calculate_payment,
    get_tier_by_followers,
    tier_number,
)
from mingree.models.campaign import Campaign
from mingree.models.user import User
from mingree.services.eligibility import can_view
from mingree.services.escrow import campaign_cost, deposit_quote


class TestTierResolution:
    def test_twenty_contiguous_tiers(self):
        assert len(TIERS) == 20
        for lower, upper in zip(TIERS, TIERS[1:]):
            assert lower.max_followers == upper.min_followers
            assert upper.base_pay - lower.base_pay == 20

    def test_below_minimum_has_no_tier(self):
        assert MIN_FOLLOWERS == 500
        assert get_tier_by_followers(499) is None
        assert get_tier_by_followers(0) is None

    def test_bracket_lower_bound_is_inclusive(self):
        assert get_tier_by_followers(500).name == "Tier 1"
        assert get_tier_by_followers(999).name == "Tier 1"
        assert get_tier_by_followers(1000).name == "Tier 2"
        assert get_tier_by_followers(5000).name == "Tier 4"

    def test_above_last_bracket_is_last_tier(self):
        assert get_tier_by_followers(250_000_000).name == "Tier 20"

    def test_tier_number(self):
        assert tier_number("Tier 7") == 7
        assert tier_number("Sponsor") == 0
        assert tier_number(None) == 0


class TestPricing:
    def test_promotion_style_multiplier(self):
        assert calculate_payment("Tier 1", "face_ad") == Decimal("20.00")
        assert calculate_payment("Tier 1", "share_only") == Decimal("18.00")
        assert calculate_payment("Tier 1", "lyricals") == Decimal("12.00")
        assert calculate_payment("Tier 20", "share_only") == Decimal("360.00")

    def test_campaign_cost_adds_ten_percent_fee(self):
        cost = campaign_cost(Decimal("100"), 5)
        assert cost["creator_payment"] == Decimal("500.00")
        assert cost["platform_fee"] == Decimal("50.00")
        assert cost["total_cost"] == Decimal("550.00")

    def test_platform_fee_rounds_to_whole_rupees(self):
        cost = campaign_cost(Decimal("33"), 1)
        assert cost["platform_fee"] == Decimal("3.00")
        assert cost["total_cost"] == Decimal("36.00")

    def test_deposit_quote_adds_gst(self):
        quote = deposit_quote(1000)
        assert quote["gst_amount"] == Decimal("180.00")
        assert quote["total_amount"] == Decimal("1180.00")

    def test_international_deposit_quote_uses_processing_fee(self):
        quote = deposit_quote(Decimal("999.99"), international=True)
        assert quote["gst_amount"] == Decimal("0.00")
        assert quote["processing_fee"] == Decimal("50.00")
        assert quote["total_amount"] == Decimal("1049.99")


class TestVisibility:
    def _campaign(self, **fields):
        defaults = dict(
            tier="Tier 3", is_approved=True, status="active", target_countries="IN",
            min_followers=0, deadline=datetime.utcnow() + timedelta(days=1),
        )
        defaults.update(fields)
        return Campaign(**defaults)

    def test_creator_sees_campaigns_at_or_below_tier(self):
        user = User(tier="Tier 3", country="IN", role="creator")
        assert can_view(user, self._campaign(tier="Tier 3"))
        assert can_view(user, self._campaign(tier="Tier 1"))
        assert not can_view(user, self._campaign(tier="Tier 4"))

    def test_country_targeting(self):
        user = User(tier="Tier 3", country="US", role="creator")
        assert not can_view(user, self._campaign(target_countries="IN"))
        assert can_view(user, self._campaign(target_countries="IN,US"))
        assert can_view(user, self._campaign(target_countries="IN"), country="IN")

    def test_unapproved_or_paused_hidden(self):
        user = User(tier="Tier 3", country="IN", role="creator")
        assert not can_view(user, self._campaign(is_approved=False))
        assert not can_view(user, self._campaign(status="paused"))
