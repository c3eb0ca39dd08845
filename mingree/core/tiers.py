"""
Follower tiers, payout pricing and platform fee constants.

Tier N covers followers in [min, max); base_pay is the per-creator payout in INR
for a face_ad promotion at that tier.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, NamedTuple, Optional


class Tier(NamedTuple):
    id: int
    name: str
    min_followers: int
    max_followers: int
    base_pay: int


_BOUNDS = [
    500, 1_000, 2_000, 5_000, 10_000, 20_000, 35_000, 50_000, 75_000, 100_000,
    150_000, 200_000, 300_000, 500_000, 750_000, 1_000_000, 2_000_000,
    3_000_000, 5_000_000, 10_000_000, 100_000_000,
]

TIERS: List[Tier] = [
    Tier(i + 1, f"Tier {i + 1}", _BOUNDS[i], _BOUNDS[i + 1], 20 * (i + 1))
    for i in range(len(_BOUNDS) - 1)
]

MIN_FOLLOWERS = TIERS[0].min_followers
SPONSOR_TIER = "Sponsor"

PROMOTION_STYLES: Dict[str, Decimal] = {
    "face_ad": Decimal("1.00"),
    "share_only": Decimal("0.90"),
    "lyricals": Decimal("0.60"),
}

# Percentages
PLATFORM_FEE_PERCENT = Decimal("10")
GST_PERCENT = Decimal("18")
TDS_PERCENT = Decimal("10")
INTERNATIONAL_FEE_PERCENT = Decimal("5")

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce to a 2dp Decimal (half-up)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def round_rupees(value) -> Decimal:
    """Round to whole rupees (half-up), still returned as a money Decimal."""
    return Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP).quantize(CENT)


def percent_of(amount, percent: Decimal) -> Decimal:
    return to_money(Decimal(str(amount)) * percent / Decimal("100"))


def get_tier_by_followers(followers: int) -> Optional[Tier]:
    if followers is None or followers < MIN_FOLLOWERS:
        return None
    for tier in TIERS:
        if tier.min_followers <= followers < tier.max_followers:
            return tier
    return TIERS[-1]


def get_tier_by_name(name: str) -> Optional[Tier]:
    for tier in TIERS:
        if tier.name == name:
            return tier
    return None


def tier_number(name: Optional[str]) -> int:
    """'Tier 7' -> 7. Anything that isn't a creator tier label is 0."""
    tier = get_tier_by_name(name) if name else None
    return tier.id if tier else 0


def calculate_payment(tier_name: str, promotion_style: str = "face_ad") -> Decimal:
    tier = get_tier_by_name(tier_name)
    if not tier:
        return Decimal("0.00")
    multiplier = PROMOTION_STYLES.get(promotion_style, Decimal("1.00"))
    return round_rupees(Decimal(tier.base_pay) * multiplier)
