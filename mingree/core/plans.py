from decimal import Decimal
from typing import Any, Dict

# Default subscription plans; seeded into subscription_plans on first use
# and editable from the admin console afterwards.
DEFAULT_PLANS: Dict[str, Dict[str, Any]] = {
    "free": {
        "display_name": "Free",
        "price": Decimal("0.00"),
        "duration_days": 0,
        "can_reserve": False,
        "features": "Browse campaigns,Join category groups",
    },
    "pro": {
        "display_name": "Pro Creator",
        "price": Decimal("499.00"),
        "duration_days": 30,
        "can_reserve": True,
        "features": "Reserve campaign spots,Submit content,Get paid",
    },
}

PRO_PLAN = "pro"
FREE_PLAN = "free"

STARS_PER_REWARD = 5
RESERVATION_HOURS = 48


def get_plan_setting(plan: str, key: str) -> Any:
    """Get a default setting for a plan (falls back to free)."""
    return DEFAULT_PLANS.get(plan, DEFAULT_PLANS[FREE_PLAN]).get(key)
