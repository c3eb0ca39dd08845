from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from mingree.core.errors import Conflict, ValidationFailed
from mingree.models.promo_code import PromoCodeUsage
from mingree.models.transaction import Transaction
from mingree.services import promo_codes as promo_service
from mingree.services.subscriptions import downgrade_expired_trials, is_pro_active


@pytest.fixture
def free_user(make_user):
    return make_user(pro=False)


def _trial(db, **overrides):
    data = {"code": "launch7", "type": "trial", "trial_days": 7, "after_trial_action": "continue"}
    data.update(overrides)
    return promo_service.create_promo_code(db, data)


class TestDefinitions:
    def test_codes_are_upper_cased_and_unique(self, db):
        promo = _trial(db)
        assert promo.code == "LAUNCH7"
        with pytest.raises(Conflict):
            _trial(db, code="Launch7")

    def test_trial_needs_after_trial_action(self, db):
        with pytest.raises(ValidationFailed):
            _trial(db, after_trial_action=None)

    def test_discount_percent_bounds(self, db):
        with pytest.raises(ValidationFailed):
            promo_service.create_promo_code(db, {"code": "HALF", "type": "discount", "discount_percent": 150})

    def test_toggle(self, db):
        promo = _trial(db)
        assert promo_service.toggle_promo_code(db, promo.id).is_active is False


class TestRedemption:
    def test_trial_activates_pro(self, db, free_user):
        _trial(db)
        result = promo_service.apply_promo_code(db, free_user, " launch7 ")
        db.refresh(free_user)

        assert result["type"] == "trial"
        assert is_pro_active(free_user)
        assert free_user.is_trial_subscription is True
        assert free_user.auto_renew is True

    def test_second_redemption_by_same_user_fails(self, db, free_user):
        _trial(db)
        promo_service.apply_promo_code(db, free_user, "LAUNCH7")
        with pytest.raises(ValidationFailed, match="already used"):
            promo_service.apply_promo_code(db, free_user, "LAUNCH7")
        assert db.query(PromoCodeUsage).count() == 1

    def test_credit_goes_to_wallet(self, db, free_user):
        promo_service.create_promo_code(db, {"code": "WELCOME50", "type": "credit", "credit_amount": 50})
        promo_service.apply_promo_code(db, free_user, "WELCOME50")
        db.refresh(free_user)

        assert free_user.balance == Decimal("50.00")
        tx = db.query(Transaction).filter(Transaction.user_id == free_user.id).one()
        assert tx.category == "promo_credit"

    def test_max_uses_is_shared_across_users(self, db, make_user):
        promo = _trial(db, max_uses=1)
        promo_service.apply_promo_code(db, make_user(pro=False), "LAUNCH7")
        with pytest.raises(ValidationFailed, match="usage limit"):
            promo_service.apply_promo_code(db, make_user(pro=False), "LAUNCH7")
        db.refresh(promo)
        assert promo.current_uses == 1

    def test_inactive_code(self, db, free_user):
        _trial(db, is_active=False)
        with pytest.raises(ValidationFailed, match="no longer active"):
            promo_service.validate_promo_code(db, free_user, "LAUNCH7")

    def test_not_yet_valid(self, db, free_user):
        _trial(db, valid_from=datetime.utcnow() + timedelta(days=1))
        with pytest.raises(ValidationFailed, match="not valid yet"):
            promo_service.validate_promo_code(db, free_user, "LAUNCH7")

    def test_expired(self, db, free_user):
        _trial(db, valid_until=datetime.utcnow() - timedelta(days=1))
        with pytest.raises(ValidationFailed, match="expired"):
            promo_service.validate_promo_code(db, free_user, "LAUNCH7")

    def test_unknown_code(self, db, free_user):
        with pytest.raises(ValidationFailed, match="Invalid promo code"):
            promo_service.validate_promo_code(db, free_user, "NOPE")


class TestTrialExpiry:
    def test_expired_trial_is_downgraded(self, db, free_user):
        _trial(db)
        promo_service.apply_promo_code(db, free_user, "LAUNCH7")
        free_user.subscription_expires_at = datetime.utcnow() - timedelta(minutes=1)
        db.commit()

        assert downgrade_expired_trials(db) == 1
        db.refresh(free_user)
        assert free_user.subscription_plan == "free"
        assert free_user.is_trial_subscription is False
