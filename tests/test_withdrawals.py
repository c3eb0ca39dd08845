from decimal import Decimal

import pytest

from mingree.core.errors import Forbidden, InsufficientBalance, ValidationFailed
from mingree.models.app_setting import AppSetting
from mingree.models.transaction import Transaction
from mingree.services import settings as settings_service
from mingree.services import withdrawals as withdrawal_service

ACCOUNT = {
    "account_holder_name": "Priya Sharma",
    "account_number": "123456789012",
    "ifsc_code": "hdfc0001234",
    "bank_name": "HDFC Bank",
}


@pytest.fixture
def earner(make_user):
    return make_user(balance="1000.00")


@pytest.fixture
def account(db, earner):
    return withdrawal_service.add_bank_account(db, earner, ACCOUNT)


class TestBankAccounts:
    def test_ifsc_is_normalised_and_first_account_is_default(self, account):
        assert account.ifsc_code == "HDFC0001234"
        assert account.is_default is True
        assert account.masked_account_number.endswith("9012")

    def test_invalid_ifsc_rejected(self, db, earner):
        with pytest.raises(ValidationFailed):
            withdrawal_service.add_bank_account(db, earner, {**ACCOUNT, "ifsc_code": "HDFC1234"})

    def test_switching_default(self, db, earner, account):
        second = withdrawal_service.add_bank_account(db, earner, {**ACCOUNT, "account_number": "999988887777"})
        assert second.is_default is False

        withdrawal_service.set_default_bank_account(db, earner, second.id)
        db.refresh(account)
        assert account.is_default is False

    def test_cannot_use_someone_elses_account(self, db, make_user, account):
        other = make_user(balance="1000.00")
        with pytest.raises(Forbidden):
            withdrawal_service.request_withdrawal(db, other, "600", account.id)


class TestRequestWithdrawal:
    def test_below_minimum(self, db, earner, account):
        with pytest.raises(ValidationFailed, match="Minimum withdrawal"):
            withdrawal_service.request_withdrawal(db, earner, "400", account.id)

    def test_minimum_comes_from_settings(self, db, earner, account):
        settings_service.set_setting(db, settings_service.MIN_WITHDRAWAL_KEY, "300")
        request = withdrawal_service.request_withdrawal(db, earner, "400", account.id)
        assert request.amount == Decimal("400.00")

    def test_non_numeric_minimum_is_refused(self, db):
        with pytest.raises(ValidationFailed):
            settings_service.set_setting(db, settings_service.MIN_WITHDRAWAL_KEY, "five hundred")
        assert settings_service.get_setting(db, settings_service.MIN_WITHDRAWAL_KEY) is None

    def test_corrupt_stored_minimum_falls_back_to_default(self, db, earner, account):
        db.add(AppSetting(key=settings_service.MIN_WITHDRAWAL_KEY, value="abc"))
        db.commit()

        assert withdrawal_service.min_withdrawal_amount(db) == Decimal("500.00")
        with pytest.raises(ValidationFailed, match="Minimum withdrawal"):
            withdrawal_service.request_withdrawal(db, earner, "400", account.id)

    def test_above_balance(self, db, earner, account):
        with pytest.raises(InsufficientBalance) as exc:
            withdrawal_service.request_withdrawal(db, earner, "1500", account.id)
        assert exc.value.available == Decimal("1000.00")

    def test_non_numeric_amount(self, db, earner, account):
        with pytest.raises(ValidationFailed):
            withdrawal_service.request_withdrawal(db, earner, "lots", account.id)

    def test_gst_is_withheld_and_balance_debited(self, db, earner, account):
        request = withdrawal_service.request_withdrawal(db, earner, "600", account.id)
        db.refresh(earner)

        assert request.status == "pending"
        assert request.gst_amount == Decimal("108.00")
        assert request.net_amount == Decimal("492.00")
        assert earner.balance == Decimal("400.00")

        tx = db.query(Transaction).filter(Transaction.withdrawal_request_id == request.id).one()
        assert tx.type == "debit"
        assert tx.status == "pending"

    def test_only_one_pending_request(self, db, make_user):
        rich = make_user(balance="2000.00")
        bank = withdrawal_service.add_bank_account(db, rich, ACCOUNT)
        withdrawal_service.request_withdrawal(db, rich, "600", bank.id)
        with pytest.raises(ValidationFailed, match="pending"):
            withdrawal_service.request_withdrawal(db, rich, "600", bank.id)


class TestAdminReview:
    def test_approve_requires_utr(self, db, earner, account):
        request = withdrawal_service.request_withdrawal(db, earner, "600", account.id)
        with pytest.raises(ValidationFailed):
            withdrawal_service.approve_withdrawal(db, request.id, "123")

        approved = withdrawal_service.approve_withdrawal(db, request.id, "UTR12345")
        assert approved.status == "completed"
        assert approved.utr_number == "UTR12345"
        assert approved.processed_at is not None

    def test_cannot_process_twice(self, db, earner, account):
        request = withdrawal_service.request_withdrawal(db, earner, "600", account.id)
        withdrawal_service.approve_withdrawal(db, request.id, "UTR12345")
        with pytest.raises(ValidationFailed):
            withdrawal_service.reject_withdrawal(db, request.id, "late")

    def test_reject_refunds_balance(self, db, earner, account):
        request = withdrawal_service.request_withdrawal(db, earner, "600", account.id)
        rejected = withdrawal_service.reject_withdrawal(db, request.id, "Name mismatch")
        db.refresh(earner)

        assert rejected.status == "rejected"
        assert rejected.admin_note == "Name mismatch"
        assert earner.balance == Decimal("1000.00")

        entries = db.query(Transaction).filter(Transaction.withdrawal_request_id == request.id).all()
        by_category = {t.category: t for t in entries}
        assert by_category["withdrawal"].status == "cancelled"
        assert by_category["refund"].amount == Decimal("600.00")
