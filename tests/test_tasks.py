from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from mingree.services import reservations as reservation_service
from mingree.tasks import maintenance_tasks


@pytest.fixture(autouse=True)
def task_sessions(engine, monkeypatch):
    monkeypatch.setattr(
        maintenance_tasks, "SessionLocal",
        sessionmaker(autocommit=False, autoflush=False, bind=engine),
    )


def test_expire_reservations_task(db, creator, make_campaign):
    campaign = make_campaign()
    reservation = reservation_service.reserve(db, creator, campaign.id)
    reservation.expires_at = datetime.utcnow() - timedelta(minutes=5)
    db.commit()

    assert maintenance_tasks.expire_reservations() == {"status": "success", "expired": 1}


def test_escrow_refund_task(db, make_campaign):
    campaign = make_campaign()
    campaign.deadline = datetime.utcnow() - timedelta(hours=1)
    db.commit()

    result = maintenance_tasks.process_escrow_refunds()
    assert result == {"status": "success", "processed": 1, "total_refunded": "500.00"}


def test_trial_downgrade_task_with_nothing_to_do():
    assert maintenance_tasks.downgrade_expired_trials() == {"status": "success", "downgraded": 0}
