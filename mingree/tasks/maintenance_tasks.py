import logging
from mingree.celery_app import celery_app
from mingree.db.session import SessionLocal
from mingree.services import escrow
from mingree.services import reservations as reservation_service
from mingree.services import subscriptions as subscription_service

logger = logging.getLogger(__name__)


@celery_app.task(name="process_escrow_refunds")
def process_escrow_refunds():
    db = SessionLocal()
    try:
        result = escrow.process_escrow_refunds(db)
        return {
            "status": "success",
            "processed": result["processed"],
            "total_refunded": str(result["total_refunded"]),
        }
    except Exception as e:
        db.rollback()
        logger.exception("Escrow refund pass failed: %s", e)
        return {"status": "error", "message": str(e)}
    finally:
        db.close()


@celery_app.task(name="expire_reservations")
def expire_reservations():
    db = SessionLocal()
    try:
        expired = reservation_service.expire_reservations(db)
        return {"status": "success", "expired": expired}
    except Exception as e:
        db.rollback()
        logger.exception("Reservation expiry failed: %s", e)
        return {"status": "error", "message": str(e)}
    finally:
        db.close()


@celery_app.task(name="downgrade_expired_trials")
def downgrade_expired_trials():
    db = SessionLocal()
    try:
        downgraded = subscription_service.downgrade_expired_trials(db)
        return {"status": "success", "downgraded": downgraded}
    except Exception as e:
        db.rollback()
        logger.exception("Trial downgrade failed: %s", e)
        return {"status": "error", "message": str(e)}
    finally:
        db.close()
