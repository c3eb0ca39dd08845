from mingree.tasks.maintenance_tasks import (
    process_escrow_refunds,
    expire_reservations,
    downgrade_expired_trials
)

__all__ = [
    'process_escrow_refunds',
    'expire_reservations',
    'downgrade_expired_trials'
]
