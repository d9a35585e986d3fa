import logging
from datetime import timedelta

from coachhub.extensions import db
from coachhub.models import CoachProfile, PaymentTransaction
from coachhub.utils.dates import utcnow

logger = logging.getLogger(__name__)

STALE_PENDING_DAYS = 7


def expire_coach_subscriptions(now=None):
    now = now or utcnow()
    profiles = CoachProfile.query.filter(
        CoachProfile.subscription_active.is_(True),
        CoachProfile.subscription_expires_at.isnot(None),
        CoachProfile.subscription_expires_at < now,
    ).all()
    for profile in profiles:
        profile.subscription_active = False
    return len(profiles)


def expire_stale_transactions(now=None):
    now = now or utcnow()
    cutoff = now - timedelta(days=STALE_PENDING_DAYS)
    transactions = PaymentTransaction.query.filter(
        PaymentTransaction.status == 'pending',
        PaymentTransaction.created_at < cutoff,
    ).all()
    for tx in transactions:
        tx.status = 'expired'
    return len(transactions)


def run_daily_maintenance(now=None):
    try:
        expired_subscriptions = expire_coach_subscriptions(now)
        expired_transactions = expire_stale_transactions(now)
        db.session.commit()
        logger.info(
            f"Daily maintenance: {expired_subscriptions} subscriptions deactivated, "
            f"{expired_transactions} pending transactions expired"
        )
        return expired_subscriptions, expired_transactions
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error in daily maintenance job: {e}")
        raise
