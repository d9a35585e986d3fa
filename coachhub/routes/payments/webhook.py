import logging
import secrets
from datetime import datetime, timedelta, timezone

from flask import jsonify, request

from coachhub.extensions import db
from coachhub.models import Booking, PaymentTransaction, User, UserSubscription
from coachhub.utils import stripe_payment
from coachhub.utils.dates import add_months, utcnow
from . import stripe_bp

logger = logging.getLogger(__name__)

VALIDATION_TOKEN_HOURS = 24


def _from_timestamp(value):
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _transaction_for(intent):
    return PaymentTransaction.query.filter_by(reference_number=intent['id']).first()


def _set_transaction_status(intent, status):
    tx = _transaction_for(intent)
    if not tx:
        logger.warning(f"No transaction found for payment intent {intent['id']}")
        return None
    tx.status = status
    tx.raw_status = intent.get('status')
    return tx


def _activate_coach(user, intent_id, tx_type, now):
    profile = user.coach_profile if user else None
    if not profile:
        logger.warning(f"Payment {intent_id} succeeded but no coach profile exists")
        return

    if 'registration' in tx_type:
        profile.is_verified = True
        profile.registration_fee_paid = True
        profile.registration_fee_paid_at = now

    if 'subscription' in tx_type:
        if profile.subscription_expires_at and profile.subscription_expires_at > now:
            profile.subscription_expires_at = add_months(profile.subscription_expires_at, 1)
        else:
            profile.subscription_started_at = now
            profile.subscription_expires_at = add_months(now, 1)
        profile.subscription_active = True
        profile.subscription_provider = 'stripe'
        profile.subscription_reference = intent_id


def _confirm_booking(tx, now):
    booking = Booking.query.filter_by(payment_transaction_id=tx.id).first()
    if not booking:
        return
    booking.status = 'CONFIRMED'
    booking.validation_token = str(secrets.randbelow(900000) + 100000)
    booking.token_expires_at = now + timedelta(hours=VALIDATION_TOKEN_HOURS)
    logger.info(f"Booking {booking.id} confirmed by payment {tx.reference_number}")


def handle_payment_succeeded(intent):
    tx = _set_transaction_status(intent, 'succeeded')
    if not tx:
        return
    now = utcnow()
    tx.paid_amount = (intent.get('amount_received') or 0) / 100
    tx.paid_currency = (intent.get('currency') or tx.currency or '').upper() or None

    tx_type = tx.type or ''
    if 'registration' in tx_type or 'subscription' in tx_type:
        _activate_coach(db.session.get(User, tx.user_id), intent['id'], tx_type, now)

    _confirm_booking(tx, now)


def handle_checkout_completed(session):
    if session.get('mode') != 'subscription':
        return
    metadata = session.get('metadata') or {}
    user_id = _as_int(metadata.get('user_id'))
    plan_id = _as_int(metadata.get('plan_id'))
    subscription_id = session.get('subscription')
    if not user_id or not subscription_id:
        logger.warning(f"Checkout session {session.get('id')} is missing subscription metadata")
        return

    subscription = UserSubscription.query.filter_by(stripe_subscription_id=subscription_id).first()
    if not subscription:
        subscription = UserSubscription(stripe_subscription_id=subscription_id)
        db.session.add(subscription)
    subscription.user_id = user_id
    subscription.plan_id = plan_id
    subscription.stripe_customer_id = session.get('customer')
    subscription.status = 'active'
    subscription.current_period_start = utcnow()
    subscription.cancel_at_period_end = False


def handle_subscription_changed(stripe_subscription):
    subscription = UserSubscription.query.filter_by(
        stripe_subscription_id=stripe_subscription['id']
    ).first()
    if not subscription:
        logger.warning(f"Unknown Stripe subscription {stripe_subscription['id']}")
        return
    status = stripe_subscription.get('status')
    if status:
        subscription.status = status
    period_end = _from_timestamp(stripe_subscription.get('current_period_end'))
    if period_end:
        subscription.current_period_end = period_end
    subscription.cancel_at_period_end = bool(stripe_subscription.get('cancel_at_period_end'))
    if status == 'canceled' and not subscription.canceled_at:
        subscription.canceled_at = utcnow()


INTENT_STATUS_EVENTS = {
    'payment_intent.payment_failed': 'failed',
    'payment_intent.canceled': 'canceled',
    'payment_intent.requires_action': 'requires_action',
}


@stripe_bp.route("/webhook", methods=["POST"])
def stripe_webhook():
    payload = request.get_data(as_text=True)
    signature = request.headers.get('Stripe-Signature')
    try:
        event = stripe_payment.construct_event(payload, signature)
    except (ValueError, stripe_payment.SignatureVerificationError) as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        return jsonify({"received": False}), 400

    event_type = event.get('type', '')
    obj = (event.get('data') or {}).get('object') or {}

    try:
        if event_type == 'payment_intent.succeeded':
            handle_payment_succeeded(obj)
        elif event_type in INTENT_STATUS_EVENTS:
            _set_transaction_status(obj, INTENT_STATUS_EVENTS[event_type])
        elif event_type == 'checkout.session.completed':
            handle_checkout_completed(obj)
        elif event_type in ('customer.subscription.updated', 'customer.subscription.deleted'):
            handle_subscription_changed(obj)
        elif event_type.startswith('payout.'):
            logger.info(f"Stripe payout event {event_type}: {obj.get('id')}")
        else:
            logger.info(f"Unhandled Stripe event type {event_type}")
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error processing Stripe event {event_type}: {e}")
        raise

    return jsonify({"received": True})
