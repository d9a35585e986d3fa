import logging

from flask import current_app, jsonify
from flask_jwt_extended import current_user, jwt_required

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db
from coachhub.models import SubscriptionPlan, UserSubscription
from coachhub.utils import stripe_payment
from coachhub.utils.formatting import parse_bool
from coachhub.utils.payload import get_payload
from . import subscriptions_bp

logger = logging.getLogger(__name__)


def active_subscription(user_id):
    return UserSubscription.query.filter_by(user_id=user_id, status='active') \
        .order_by(UserSubscription.created_at.desc()).first()


@subscriptions_bp.route("/plans", methods=["GET"])
@jwt_required()
def get_plans():
    plans = SubscriptionPlan.query.filter(
        SubscriptionPlan.is_active.is_(True),
        SubscriptionPlan.deleted_at.is_(None),
    ).order_by(SubscriptionPlan.sort_order.asc()).all()
    return jsonify({"success": True, "data": [p.to_dict() for p in plans]})


@subscriptions_bp.route("/checkout", methods=["POST"])
@jwt_required()
def create_checkout():
    plan_id = get_payload().get("plan_id")
    if not plan_id:
        raise ApiError("plan_id is required")

    user = current_user
    if not user:
        raise NotFoundError("User not found")
    plan = db.session.get(SubscriptionPlan, int(plan_id)) if str(plan_id).isdigit() else None
    if not plan or plan.deleted_at:
        raise NotFoundError("Subscription plan not found")
    if not plan.stripe_price_id:
        raise ApiError("Plan is not synced with Stripe")

    base_url = current_app.config['APP_BASE_URL'].rstrip('/')
    try:
        customer = stripe_payment.ensure_customer(user)
        db.session.commit()
        session = stripe_payment.create_checkout_session(
            customer=customer,
            price_id=plan.stripe_price_id,
            success_url=f"{base_url}/subscription/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/subscription/cancel",
            metadata={"user_id": user.id, "plan_id": plan.id},
        )
    except Exception as e:
        db.session.rollback()
        logger.error(f"Checkout session failed for user {user.id}: {e}")
        raise ApiError("Failed to create checkout session", 500)

    return jsonify({"success": True, "url": session["url"], "session_id": session["id"]})


@subscriptions_bp.route("/current", methods=["GET"])
@jwt_required()
def get_current_subscription():
    subscription = active_subscription(current_user.id)
    return jsonify({
        "success": True,
        "data": subscription.to_dict() if subscription else None,
        "hasSubscription": subscription is not None,
    })


@subscriptions_bp.route("/cancel", methods=["POST"])
@jwt_required()
def cancel_subscription():
    immediately = parse_bool(get_payload().get("cancel_immediately"))
    subscription = active_subscription(current_user.id)
    if not subscription or not subscription.stripe_subscription_id:
        raise NotFoundError("Active subscription not found")

    try:
        if immediately:
            status = stripe_payment.cancel_subscription(subscription.stripe_subscription_id)
        else:
            status = stripe_payment.cancel_subscription_at_period_end(subscription.stripe_subscription_id)
        subscription.cancel_subscription(immediate=immediately)
        if status:
            subscription.status = status
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to cancel subscription {subscription.id}: {e}")
        raise ApiError("Failed to cancel subscription", 500)

    return jsonify({
        "success": True,
        "message": "Subscription canceled" if immediately else "Subscription will cancel at period end",
        "data": subscription.to_dict(),
    })
