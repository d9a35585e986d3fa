import logging

from flask import jsonify

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db
from coachhub.models import SubscriptionPlan
from coachhub.schemas.admin import SubscriptionPlanSchema
from coachhub.utils import stripe_payment
from coachhub.utils.decorators import admin_required
from coachhub.utils.payload import get_payload
from . import admin_bp

logger = logging.getLogger(__name__)


@admin_bp.route("/subscription-plans", methods=["POST"])
@admin_required
def save_subscription_plan():
    """Create a plan, or update one when ``plan_id`` is given. Stripe always gets a new price."""
    data = SubscriptionPlanSchema().load(get_payload())

    plan = None
    if data.get("plan_id"):
        plan = db.session.get(SubscriptionPlan, data["plan_id"])
        if not plan or plan.deleted_at:
            raise NotFoundError("Subscription plan not found")

    try:
        product_id, price_id = stripe_payment.create_product_price(
            name=data["name"],
            description=data.get("description"),
            price=data["price"],
            currency=data["currency"],
            interval=data["interval"],
            product_id=plan.stripe_product_id if plan else None,
        )
    except Exception as e:
        logger.error(f"Stripe product/price creation failed for plan {data['name']}: {e}")
        raise ApiError("Failed to sync plan with Stripe", 502)

    created = plan is None
    if created:
        plan = SubscriptionPlan()
        db.session.add(plan)
    plan.name = data["name"]
    plan.description = data.get("description")
    plan.price = data["price"]
    plan.currency = data["currency"].upper()
    plan.billing_interval = data["interval"]
    plan.features = list(data["features"])
    plan.sort_order = data["sort_order"]
    plan.is_active = data["is_active"]
    plan.stripe_product_id = product_id
    plan.stripe_price_id = price_id

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error saving subscription plan: {e}")
        raise ApiError("Failed to save subscription plan", 500)

    return jsonify({
        "success": True,
        "message": "Subscription plan created" if created else "Subscription plan updated",
        "data": plan.to_dict(),
    }), 201 if created else 200


@admin_bp.route("/subscription-plans", methods=["GET"])
@admin_required
def list_subscription_plans():
    plans = SubscriptionPlan.query.filter(SubscriptionPlan.deleted_at.is_(None)) \
        .order_by(SubscriptionPlan.sort_order.asc(), SubscriptionPlan.id.asc()).all()
    return jsonify({"success": True, "data": [p.to_dict() for p in plans]})
