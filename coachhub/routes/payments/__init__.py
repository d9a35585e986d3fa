from flask import Blueprint

stripe_bp = Blueprint('stripe', __name__)
subscriptions_bp = Blueprint('subscriptions', __name__)

from . import webhook, subscriptions  # noqa: E402,F401
