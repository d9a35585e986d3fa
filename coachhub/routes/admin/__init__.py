from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

from . import dashboard, booking_list, content, user_list, subscription_plans, marketplace  # noqa: E402,F401
