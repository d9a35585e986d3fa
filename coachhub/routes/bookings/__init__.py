from flask import Blueprint

bookings_bp = Blueprint('bookings', __name__)

from . import availability, appointments, packages, coaches  # noqa: E402,F401
