import logging

from flask import jsonify
from flask_jwt_extended import current_user, jwt_required

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db
from coachhub.utils.availability import (
    compute_available_days,
    normalize_blocked_days,
    normalize_time_slots,
    normalize_weekend_days,
)
from coachhub.utils.payload import get_payload
from . import bookings_bp
from .helpers import own_coach_profile, profile_for_user_id

logger = logging.getLogger(__name__)


def _save(profile, field, value, message):
    # JSON columns are reassigned, never mutated in place
    setattr(profile, field, list(value))
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating {field} for coach profile {profile.id}: {e}")
        raise ApiError(f"Could not update {field.replace('_', ' ')}", 500)
    return jsonify({"success": True, "message": message, field: getattr(profile, field)})


def _list_field(coach_id, field):
    profile = profile_for_user_id(coach_id)
    return jsonify({"success": True, "data": (getattr(profile, field) or []) if profile else []})


# ---------------- Blocked days ----------------
@bookings_bp.route("/coach/<int:coach_id>/blocked-days", methods=["POST"])
@jwt_required()
def set_blocked_days(coach_id):
    profile = own_coach_profile(current_user)
    data = get_payload()
    entries = data.get("blocked_dates", data.get("blockedDates"))
    merged = normalize_blocked_days(entries, profile.blocked_days)
    return _save(profile, "blocked_days", merged, "Blocked days updated successfully")


@bookings_bp.route("/coach/<int:coach_id>/blocked-days", methods=["GET"])
@jwt_required()
def get_blocked_days(coach_id):
    return _list_field(coach_id, "blocked_days")


# ---------------- Blocked time slots ----------------
@bookings_bp.route("/coach/<int:coach_id>/blocked-time-slots", methods=["POST"])
@jwt_required()
def set_blocked_time_slots(coach_id):
    profile = own_coach_profile(current_user)
    data = get_payload()
    entries = data.get("blocked_time_slots", data.get("blockedTimeSlots"))
    slots = normalize_time_slots(entries)
    return _save(profile, "blocked_time_slots", slots, "Blocked time slots updated")


@bookings_bp.route("/coach/<int:coach_id>/blocked-time-slots", methods=["GET"])
@jwt_required()
def get_blocked_time_slots(coach_id):
    return _list_field(coach_id, "blocked_time_slots")


# ---------------- Weekend days ----------------
@bookings_bp.route("/coach/<int:coach_id>/weekend-days", methods=["POST"])
@jwt_required()
def set_weekend_days(coach_id):
    profile = own_coach_profile(current_user)
    data = get_payload()
    entries = data.get("weekend_days", data.get("weekendDays"))
    days = normalize_weekend_days(entries)
    return _save(profile, "weekend_days", days, "Weekend days updated")


@bookings_bp.route("/coach/<int:coach_id>/weekend-days", methods=["GET"])
@jwt_required()
def get_weekend_days(coach_id):
    return _list_field(coach_id, "weekend_days")


@bookings_bp.route("/coach/<int:coach_id>/available-days", methods=["GET"])
@jwt_required()
def get_available_days(coach_id):
    profile = profile_for_user_id(coach_id)
    if not profile:
        raise NotFoundError("Coach profile not found")

    profile.available_days = compute_available_days(profile)
    db.session.commit()
    return jsonify({"success": True, "data": profile.available_days})
