import logging
from datetime import timedelta

from flask import jsonify

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db
from coachhub.models import Booking, CoachProfile, User
from coachhub.schemas.admin import ContentActionSchema
from coachhub.utils.dates import isoformat, utcnow
from coachhub.utils.decorators import admin_required
from coachhub.utils.payload import get_payload
from . import admin_bp

logger = logging.getLogger(__name__)

APPROVAL_WINDOW_DAYS = 30


@admin_bp.route("/content/coaches", methods=["GET"])
@admin_required
def content_coaches():
    coaches = User.query.join(CoachProfile, CoachProfile.user_id == User.id) \
        .order_by(User.created_at.desc()).all()

    data = []
    for coach in coaches:
        profile = coach.coach_profile
        data.append({
            "id": coach.id,
            "name": coach.name or "N/A",
            "email": coach.email or "N/A",
            "avatar": coach.avatar_url,
            "status": "Active" if coach.is_active else "Inactive",
            "approved_at": isoformat(coach.approved_at),
            "created_at": isoformat(coach.created_at),
            "session_count": coach.coach_bookings.filter(Booking.deleted_at.is_(None)).count(),
            "coach_profile": {
                "id": profile.id,
                "primary_specialty": profile.primary_specialty,
                "specialties": profile.specialties or [],
                "experience_level": profile.experience_level,
                "avg_rating": profile.avg_rating,
                "rating_count": profile.rating_count or 0,
                "is_verified": bool(profile.is_verified),
                "subscription_active": bool(profile.subscription_active),
            },
        })
    return jsonify({"success": True, "data": data, "total": len(data)})


def _session_party(user, role):
    if not user:
        return None
    return {
        "id": user.id,
        "name": user.name or "N/A",
        "email": user.email or "N/A",
        "avatar": user.avatar_url,
        "role": role,
        "type": user.role,
    }


@admin_bp.route("/content/session-validation", methods=["GET"])
@admin_required
def session_validation():
    bookings = Booking.query.filter(Booking.deleted_at.is_(None)) \
        .order_by(Booking.appointment_date.desc()).all()

    data = []
    for b in bookings:
        when = b.session_time or b.appointment_date
        date_text = f"{b.appointment_date.month}/{b.appointment_date.day}/{b.appointment_date.year}" \
            if b.appointment_date else "N/A"
        time_text = when.strftime("%H:%M") if when else "N/A"
        data.append({
            "id": b.id,
            "athlete": _session_party(b.user, "Athlete"),
            "coach": _session_party(b.coach, "Coach"),
            "session": {
                "date": date_text,
                "time": time_text,
                "date_time": f"{date_text} • {time_text}",
                "appointment_date": isoformat(b.appointment_date),
                "session_time": isoformat(b.session_time),
            },
            "status": b.status,
            "validation_token": b.validation_token,
            "is_validated": bool(b.validation_token),
        })
    return jsonify({"success": True, "data": data, "total": len(data)})


def _update_summary(profile, user):
    certifications = profile.certifications or []
    specialties = profile.specialties or []
    if certifications:
        return "New Specialization", f"{certifications[-1]} certification added"
    if user.bio:
        return "Bio Update", "Updated professional bio..."
    if specialties:
        return "New Specialization", f"{specialties[-1]} specialization added"
    return "Profile Update", "Updated profile information"


@admin_bp.route("/content/content-approval", methods=["GET"])
@admin_required
def content_approval_list():
    since = utcnow() - timedelta(days=APPROVAL_WINDOW_DAYS)
    profiles = CoachProfile.query.filter(CoachProfile.updated_at >= since) \
        .order_by(CoachProfile.updated_at.desc()).all()

    pending = []
    for profile in profiles:
        user = profile.user
        if not user:
            continue
        recently_updated = bool(profile.updated_at and profile.created_at and profile.updated_at > profile.created_at)
        if user.approved_at and not recently_updated:
            continue
        update_type, description = _update_summary(profile, user)
        pending.append({
            "id": profile.id,
            "user_id": user.id,
            "title": f"{user.name or 'Unknown'} - {update_type}",
            "description": description,
            "coach_name": user.name or "N/A",
            "coach_email": user.email or "N/A",
            "coach_avatar": user.avatar_url,
            "update_type": update_type,
            "updated_at": isoformat(profile.updated_at),
            "created_at": isoformat(profile.created_at),
            "is_pending": True,
            "profile_data": {
                "primary_specialty": profile.primary_specialty,
                "specialties": profile.specialties or [],
                "certifications": profile.certifications or [],
                "experience_level": profile.experience_level,
                "bio": user.bio,
            },
        })
    return jsonify({"success": True, "data": pending, "total": len(pending)})


def _content_owner(data):
    if data["type"] == "coach_profile":
        profile = db.session.get(CoachProfile, data["id"])
        if not profile:
            raise NotFoundError("Coach profile not found")
        return profile.user
    user = db.session.get(User, data["id"])
    if not user:
        raise NotFoundError("User not found")
    return user


@admin_bp.route("/content/content-approval/approve", methods=["POST"])
@admin_required
def approve_content():
    data = ContentActionSchema().load(get_payload())
    user = _content_owner(data)
    user.approved_at = utcnow()
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Approve content failed for {data['type']} {data['id']}: {e}")
        raise ApiError("Failed to approve content", 500)
    return jsonify({"success": True, "message": "Content approved successfully"})


@admin_bp.route("/content/content-approval/reject", methods=["POST"])
@admin_required
def reject_content():
    data = ContentActionSchema().load(get_payload())
    user = _content_owner(data)
    user.approved_at = None
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Reject content failed for {data['type']} {data['id']}: {e}")
        raise ApiError("Failed to reject content", 500)
    reason = data.get("reason")
    return jsonify({
        "success": True,
        "message": f"Content rejected: {reason}" if reason else "Content rejected successfully",
    })
