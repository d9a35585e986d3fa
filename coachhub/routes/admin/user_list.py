import logging

from flask import jsonify, request
from sqlalchemy import or_

from coachhub.errors import ApiError, ConflictError, NotFoundError
from coachhub.extensions import db
from coachhub.models import Booking, Conversation, Goal, GoalNote, User, UserBadge
from coachhub.schemas.admin import AdminUserUpdateSchema
from coachhub.utils.dates import isoformat, utcnow
from coachhub.utils.decorators import admin_required
from coachhub.utils.payload import get_payload, get_upload
from coachhub.utils.storage import delete_avatar, replace_avatar
from . import admin_bp
from .helpers import page_params, pagination

logger = logging.getLogger(__name__)

ROLE_FILTERS = {'coach': 'coach', 'user': 'athlete', 'athlete': 'athlete'}


def _user_or_404(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _badges(user):
    user_badges = user.user_badges.order_by(UserBadge.earned_at.desc()).all()
    return [
        {
            "id": ub.badge.id,
            "key": ub.badge.key,
            "title": ub.badge.title,
            "description": ub.badge.description,
            "icon": ub.badge.icon,
            "earned_at": isoformat(ub.earned_at),
        }
        for ub in user_badges if ub.badge
    ]


def coach_details(user):
    profile = user.coach_profile
    bookings = user.coach_bookings.filter(Booking.deleted_at.is_(None)).all()
    experience_years = (utcnow() - user.created_at).days // 365 if user.created_at else 0
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar_url,
        "role": "Coach",
        "description": user.bio or (profile.primary_specialty if profile else None) or "",
        "specialties": (profile.specialties if profile else None) or [],
        "primary_specialty": profile.primary_specialty if profile else None,
        "rating": profile.avg_rating if profile else None,
        "rating_count": (profile.rating_count or 0) if profile else 0,
        "badges": _badges(user),
        "certifications": (profile.certifications if profile else None) or [],
        "statistics": {
            "sessions": f"{len(bookings)}+ Session",
            "experience": f"{experience_years}+ Experience",
            "languages": "1+ Languages",
        },
        "experience_level": profile.experience_level if profile else None,
        "hourly_rate": float(profile.hourly_rate) if profile and profile.hourly_rate is not None else None,
        "hourly_currency": profile.hourly_currency if profile else None,
        "session_price": float(profile.session_price) if profile and profile.session_price is not None else None,
        "session_duration_minutes": (profile.session_duration_minutes if profile else None) or 60,
        "is_verified": bool(profile.is_verified) if profile else False,
        "created_at": isoformat(user.created_at),
        "joining_date": isoformat(user.created_at),
    }


def athlete_details(user):
    bookings = user.bookings.filter(Booking.deleted_at.is_(None)).all()
    completed = [b for b in bookings if b.status == 'COMPLETED']
    goals = [g.strip() for g in (user.goals or '').split(',') if g.strip()]
    demographics = " - ".join(str(p) for p in (user.age, user.gender) if p)
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar_url,
        "role": "Athlete",
        "description": user.bio or "",
        "demographics": demographics or None,
        "age": user.age,
        "gender": user.gender,
        "sports": user.sports,
        "objectives": user.objectives,
        "goals": goals,
        "badges": _badges(user),
        "statistics": {
            "sessions_completed": len(completed),
            "total_sessions": len(bookings),
        },
        "location": user.location,
        "phone_number": user.phone_number,
        "created_at": isoformat(user.created_at),
        "joining_date": isoformat(user.created_at),
    }


def user_row(user):
    return {
        "id": user.id,
        "user_name": user.name,
        "role": "Coach" if user.is_coach else ("Admin" if user.is_admin else "Athlete"),
        "email": user.email,
        "joining_date": isoformat(user.created_at),
        "status": "Active" if user.is_active else "Blocked",
        "avatar": user.avatar_url,
    }


@admin_bp.route("/user-list", methods=["GET"])
@admin_required
def admin_list_users():
    page, limit = page_params()
    query = User.query

    search = (request.args.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    role = ROLE_FILTERS.get((request.args.get("role") or "").strip().lower())
    if role:
        query = query.filter(User.role == role)
    status = (request.args.get("status") or "").strip().lower()
    if status in ("active", "blocked"):
        query = query.filter(User.status == status)

    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()) \
        .offset((page - 1) * limit).limit(limit).all()
    return jsonify({
        "success": True,
        "data": [user_row(u) for u in users],
        "pagination": pagination(page, limit, total),
    })


@admin_bp.route("/user-list/<int:user_id>", methods=["GET"])
@admin_required
def admin_get_user(user_id):
    user = _user_or_404(user_id)
    details = coach_details(user) if user.is_coach else athlete_details(user)
    return jsonify({"success": True, "data": details})


@admin_bp.route("/user-list/<int:user_id>", methods=["PATCH"])
@admin_required
def admin_update_user(user_id):
    user = _user_or_404(user_id)
    data = AdminUserUpdateSchema().load(get_payload())

    email = data.get("email")
    if email and email.lower() != user.email:
        if User.query.filter(User.email == email.lower(), User.id != user.id).first():
            raise ConflictError("Email already in use")
        data["email"] = email.lower()
    for field, value in data.items():
        setattr(user, field, value)

    image = get_upload("image")
    if image:
        replace_avatar(user, image)

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Admin update failed for user {user_id}: {e}")
        raise ApiError("Failed to update user", 500)

    return jsonify({"success": True, "message": "User updated successfully", "data": user_row(user)})


def _detach_user(user):
    """Remove rows that reference the user without an ORM cascade."""
    for conversation in Conversation.query.filter(
        or_(Conversation.creator_id == user.id, Conversation.participant_id == user.id)
    ).all():
        db.session.delete(conversation)
    GoalNote.query.filter_by(coach_id=user.id).delete(synchronize_session=False)
    Goal.query.filter_by(coach_id=user.id).update({"coach_id": None}, synchronize_session=False)


@admin_bp.route("/user-list/<int:user_id>", methods=["DELETE"])
@admin_required
def admin_delete_user(user_id):
    user = _user_or_404(user_id)
    avatar = user.avatar
    try:
        _detach_user(user)
        db.session.delete(user)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Admin delete failed for user {user_id}: {e}")
        raise ApiError("Failed to delete user", 500)

    delete_avatar(avatar)
    return jsonify({"success": True, "message": "User deleted successfully"})
