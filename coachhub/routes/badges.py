import logging
import math
from datetime import timedelta

from flask import Blueprint, jsonify
from flask_jwt_extended import current_user, get_jwt_identity, jwt_required

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db
from coachhub.models import Badge, Booking, UserBadge
from coachhub.utils.dates import utcnow

logger = logging.getLogger(__name__)

badges_bp = Blueprint("badges", __name__)

DEFAULT_BADGES = [
    {
        'key': 'first_session',
        'title': 'First Session',
        'description': 'Complete your first coaching session',
        'icon': 'first-session',
        'criteria': {'type': 'count', 'field': 'completed_bookings', 'value': 1},
        'points': 10,
    },
    {
        'key': 'goal_setter',
        'title': 'Goal Setter',
        'description': 'Set your first training goal',
        'icon': 'goal-setter',
        'criteria': {'type': 'count', 'field': 'goals', 'value': 1},
        'points': 10,
    },
    {
        'key': 'consistency_master',
        'title': 'Consistency Master',
        'description': 'Train on 7 different days within a week',
        'icon': 'consistency-master',
        'criteria': {'type': 'distinct_days', 'field': 'completed_bookings', 'value': 7},
        'points': 50,
    },
    {
        'key': 'marathon_trainer',
        'title': 'Marathon Trainer',
        'description': 'Complete 50 coaching sessions',
        'icon': 'marathon-trainer',
        'criteria': {'type': 'count', 'field': 'completed_bookings', 'value': 50},
        'points': 100,
    },
    {
        'key': 'perfect_week',
        'title': 'Perfect Week',
        'description': 'Complete a session every day for a week',
        'icon': 'perfect-week',
        'criteria': {'type': 'distinct_days', 'field': 'completed_bookings', 'value': 7},
        'points': 75,
    },
    {
        'key': 'legendary_athlete',
        'title': 'Legendary Athlete',
        'description': 'Collect 1000 points',
        'icon': 'legendary-athlete',
        'criteria': {'type': 'points', 'value': 1000},
        'points': 250,
    },
]

# key -> (stat name, target)
BADGE_TARGETS = {
    'first_session': ('completed_bookings', 1),
    'goal_setter': ('goals', 1),
    'consistency_master': ('active_days_last_week', 7),
    'marathon_trainer': ('completed_bookings', 50),
    'perfect_week': ('active_days_last_week', 7),
    'legendary_athlete': ('points', 1000),
}


def ensure_default_badges():
    """Create the built-in badges the first time badges are requested."""
    if Badge.query.first():
        return
    now = utcnow()
    for offset, entry in enumerate(DEFAULT_BADGES):
        db.session.add(Badge(created_at=now + timedelta(microseconds=offset), **entry))
    try:
        db.session.commit()
        logger.info("Seeded default badges")
    except Exception as e:
        db.session.rollback()
        logger.error(f"Could not seed default badges: {e}")
        raise


def _ordered_badges():
    return Badge.query.order_by(Badge.created_at.asc(), Badge.id.asc()).all()


def _earned_map(user_id):
    return {ub.badge_id: ub for ub in UserBadge.query.filter_by(user_id=user_id).all()}


def _completed_bookings(user_id):
    return Booking.query.filter_by(user_id=user_id, status='COMPLETED', deleted_at=None)


def user_badge_stats(user):
    completed = _completed_bookings(user.id)
    since = utcnow() - timedelta(days=7)
    recent = completed.filter(Booking.appointment_date >= since).all()
    earned = UserBadge.query.filter_by(user_id=user.id).all()
    return {
        'completed_bookings': completed.count(),
        'active_days_last_week': len({b.appointment_date.date() for b in recent if b.appointment_date}),
        'goals': 1 if (user.user_goals.first() or user.goals) else 0,
        'points': sum(ub.badge.points or 0 for ub in earned if ub.badge),
    }


def is_eligible(key, stats):
    if key == 'legendary_athlete':
        return False
    stat, target = BADGE_TARGETS[key]
    return stats[stat] >= target


def badge_progress(badge, stats):
    if badge.key in BADGE_TARGETS:
        stat, target = BADGE_TARGETS[badge.key]
        current = min(stats[stat], target)
    else:
        criteria = badge.criteria if isinstance(badge.criteria, dict) else {}
        target, current = 1, 0
        if criteria.get('type') == 'count' and criteria.get('field') == 'completed_bookings':
            target = criteria.get('value') or 1
            current = min(stats['completed_bookings'], target)
    percent = math.floor(current / target * 100) if target > 0 else 0
    return {'current': current, 'target': target, 'percent': percent}


def next_badge(badges, earned, stats):
    upcoming = next((b for b in badges if b.id not in earned), None)
    if upcoming is None:
        return None
    return {
        'badge': {
            'id': upcoming.id,
            'key': upcoming.key,
            'title': upcoming.title,
            'description': upcoming.description,
            'points': upcoming.points,
        },
        'progress': badge_progress(upcoming, stats),
    }


def _with_earned(badge, earned):
    data = badge.to_dict()
    user_badge = earned.get(badge.id)
    data['earned'] = user_badge is not None
    data['earned_at'] = user_badge.to_dict()['earned_at'] if user_badge else None
    return data


@badges_bp.route("", methods=["GET"])
@jwt_required(optional=True)
def list_badges():
    ensure_default_badges()
    badges = _ordered_badges()
    identity = get_jwt_identity()
    if not identity:
        return jsonify({"success": True, "data": [b.to_dict() for b in badges]})
    earned = _earned_map(int(identity))
    return jsonify({"success": True, "data": [_with_earned(b, earned) for b in badges]})


@badges_bp.route("/me", methods=["GET"])
@jwt_required()
def my_badges():
    ensure_default_badges()
    badges = _ordered_badges()
    earned = _earned_map(current_user.id)
    stats = user_badge_stats(current_user)
    return jsonify({
        "success": True,
        "data": {
            "total": len(badges),
            "earned_count": len(earned),
            "completed_bookings": stats['completed_bookings'],
            "badges": [_with_earned(b, earned) for b in badges],
            "next_badge": next_badge(badges, earned, stats),
        },
    })


@badges_bp.route("/<key>/claim", methods=["POST"])
@jwt_required()
def claim_badge(key):
    ensure_default_badges()
    badge = Badge.query.filter_by(key=key).first()
    if not badge:
        raise NotFoundError("Badge not found")
    if UserBadge.query.filter_by(user_id=current_user.id, badge_id=badge.id).first():
        return jsonify({"success": True, "awarded": False, "reason": "Already awarded"})
    if key not in BADGE_TARGETS:
        raise ApiError("Unknown badge key")

    if not is_eligible(key, user_badge_stats(current_user)):
        return jsonify({"success": True, "awarded": False, "reason": "Not eligible yet"})

    user_badge = UserBadge(user_id=current_user.id, badge_id=badge.id)
    try:
        db.session.add(user_badge)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error awarding badge {key} to user {current_user.id}: {e}")
        raise ApiError("Failed to award badge", 500)

    return jsonify({"success": True, "awarded": True, "badge": _with_earned(badge, {badge.id: user_badge})})
