from flask import jsonify, request
from flask_jwt_extended import current_user, jwt_required

from coachhub.errors import NotFoundError
from coachhub.extensions import db
from coachhub.models import CoachProfile, CoachReview, SessionPackage, User
from . import bookings_bp

SUGGESTED_LIMIT = 12
SEARCH_LIMIT = 50


def _active_coaches():
    return (
        db.session.query(User, CoachProfile)
        .join(CoachProfile, CoachProfile.user_id == User.id)
        .filter(User.role == "coach", User.status == "active", CoachProfile.status == 1)
        .order_by(CoachProfile.is_verified.desc(), CoachProfile.session_price.asc())
        .all()
    )


def _contains(haystack, needle):
    return bool(haystack) and needle.lower() in haystack.lower()


def _has_specialty(profile, value):
    wanted = value.lower()
    return any(str(s).lower() == wanted for s in (profile.specialties or []))


def _matches_text(user, profile, text):
    return (
        _contains(user.name, text)
        or _contains(profile.primary_specialty, text)
        or _has_specialty(profile, text)
    )


def _matches_sport(profile, sport):
    return _has_specialty(profile, sport) or _contains(profile.primary_specialty, sport)


def _coach_card(user, profile):
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'avatar': user.avatar,
        'avatar_url': user.avatar_url,
        'phone_number': user.phone_number,
        'bio': user.bio,
        'location': user.location,
        'type': user.role,
        'coach_profile': profile.to_public_dict(),
    }


def find_coaches(search_text=None, sport=None, limit=SEARCH_LIMIT):
    """Active coaches matching any of the given filters, verified first then cheapest.

    Specialties live in a JSON column, so matching happens after the query.
    """
    search_text = (search_text or '').strip()
    sport = (sport or '').strip()
    results = []
    for user, profile in _active_coaches():
        if sport or search_text:
            matched = (sport and _matches_sport(profile, sport)) or (
                search_text and _matches_text(user, profile, search_text)
            )
            if not matched:
                continue
        results.append(_coach_card(user, profile))
        if len(results) >= limit:
            break
    return results


@bookings_bp.route("/suggested/coaches", methods=["GET"])
@jwt_required()
def get_suggested_coaches():
    coaches = find_coaches(
        search_text=request.args.get("search"),
        sport=current_user.sports,
        limit=SUGGESTED_LIMIT,
    )
    return jsonify({"success": True, "data": coaches})


@bookings_bp.route("/search/coaches", methods=["GET"])
@jwt_required()
def search_coaches():
    coaches = find_coaches(search_text=request.args.get("search"), limit=SEARCH_LIMIT)
    return jsonify({"success": True, "data": coaches})


@bookings_bp.route("/coach/<int:coach_id>/details", methods=["GET"])
@jwt_required()
def get_coach_details(coach_id):
    coach = db.session.get(User, coach_id)
    if not coach or not coach.is_coach:
        raise NotFoundError("Coach not found")
    profile = coach.coach_profile

    packages = []
    reviews = []
    if profile:
        packages = SessionPackage.query.filter_by(coach_profile_id=profile.id) \
            .order_by(SessionPackage.created_at.desc()).all()
        reviews = CoachReview.query.filter_by(coach_id=profile.id) \
            .filter(CoachReview.deleted_at.is_(None)) \
            .order_by(CoachReview.created_at.desc()).limit(5).all()

    return jsonify({
        "success": True,
        "data": {
            "user": coach.to_public_dict(),
            "coach_profile": profile.to_dict() if profile else None,
            "session_packages": [p.to_dict() for p in packages],
            "reviews": [
                dict(r.to_dict(), athlete=r.athlete.to_summary() if r.athlete else None)
                for r in reviews
            ],
        },
    })
