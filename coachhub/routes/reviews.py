import logging

from flask import Blueprint, jsonify, request
from flask_jwt_extended import current_user, jwt_required
from sqlalchemy import func

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db
from coachhub.models import Booking, CoachProfile, CoachReview
from coachhub.utils.formatting import parse_int
from coachhub.utils.payload import get_payload

logger = logging.getLogger(__name__)

reviews_bp = Blueprint("reviews", __name__)


def refresh_coach_rating(coach_profile_id):
    """Recompute avg_rating and rating_count over rated reviews of a coach profile."""
    avg, count = db.session.query(
        func.avg(CoachReview.rating),
        func.count(CoachReview.rating),
    ).filter(
        CoachReview.coach_id == coach_profile_id,
        CoachReview.rating.isnot(None),
        CoachReview.deleted_at.is_(None),
    ).one()

    profile = db.session.get(CoachProfile, coach_profile_id)
    if profile:
        profile.avg_rating = float(avg) if avg is not None else None
        profile.rating_count = count or 0
    return profile


@reviews_bp.route("/booking/<int:booking_id>", methods=["POST"])
@jwt_required()
def create_review(booking_id):
    data = get_payload()
    text = data.get("review")
    if isinstance(text, str):
        text = text.strip()
    if not text:
        raise ApiError("Review content is required")

    rating = data.get("rating")
    if rating in (None, ""):
        rating = None
    else:
        try:
            rating = int(rating)
        except (TypeError, ValueError):
            raise ApiError("Rating must be a number between 1 and 5")
        if not 1 <= rating <= 5:
            raise ApiError("Rating must be a number between 1 and 5")

    booking = Booking.query.filter_by(id=booking_id, user_id=current_user.id, deleted_at=None).first()
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.status != "COMPLETED":
        raise ApiError("You can only review a completed booking")
    if CoachReview.query.filter_by(booking_id=booking.id, athlete_id=current_user.id).first():
        raise ApiError("Review already submitted for this booking")

    review = CoachReview(
        coach_id=booking.coach_profile_id,
        athlete_id=current_user.id,
        booking_id=booking.id,
        review_text=text,
        rating=rating,
    )
    try:
        db.session.add(review)
        db.session.flush()
        refresh_coach_rating(booking.coach_profile_id)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating review for booking {booking_id}: {e}")
        raise ApiError("Failed to send review to coach", 500)

    return jsonify({"success": True, "message": "Review submitted", "data": review.to_dict()}), 201


@reviews_bp.route("/coach/<int:coach_profile_id>", methods=["GET"])
@jwt_required()
def get_coach_reviews(coach_profile_id):
    page = parse_int(request.args.get("page"), 1, minimum=1)
    limit = parse_int(request.args.get("limit"), 10, minimum=1, maximum=100)

    profile = db.session.get(CoachProfile, coach_profile_id)
    if not profile:
        raise NotFoundError("Coach profile not found")

    query = CoachReview.query.filter(
        CoachReview.coach_id == coach_profile_id,
        CoachReview.deleted_at.is_(None),
    )
    total = query.count()
    reviews = query.order_by(CoachReview.created_at.desc()) \
        .offset((page - 1) * limit).limit(limit).all()

    return jsonify({
        "success": True,
        "coach": {
            "id": profile.id,
            "avg_rating": profile.avg_rating or 0,
            "rating_count": profile.rating_count or 0,
        },
        "reviews": [
            {
                "id": r.id,
                "created_at": r.created_at.isoformat() if r.created_at else None,
                "athlete": r.athlete.to_summary() if r.athlete else None,
                "review": r.review_text,
                "rating": r.rating,
            }
            for r in reviews
        ],
        "page": page,
        "limit": limit,
        "total": total,
    })
