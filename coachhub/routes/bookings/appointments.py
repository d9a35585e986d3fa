import logging

from flask import jsonify
from flask_jwt_extended import current_user, jwt_required

from coachhub.errors import ApiError, ConflictError, ForbiddenError, NotFoundError
from coachhub.extensions import db
from coachhub.models import Booking, PaymentTransaction, SessionPackage, User
from coachhub.schemas.bookings import UpdateBookingSchema
from coachhub.utils import stripe_payment
from coachhub.utils.availability import profile_blocks, remove_expired_blocked_days
from coachhub.utils.dates import day_range, parse_appointment, utcnow
from coachhub.utils.payload import get_payload
from . import bookings_bp
from .helpers import (
    active_bookings,
    coach_users_for,
    own_coach_profile,
    profile_for_user_id,
    with_athlete,
    with_coach,
    with_package,
)

logger = logging.getLogger(__name__)


def _parse_day(value):
    parsed = parse_appointment(value)
    if parsed is None:
        raise ApiError("Invalid date format")
    return day_range(parsed)


# ---------------- Book an appointment ----------------
@bookings_bp.route("/coach/<int:coach_id>", methods=["POST"])
@jwt_required()
def book_appointment(coach_id):
    athlete = current_user
    data = get_payload()

    coach = db.session.get(User, coach_id)
    if not coach:
        raise NotFoundError("Coach not found")
    if not coach.is_coach:
        raise ApiError("The target user is not a coach")
    profile = coach.coach_profile
    if not profile:
        raise NotFoundError("Coach profile not found")

    if remove_expired_blocked_days(profile):
        db.session.commit()

    appointment = parse_appointment(data.get("appointment_date") or data.get("date"))
    if appointment is None:
        raise ApiError("Invalid date format")

    if profile_blocks(profile, appointment):
        raise ApiError("Selected date/time is blocked by the coach")

    duplicate = Booking.query.filter_by(
        coach_id=coach.id,
        coach_profile_id=profile.id,
        user_id=athlete.id,
        appointment_date=appointment,
    ).first()
    if duplicate:
        raise ConflictError("Booking already exists for this coach and date")

    package = None
    package_id = data.get("sessionPackageId") or data.get("session_package_id")
    if package_id:
        package = db.session.get(SessionPackage, int(package_id)) if str(package_id).isdigit() else None
        if not package:
            raise NotFoundError("Session package not found")
        if package.coach_id != coach.id or package.coach_profile_id != profile.id:
            raise ApiError("Session package does not belong to this coach")

    booking = Booking(
        user_id=athlete.id,
        coach_id=coach.id,
        coach_profile_id=profile.id,
        appointment_date=appointment,
        duration_minutes=profile.session_duration_minutes or 60,
        session_price=profile.price,
        currency=profile.hourly_currency or "USD",
        location=coach.location or "offline",
        notes="",
        google_map_link="",
        status="PENDING",
    )
    if package:
        booking.session_package_id = package.id
        booking.title = package.title
        booking.description = package.description
        booking.number_of_sessions = package.number_of_sessions or 1
        booking.days_validity = package.days_validity
        booking.total_completed_session = 0
        booking.total_amount = package.total_price
        booking.session_price = package.price_per_session
        booking.currency = package.currency or booking.currency

    try:
        db.session.add(booking)
        db.session.flush()

        customer = None
        try:
            customer = stripe_payment.ensure_customer(athlete)
        except Exception as e:
            logger.error(f"Failed to create stripe customer for user {athlete.id}: {e}")

        amount = float(booking.total_amount) if package else float(booking.session_price or booking.total_amount or 0)
        metadata = {"booking_id": booking.id, "user_id": athlete.id}
        if package:
            metadata["package_id"] = package.id
        intent = stripe_payment.create_payment_intent(
            amount=amount,
            currency=booking.currency,
            customer=customer,
            metadata=metadata,
        )

        tx = PaymentTransaction(
            user_id=athlete.id,
            provider="stripe",
            reference_number=intent["id"],
            type="booking",
            status="pending",
            amount=amount,
            currency=booking.currency,
        )
        db.session.add(tx)
        db.session.flush()
        booking.payment_transaction_id = tx.id
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"bookAppointment error for coach {coach_id}: {e}")
        raise ApiError(f"Failed to book appointment: {e}", 500)

    response = {"success": True, "booking": booking.to_dict(), "clientSecret": intent["client_secret"]}
    if package:
        response["message"] = "Session booking created (awaiting payment)"
    return jsonify(response), 201


# ---------------- Athlete / coach listings ----------------
@bookings_bp.route("/athlete/<int:athlete_id>", methods=["GET"])
@jwt_required()
def get_athlete_bookings(athlete_id):
    bookings = active_bookings().filter(Booking.user_id == athlete_id).order_by(Booking.appointment_date.asc()).all()
    if not bookings:
        raise NotFoundError("No bookings found for this athlete")
    return jsonify({"success": True, "data": [with_coach(b) for b in bookings]})


@bookings_bp.route("/athlete/<int:athlete_id>/date/<date>", methods=["GET"])
@jwt_required()
def get_athlete_bookings_by_date(athlete_id, date):
    start, end = _parse_day(date)
    bookings = active_bookings().filter(
        Booking.user_id == athlete_id,
        Booking.appointment_date >= start,
        Booking.appointment_date < end,
    ).order_by(Booking.appointment_date.asc()).all()
    if not bookings:
        raise NotFoundError("No bookings found for this athlete on the specified date")
    return jsonify({"success": True, "data": [with_coach(b) for b in bookings]})


@bookings_bp.route("/coach/<int:coach_id>", methods=["GET"])
@jwt_required()
def get_coach_bookings(coach_id):
    profile = profile_for_user_id(coach_id)
    if not profile:
        return jsonify({"success": True, "data": []})
    bookings = active_bookings().filter(
        Booking.coach_id == coach_id,
        Booking.coach_profile_id == profile.id,
    ).order_by(Booking.appointment_date.asc()).all()
    if not bookings:
        raise NotFoundError("No bookings found for this coach")
    return jsonify({"success": True, "data": [with_athlete(b) for b in bookings]})


@bookings_bp.route("/coach/<int:coach_id>/date/<date>", methods=["GET"])
@jwt_required()
def get_coach_bookings_by_date(coach_id, date):
    start, end = _parse_day(date)
    profile = profile_for_user_id(coach_id)
    if not profile:
        return jsonify({"success": True, "data": []})
    bookings = active_bookings().filter(
        Booking.coach_id == coach_id,
        Booking.coach_profile_id == profile.id,
        Booking.appointment_date >= start,
        Booking.appointment_date < end,
    ).order_by(Booking.appointment_date.asc()).all()
    if not bookings:
        raise NotFoundError("No bookings found for this coach on the specified date")
    return jsonify({"success": True, "data": [with_athlete(b) for b in bookings]})


def _upcoming_for(user):
    now = utcnow()
    if user.is_coach:
        profile = user.coach_profile
        if not profile:
            logger.error(f"Upcoming bookings: coach profile not found for user {user.id}")
            return []
        bookings = active_bookings().filter(
            Booking.coach_id == user.id,
            Booking.coach_profile_id == profile.id,
            Booking.appointment_date >= now,
        ).order_by(Booking.appointment_date.asc()).all()
        return [with_athlete(b) for b in bookings]

    bookings = active_bookings().filter(
        Booking.user_id == user.id,
        Booking.appointment_date >= now,
    ).order_by(Booking.appointment_date.asc()).all()
    coaches = coach_users_for(bookings)
    return [with_coach(b, coaches) for b in bookings]


@bookings_bp.route("/upcoming", methods=["GET"])
@jwt_required()
def get_upcoming_bookings():
    return jsonify({"success": True, "data": _upcoming_for(current_user)})


@bookings_bp.route("/next", methods=["GET"])
@jwt_required()
def get_next_session():
    upcoming = _upcoming_for(current_user)
    return jsonify({"success": True, "data": upcoming[0] if upcoming else None})


@bookings_bp.route("/completed", methods=["GET"])
@jwt_required()
def get_completed_bookings():
    user = current_user
    if user.is_coach:
        profile = user.coach_profile
        if not profile:
            return jsonify({"success": True, "data": []})
        bookings = active_bookings().filter(
            Booking.coach_id == user.id,
            Booking.coach_profile_id == profile.id,
            Booking.status == "COMPLETED",
        ).order_by(Booking.appointment_date.desc()).all()
        data = [with_package(with_athlete(b), b) for b in bookings]
    else:
        bookings = active_bookings().filter(
            Booking.user_id == user.id,
            Booking.status == "COMPLETED",
        ).order_by(Booking.appointment_date.desc()).all()
        coaches = coach_users_for(bookings)
        data = [with_package(with_coach(b, coaches), b) for b in bookings]
    return jsonify({"success": True, "data": data})


# ---------------- Single booking ----------------
@bookings_bp.route("/<int:booking_id>", methods=["GET"])
@jwt_required()
def get_booking(booking_id):
    booking = active_bookings().filter_by(id=booking_id, user_id=current_user.id).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return jsonify({"success": True, "data": with_coach(booking)})


def _coach_booking(booking_id):
    profile = own_coach_profile(current_user)
    booking = active_bookings().filter_by(
        id=booking_id,
        coach_id=current_user.id,
        coach_profile_id=profile.id,
    ).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


@bookings_bp.route("/<int:booking_id>/coach", methods=["GET"])
@jwt_required()
def get_booking_for_coach(booking_id):
    booking = _coach_booking(booking_id)
    return jsonify({"success": True, "data": with_athlete(booking)})


@bookings_bp.route("/<int:booking_id>", methods=["PATCH"])
@jwt_required()
def update_booking(booking_id):
    if not current_user.is_coach:
        raise ForbiddenError("Only coaches can update bookings")
    booking = _coach_booking(booking_id)
    data = UpdateBookingSchema().load(get_payload())

    for field, value in data.items():
        setattr(booking, field, value)

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating booking {booking_id}: {e}")
        raise ApiError("Failed to update booking", 500)

    return jsonify({"success": True, "message": "Booking updated successfully", "data": booking.to_dict()})


# ---------------- Validation token ----------------
@bookings_bp.route("/<int:booking_id>/validate", methods=["POST"])
@jwt_required()
def validate_booking_token(booking_id):
    token = str(get_payload().get("token") or "").strip()
    if not token:
        raise ApiError("Validation token is required")
    booking = _coach_booking(booking_id)

    if not booking.validation_token or not booking.token_expires_at:
        raise ApiError("No validation token available for this booking")
    if booking.token_expires_at < utcnow():
        raise ApiError("Validation token has expired")
    if booking.validation_token != token:
        raise ApiError("Invalid validation token")

    booking.status = "COMPLETED"
    booking.validation_token = None
    booking.token_expires_at = None
    booking.total_completed_session = (booking.total_completed_session or 0) + 1
    db.session.commit()

    return jsonify({
        "success": True,
        "message": "Booking validated and marked as completed",
        "booking": booking.to_dict(),
    })


@bookings_bp.route("/<int:booking_id>/token", methods=["GET"])
@jwt_required()
def get_booking_token(booking_id):
    booking = active_bookings().filter_by(id=booking_id, user_id=current_user.id).first()
    if not booking:
        raise NotFoundError("Booking not found")
    if not booking.validation_token:
        raise ApiError("No validation token available")
    if booking.token_expires_at and booking.token_expires_at < utcnow():
        raise ApiError("Validation token has expired")

    return jsonify({
        "success": True,
        "validation_token": booking.validation_token,
        "expires_at": booking.token_expires_at.isoformat() if booking.token_expires_at else None,
    })
