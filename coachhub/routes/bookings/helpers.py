from coachhub.errors import NotFoundError
from coachhub.models import Booking, CoachProfile, User


def own_coach_profile(user):
    """The caller's coach profile, or 404 when the caller is not a coach or has none."""
    if user is None or not user.is_coach:
        raise NotFoundError("Coach not found")
    if user.coach_profile is None:
        raise NotFoundError("Coach profile not found")
    return user.coach_profile


def profile_for_user_id(user_id):
    return CoachProfile.query.filter_by(user_id=user_id).first()


def active_bookings():
    return Booking.query.filter(Booking.deleted_at.is_(None))


def with_athlete(booking):
    data = booking.to_dict()
    data['user'] = booking.user.to_public_dict() if booking.user else None
    return data


def with_coach(booking, coach_users=None):
    data = booking.to_dict()
    coach = (coach_users or {}).get(booking.coach_id) or booking.coach
    data['user'] = booking.user.to_public_dict() if booking.user else None
    data['coach_profile'] = booking.coach_profile.to_public_dict() if booking.coach_profile else None
    data['coach'] = {
        'user': coach.to_public_dict() if coach else None,
        'profile': data['coach_profile'],
    }
    return data


def with_package(data, booking):
    package = booking.session_package
    data['sessionPackage'] = package.to_dict() if package else None
    return data


def coach_users_for(bookings):
    ids = {b.coach_id for b in bookings}
    if not ids:
        return {}
    return {u.id: u for u in User.query.filter(User.id.in_(ids)).all()}
