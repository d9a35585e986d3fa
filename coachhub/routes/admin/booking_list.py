import csv
import io
import logging
from datetime import timedelta

from flask import jsonify, make_response, request
from flask_jwt_extended import current_user
from sqlalchemy import or_
from sqlalchemy.orm import aliased

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db
from coachhub.models import Booking, Notification, NotificationEvent, User
from coachhub.schemas.admin import AdminBookingSchema, BulkNotificationSchema
from coachhub.schemas.bookings import UpdateBookingSchema
from coachhub.utils.dates import isoformat, start_of_day, utcnow
from coachhub.utils.decorators import admin_required
from coachhub.utils.payload import get_payload, get_upload
from coachhub.utils.storage import StorageError, upload_file
from . import admin_bp
from .helpers import display_datetime, page_params, pagination

logger = logging.getLogger(__name__)

ATTACHMENT_FOLDER = "attachment"


def _filtered_bookings():
    athlete = aliased(User)
    coach = aliased(User)
    query = Booking.query \
        .outerjoin(athlete, Booking.user_id == athlete.id) \
        .outerjoin(coach, Booking.coach_id == coach.id) \
        .filter(Booking.deleted_at.is_(None))

    search = (request.args.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Booking.title.ilike(pattern),
            athlete.name.ilike(pattern),
            coach.name.ilike(pattern),
        ))
    status = (request.args.get("status") or "").strip().upper()
    if status:
        query = query.filter(Booking.status == status)
    return query.order_by(Booking.created_at.desc(), Booking.id.desc())


def booking_row(booking):
    athlete = booking.user
    coach = booking.coach
    profile = booking.coach_profile
    return {
        "id": booking.id,
        "athlete_name": athlete.name if athlete else "N/A",
        "athlete_avatar": athlete.avatar_url if athlete else None,
        "session_type": booking.title or "N/A",
        "coach_name": coach.name if coach else "N/A",
        "coach_specialization": (profile.primary_specialty if profile else None) or "N/A",
        "date_time": display_datetime(booking.appointment_date),
        "status": booking.status,
        "appointment_date": isoformat(booking.appointment_date),
        "session_time": isoformat(booking.session_time),
        "duration_minutes": booking.duration_minutes,
        "location": booking.location,
        "description": booking.description,
        "notes": booking.notes,
        "created_at": isoformat(booking.created_at),
    }


def _booking_or_404(booking_id):
    booking = Booking.query.filter_by(id=booking_id, deleted_at=None).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


@admin_bp.route("/booking-list", methods=["POST"])
@admin_required
def admin_create_booking():
    data = AdminBookingSchema().load(get_payload())

    athlete = db.session.get(User, data["user_id"])
    coach = db.session.get(User, data["coach_id"])
    if not athlete:
        raise NotFoundError("Athlete not found")
    if not coach or not coach.is_coach:
        raise NotFoundError("Coach not found")
    if not data.get("coach_profile_id") and coach.coach_profile:
        data["coach_profile_id"] = coach.coach_profile.id

    image = get_upload("image")
    if image:
        try:
            upload_file(image, ATTACHMENT_FOLDER)
        except StorageError as e:
            logger.error(f"Booking image upload failed: {e}")
            raise ApiError(f"Failed to upload image: {e}", 500)

    booking = Booking(**{k: v for k, v in data.items() if v is not None})
    try:
        db.session.add(booking)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Admin booking create failed: {e}")
        raise ApiError("Failed to create booking", 500)

    return jsonify({"success": True, "message": "Booking created successfully", "data": booking_row(booking)}), 201


@admin_bp.route("/booking-list", methods=["GET"])
@admin_required
def admin_list_bookings():
    page, limit = page_params()
    query = _filtered_bookings()
    total = query.count()
    bookings = query.offset((page - 1) * limit).limit(limit).all()
    return jsonify({
        "success": True,
        "data": [booking_row(b) for b in bookings],
        "pagination": pagination(page, limit, total),
    })


def _rate(part, whole, digits=0):
    if not whole:
        return 0
    value = part / whole * 100
    return round(value, digits) if digits else round(value)


def _window_stats(bookings):
    total = len(bookings)
    durations = [b.duration_minutes for b in bookings if b.duration_minutes is not None]
    return {
        "completion": _rate(sum(1 for b in bookings if b.status == 'COMPLETED'), total),
        "cancellation": _rate(sum(1 for b in bookings if b.status == 'CANCELLED'), total, 1),
        "duration": round(sum(durations) / len(durations)) if durations else 0,
    }


def _metric(value, change, unit=None, lower_is_better=False):
    data = {"value": value, "change": change, "is_positive": change <= 0 if lower_is_better else change >= 0}
    if unit:
        data["unit"] = unit
    return data


@admin_bp.route("/booking-list/metrics", methods=["GET"])
@admin_required
def admin_booking_metrics():
    now = utcnow()
    today = start_of_day(now)
    active = Booking.query.filter(Booking.deleted_at.is_(None))

    today_count = active.filter(Booking.created_at >= today, Booking.created_at < today + timedelta(days=1)).count()
    yesterday_count = active.filter(Booking.created_at >= today - timedelta(days=1), Booking.created_at < today).count()

    last7_start = now - timedelta(days=7)
    prev7_start = last7_start - timedelta(days=7)
    last7 = _window_stats(active.filter(Booking.created_at >= last7_start).all())
    prev7 = _window_stats(active.filter(Booking.created_at >= prev7_start, Booking.created_at < last7_start).all())

    return jsonify({
        "success": True,
        "data": {
            "total_bookings_today": _metric(today_count, today_count - yesterday_count),
            "completion_rate": _metric(last7["completion"], last7["completion"] - prev7["completion"], "%"),
            "average_session_duration": _metric(last7["duration"], last7["duration"] - prev7["duration"], "min"),
            "cancellation_rate": _metric(
                last7["cancellation"],
                round(last7["cancellation"] - prev7["cancellation"], 1),
                "%",
                lower_is_better=True,
            ),
        },
    })


def _recipient_ids(data):
    recipient_type = data["recipient_type"]
    if recipient_type == "specific":
        wanted = set(data["recipient_ids"])
        found = {u.id for u in User.query.filter(User.id.in_(wanted)).all()}
        if found != wanted:
            raise ApiError("Some recipient IDs are invalid or deleted")
        return sorted(found)

    query = User.query.filter_by(status='active')
    if recipient_type == "coaches":
        query = query.filter_by(role='coach')
    elif recipient_type == "athletes":
        query = query.filter_by(role='athlete')
    return [u.id for u in query.all()]


@admin_bp.route("/booking-list/send-bulk-notification", methods=["POST"])
@admin_required
def send_bulk_notification():
    data = BulkNotificationSchema().load(get_payload())
    receivers = _recipient_ids(data)
    if not receivers:
        raise ApiError("No recipients found for the selected recipient type")

    event = NotificationEvent(type="booking", text=f"{data['notification_title']}: {data['message_content']}")
    try:
        db.session.add(event)
        db.session.flush()
        notifications = [
            Notification(notification_event_id=event.id, sender_id=current_user.id, receiver_id=receiver)
            for receiver in receivers
        ]
        db.session.add_all(notifications)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Bulk notification failed: {e}")
        raise ApiError("Failed to send bulk notifications", 500)

    return jsonify({
        "success": True,
        "message": f"Bulk notification sent successfully to {len(notifications)} recipients",
        "data": {
            "notification_title": data["notification_title"],
            "message_content": data["message_content"],
            "recipient_type": data["recipient_type"],
            "total_recipients": len(notifications),
            "notification_event_id": event.id,
            "created_at": isoformat(event.created_at),
            "sample_notification_ids": [n.id for n in notifications[:5]],
        },
    }), 201


@admin_bp.route("/booking-list/notification-status/<int:event_id>", methods=["GET"])
@admin_required
def notification_status(event_id):
    event = db.session.get(NotificationEvent, event_id)
    if not event:
        raise NotFoundError("Notification event not found")

    notifications = event.notifications.filter(Notification.deleted_at.is_(None)).all()
    total_sent = len(notifications)
    total_read = sum(1 for n in notifications if n.is_read)
    return jsonify({
        "success": True,
        "data": {
            "notification_event": {
                "id": event.id,
                "title": event.title,
                "message": event.body,
                "type": event.type,
                "created_at": isoformat(event.created_at),
            },
            "delivery_status": {
                "total_sent": total_sent,
                "total_read": total_read,
                "total_unread": total_sent - total_read,
                "read_rate": round(total_read / total_sent * 100, 2) if total_sent else 0,
            },
            "recipients": [
                {
                    "notification_id": n.id,
                    "user_id": n.receiver_id,
                    "user_name": n.receiver.name if n.receiver else "N/A",
                    "user_email": n.receiver.email if n.receiver else "N/A",
                    "read": n.is_read,
                    "read_at": isoformat(n.read_at),
                    "created_at": isoformat(n.created_at),
                }
                for n in notifications
            ],
        },
    })


@admin_bp.route("/booking-list/user-notifications/<int:user_id>", methods=["GET"])
@admin_required
def user_notifications(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    notifications = user.received_notifications.filter(Notification.deleted_at.is_(None)) \
        .order_by(Notification.created_at.desc(), Notification.id.desc()).limit(50).all()
    items = [n.to_dict() for n in notifications]
    unread = sum(1 for n in items if not n["read"])
    return jsonify({
        "success": True,
        "data": {
            "user": {"id": user.id, "name": user.name, "email": user.email},
            "total_notifications": len(items),
            "unread_count": unread,
            "read_count": len(items) - unread,
            "notifications": items,
        },
    })


EXPORT_HEADERS = [
    "Athlete Name", "Session Type", "Coach Name", "Coach Specialization",
    "Date & Time", "Status", "Location", "Duration (minutes)", "Created At",
]


@admin_bp.route("/booking-list/export", methods=["GET"])
@admin_required
def export_bookings():
    bookings = _filtered_bookings().all()
    if not bookings:
        raise NotFoundError("No bookings found to export")

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_HEADERS)
    for b in bookings:
        row = booking_row(b)
        writer.writerow([
            row["athlete_name"],
            row["session_type"],
            row["coach_name"],
            row["coach_specialization"],
            row["date_time"],
            row["status"],
            b.location or "N/A",
            b.duration_minutes or "N/A",
            display_datetime(b.created_at),
        ])

    response = make_response(output.getvalue())
    response.headers["Content-Disposition"] = f"attachment; filename=bookings_{utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
    response.headers["Content-type"] = "text/csv"
    return response


@admin_bp.route("/booking-list/<int:booking_id>", methods=["GET"])
@admin_required
def admin_get_booking(booking_id):
    booking = _booking_or_404(booking_id)
    data = booking_row(booking)
    data["athlete"] = booking.user.to_summary() if booking.user else None
    data["coach"] = booking.coach.to_summary() if booking.coach else None
    return jsonify({"success": True, "data": data})


@admin_bp.route("/booking-list/<int:booking_id>", methods=["PATCH"])
@admin_required
def admin_update_booking(booking_id):
    booking = _booking_or_404(booking_id)
    data = UpdateBookingSchema().load(get_payload())
    for field, value in data.items():
        setattr(booking, field, value)
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Admin booking update failed for {booking_id}: {e}")
        raise ApiError("Failed to update booking", 500)
    return jsonify({"success": True, "message": "Booking updated successfully", "data": booking_row(booking)})


@admin_bp.route("/booking-list/<int:booking_id>", methods=["DELETE"])
@admin_required
def admin_delete_booking(booking_id):
    booking = _booking_or_404(booking_id)
    booking.deleted_at = utcnow()
    db.session.commit()
    return jsonify({"success": True, "message": "Booking deleted successfully"})
