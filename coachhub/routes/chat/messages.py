import logging

from flask import jsonify, request
from flask_jwt_extended import current_user, jwt_required

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db, socketio
from coachhub.models import Booking, Message
from coachhub.utils.dates import isoformat, parse_appointment, utcnow
from coachhub.utils.decorators import coach_required
from coachhub.utils.formatting import parse_int
from coachhub.utils.payload import get_payload
from . import chat_bp
from .conversations import find_conversation, member_conversation

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def post_message(conversation, sender_id, text):
    """Store a message, touch the conversation and push it to the room."""
    message = Message(
        conversation_id=conversation.id,
        sender_id=sender_id,
        receiver_id=conversation.other_member_id(sender_id),
        message=text,
        status='sent',
    )
    db.session.add(message)
    conversation.updated_at = utcnow()
    db.session.commit()

    event = {'from': sender_id, 'data': message.to_event()}
    socketio.emit('message', event, to=conversation.room)
    return message


@chat_bp.route("/message", methods=["POST"])
@jwt_required()
def send_message():
    data = get_payload()
    conversation_id = data.get("conversation_id")
    text = str(data.get("message") or "").strip()
    if not conversation_id or not str(conversation_id).isdigit():
        raise ApiError("conversation_id is required")
    if not text:
        raise ApiError("message is required")

    conversation = member_conversation(int(conversation_id), current_user.id)
    try:
        message = post_message(conversation, current_user.id, text)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error sending message to conversation {conversation_id}: {e}")
        raise ApiError("Failed to send message", 500)

    return jsonify({"success": True, "data": message.to_dict()}), 201


@chat_bp.route("/message", methods=["GET"])
@jwt_required()
def list_messages():
    conversation_id = request.args.get("conversation_id", type=int)
    if not conversation_id:
        raise ApiError("conversation_id is required")
    limit = parse_int(request.args.get("limit"), DEFAULT_LIMIT, minimum=1, maximum=MAX_LIMIT)
    cursor = request.args.get("cursor", type=int)

    conversation = member_conversation(conversation_id, current_user.id)
    query = conversation.messages
    if cursor:
        query = query.filter(Message.id < cursor)
    messages = query.order_by(Message.id.desc()).limit(limit).all()

    return jsonify({
        "success": True,
        "data": [m.to_dict() for m in messages],
        "next_cursor": messages[-1].id if len(messages) == limit else None,
    })


@chat_bp.route("/message/custom-offer", methods=["POST"])
@coach_required
def send_custom_offer():
    data = get_payload()
    booking_id = data.get("booking_id")
    if not booking_id or not str(booking_id).isdigit():
        raise ApiError("booking_id is required")

    booking = Booking.query.filter_by(
        id=int(booking_id),
        coach_id=current_user.id,
        deleted_at=None,
    ).first()
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.status != 'PENDING':
        raise ApiError("Only pending bookings can receive a custom offer")

    if data.get("session_price") not in (None, ""):
        try:
            price = float(data["session_price"])
        except (TypeError, ValueError):
            raise ApiError("session_price must be a number")
        if price < 0:
            raise ApiError("session_price must be a number")
        booking.session_price = price
        booking.total_amount = price * (booking.number_of_sessions or 1)
    if data.get("appointment_date"):
        appointment = parse_appointment(data["appointment_date"])
        if appointment is None:
            raise ApiError("Invalid date format")
        booking.appointment_date = appointment
    if data.get("duration_minutes") not in (None, ""):
        booking.duration_minutes = parse_int(data["duration_minutes"], booking.duration_minutes, minimum=1)
    for field in ("title", "description"):
        if data.get(field) is not None:
            setattr(booking, field, data[field])

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error applying custom offer to booking {booking_id}: {e}")
        raise ApiError("Failed to send custom offer", 500)

    conversation = find_conversation(current_user.id, booking.user_id)
    if conversation:
        text = (
            f"Custom offer for booking #{booking.id}: "
            f"{booking.title or 'Session'} on {isoformat(booking.appointment_date)} "
            f"for {float(booking.session_price or 0):.2f} {booking.currency or 'USD'}"
        )
        try:
            post_message(conversation, current_user.id, text)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Could not post custom offer message for booking {booking.id}: {e}")

    return jsonify({"success": True, "message": "Custom offer sent", "data": booking.to_dict()})
