import logging

from flask import jsonify
from flask_jwt_extended import current_user, jwt_required
from sqlalchemy import or_

from coachhub.errors import ApiError, ForbiddenError, NotFoundError
from coachhub.extensions import db
from coachhub.models import Conversation, User
from coachhub.sockets.chat import emit_to_user
from coachhub.utils.decorators import admin_required
from coachhub.utils.dates import utcnow
from coachhub.utils.payload import get_payload
from . import chat_bp

logger = logging.getLogger(__name__)


def find_conversation(user_a, user_b):
    return Conversation.query.filter(
        Conversation.deleted_at.is_(None),
        or_(
            (Conversation.creator_id == user_a) & (Conversation.participant_id == user_b),
            (Conversation.creator_id == user_b) & (Conversation.participant_id == user_a),
        ),
    ).first()


def member_conversation(conversation_id, user_id):
    conversation = Conversation.query.filter_by(id=conversation_id, deleted_at=None).first()
    if not conversation:
        raise NotFoundError("Conversation not found")
    if not conversation.has_member(user_id):
        raise ForbiddenError("You are not a participant of this conversation")
    return conversation


@chat_bp.route("/conversation/create", methods=["POST"])
@jwt_required()
def create_conversation():
    participant_id = get_payload().get("participant_id")
    if not participant_id or not str(participant_id).isdigit():
        raise ApiError("participant_id is required")
    participant_id = int(participant_id)
    if participant_id == current_user.id:
        raise ApiError("You cannot start a conversation with yourself")

    participant = db.session.get(User, participant_id)
    if not participant:
        raise NotFoundError("Participant not found")

    # exactly one side is a coach
    if current_user.is_coach == participant.is_coach:
        raise ForbiddenError("Conversations are limited to coach <-> athlete interactions")

    existing = find_conversation(current_user.id, participant_id)
    if existing:
        return jsonify({
            "success": False,
            "message": "Conversation already exists",
            "data": existing.to_dict(),
        })

    conversation = Conversation(creator_id=current_user.id, participant_id=participant_id)
    try:
        db.session.add(conversation)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating conversation: {e}")
        raise ApiError("Failed to create conversation", 500)

    payload = conversation.to_dict()
    emit_to_user(current_user.id, 'conversation', payload)
    emit_to_user(participant_id, 'conversation', payload)
    return jsonify({"success": True, "message": "Conversation created", "data": payload}), 201


@chat_bp.route("/conversation", methods=["GET"])
@jwt_required()
def list_conversations():
    conversations = Conversation.query.filter(
        Conversation.deleted_at.is_(None),
        or_(Conversation.creator_id == current_user.id, Conversation.participant_id == current_user.id),
    ).order_by(Conversation.updated_at.desc()).all()
    return jsonify({"success": True, "data": [c.to_dict(with_last_message=True) for c in conversations]})


@chat_bp.route("/conversation/<int:conversation_id>", methods=["GET"])
@jwt_required()
def get_conversation(conversation_id):
    conversation = member_conversation(conversation_id, current_user.id)
    return jsonify({"success": True, "data": conversation.to_dict(with_last_message=True)})


@chat_bp.route("/conversation/<int:conversation_id>", methods=["DELETE"])
@admin_required
def delete_conversation(conversation_id):
    conversation = Conversation.query.filter_by(id=conversation_id, deleted_at=None).first()
    if not conversation:
        raise NotFoundError("Conversation not found")
    conversation.deleted_at = utcnow()
    db.session.commit()
    return jsonify({"success": True, "message": "Conversation deleted"})
