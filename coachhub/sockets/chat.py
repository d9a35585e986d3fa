"""Socket.IO gateway for chat presence and message delivery."""
import logging

from flask import request
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_socketio import emit, join_room
from jwt import PyJWTError

from coachhub.extensions import db, socketio
from coachhub.models import Conversation, Message, User
from coachhub.models.message import CONVERSATION_ROOM_PREFIX
from coachhub.utils.dates import utcnow

logger = logging.getLogger(__name__)

# user id -> sid, and the reverse for disconnects
clients = {}
sid_users = {}

MESSAGE_STATUSES = ('sent', 'delivered', 'read')


def user_room(user_id):
    return f"user:{user_id}"


def emit_to_user(user_id, event, data):
    socketio.emit(event, data, to=user_room(user_id))


def _handshake_token(auth):
    token = None
    if isinstance(auth, dict):
        token = auth.get('token')
    if not token:
        token = request.args.get('token')
    if token and token.lower().startswith('bearer '):
        token = token[7:]
    return token


def _set_availability(user_id, status):
    user = db.session.get(User, user_id)
    if not user:
        return
    user.availability = status
    user.last_active = utcnow()
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Could not update availability for user {user_id}: {e}")


def _current_user_id():
    return sid_users.get(request.sid)


@socketio.on('connect')
def handle_connect(auth=None):
    token = _handshake_token(auth)
    if not token:
        logger.warning("Socket connection refused: no token")
        return False
    try:
        decoded = decode_token(token)
    except (PyJWTError, JWTExtendedException) as e:
        logger.warning(f"Socket connection refused: {e}")
        return False
    if decoded.get('type') != 'access':
        return False

    user_id = int(decoded['sub'])
    clients[user_id] = request.sid
    sid_users[request.sid] = user_id
    join_room(user_room(user_id))
    _set_availability(user_id, 'online')
    emit('userStatusChange', {'user_id': user_id, 'status': 'online'}, broadcast=True)
    logger.info(f"User {user_id} connected ({request.sid})")


@socketio.on('disconnect')
def handle_disconnect(*args):
    user_id = sid_users.pop(request.sid, None)
    if user_id is None:
        return
    if clients.get(user_id) == request.sid:
        clients.pop(user_id, None)
    _set_availability(user_id, 'offline')
    emit('userStatusChange', {'user_id': user_id, 'status': 'offline'}, broadcast=True)
    logger.info(f"User {user_id} disconnected")


def _member_conversation(room_id, user_id):
    """Conversation named by ``room_id`` (its id or ``conversation:<id>``) when ``user_id`` belongs to it."""
    text = str(room_id).strip()
    if text.startswith(CONVERSATION_ROOM_PREFIX):
        text = text[len(CONVERSATION_ROOM_PREFIX):]
    try:
        conversation_id = int(text)
    except ValueError:
        return None
    conversation = Conversation.query.filter_by(id=conversation_id, deleted_at=None).first()
    if not conversation or not conversation.has_member(user_id):
        return None
    return conversation


@socketio.on('joinRoom')
def handle_join_room(data):
    room_id = (data or {}).get('room_id')
    user_id = _current_user_id()
    if room_id in (None, '') or user_id is None:
        return
    conversation = _member_conversation(room_id, user_id)
    if not conversation:
        logger.warning(f"User {user_id} refused from room {room_id}")
        emit('joinRoomError', {'room_id': room_id, 'message': 'You are not a participant of this conversation'})
        return
    join_room(conversation.room)
    emit('joinedRoom', {'room_id': room_id, 'room': conversation.room, 'conversation_id': conversation.id})


@socketio.on('sendMessage')
def handle_send_message(data):
    data = data or {}
    to = data.get('to')
    sender = _current_user_id()
    if not to or sender is None:
        return
    emit_to_user(to, 'message', {'from': sender, 'data': data.get('data')})


@socketio.on('updateMessageStatus')
def handle_update_message_status(data):
    data = data or {}
    status = data.get('status')
    if status not in MESSAGE_STATUSES:
        return
    message = db.session.get(Message, data.get('message_id')) if data.get('message_id') else None
    if not message:
        return
    message.status = status
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Could not update status of message {message.id}: {e}")
        return
    emit('messageStatusUpdated', {'message_id': message.id, 'status': status}, broadcast=True)


@socketio.on('typing')
def handle_typing(data):
    to = (data or {}).get('to')
    if to:
        emit_to_user(to, 'userTyping', {'from': _current_user_id()})


@socketio.on('stopTyping')
def handle_stop_typing(data):
    to = (data or {}).get('to')
    if to:
        emit_to_user(to, 'userStoppedTyping', {'from': _current_user_id()})
