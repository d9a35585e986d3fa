from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat

CONVERSATION_ROOM_PREFIX = "conversation:"


class Conversation(db.Model):
    __tablename__ = "conversations"

    id = db.Column(db.Integer, primary_key=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    participant_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, index=True)
    deleted_at = db.Column(db.DateTime)

    creator = db.relationship("User", foreign_keys=[creator_id])
    participant = db.relationship("User", foreign_keys=[participant_id])
    messages = db.relationship("Message", back_populates="conversation", lazy="dynamic", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("idx_conversations_pair", "creator_id", "participant_id"),
    )

    @property
    def room(self):
        return f"{CONVERSATION_ROOM_PREFIX}{self.id}"

    def has_member(self, user_id):
        return int(user_id) in (self.creator_id, self.participant_id)

    def other_member_id(self, user_id):
        return self.participant_id if int(user_id) == self.creator_id else self.creator_id

    def last_message(self):
        return self.messages.order_by(Message.created_at.desc(), Message.id.desc()).first()

    def to_dict(self, with_last_message=False):
        data = {
            'id': self.id,
            'creator_id': self.creator_id,
            'participant_id': self.participant_id,
            'creator': self.creator.to_summary() if self.creator else None,
            'participant': self.participant.to_summary() if self.participant else None,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
            'room': self.room,
        }
        if with_last_message:
            last = self.last_message()
            data['last_message'] = last.to_dict() if last else None
        return data


class Message(db.Model):
    __tablename__ = "messages"

    id = db.Column(db.Integer, primary_key=True)
    conversation_id = db.Column(db.Integer, db.ForeignKey("conversations.id"), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('sent','delivered','read')"),
        default="sent",
    )
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    conversation = db.relationship("Conversation", back_populates="messages")
    sender = db.relationship("User", foreign_keys=[sender_id])
    receiver = db.relationship("User", foreign_keys=[receiver_id])

    def to_dict(self):
        return {
            'id': self.id,
            'conversation_id': self.conversation_id,
            'sender_id': self.sender_id,
            'receiver_id': self.receiver_id,
            'message': self.message,
            'status': self.status,
            'created_at': isoformat(self.created_at),
        }

    def to_event(self):
        """Payload pushed to the conversation room."""
        return {
            'message': {
                'id': self.id,
                'message_id': self.id,
                'body_text': self.message,
                'from': self.sender_id,
                'conversation_id': self.conversation_id,
                'created_at': isoformat(self.created_at),
            }
        }
