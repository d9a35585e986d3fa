from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat


class NotificationEvent(db.Model):
    __tablename__ = "notification_events"

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(50), nullable=False, default="general")
    text = db.Column(db.Text, nullable=False)
    status = db.Column(db.Integer, default=1)
    created_at = db.Column(db.DateTime, default=utcnow)

    notifications = db.relationship("Notification", back_populates="notification_event", lazy="dynamic", cascade="all, delete-orphan")

    @property
    def title(self):
        return self.text.split(': ', 1)[0]

    @property
    def body(self):
        parts = self.text.split(': ', 1)
        return parts[1] if len(parts) > 1 else ''


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    notification_event_id = db.Column(db.Integer, db.ForeignKey("notification_events.id"), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    receiver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    status = db.Column(db.Integer, default=1)
    read_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    deleted_at = db.Column(db.DateTime)

    notification_event = db.relationship("NotificationEvent", back_populates="notifications")
    sender = db.relationship("User", foreign_keys=[sender_id], back_populates="sent_notifications")
    receiver = db.relationship("User", foreign_keys=[receiver_id], back_populates="received_notifications")

    @property
    def is_read(self):
        return self.read_at is not None

    def to_dict(self):
        event = self.notification_event
        return {
            'id': self.id,
            'title': event.title if event else None,
            'message': (event.body or event.text) if event else '',
            'type': event.type if event else None,
            'read': self.is_read,
            'read_at': isoformat(self.read_at),
            'created_at': isoformat(self.created_at),
            'sender': self.sender.to_summary() if self.sender else None,
        }
