from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat


class Video(db.Model):
    __tablename__ = "videos"

    id = db.Column(db.Integer, primary_key=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.String(200))
    description = db.Column(db.Text)
    video_url = db.Column(db.String(500))
    media_key = db.Column(db.String(500))
    mime_type = db.Column(db.String(100))
    is_premium = db.Column(db.Boolean, default=False, index=True)
    view_count = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = db.Column(db.DateTime)

    coach = db.relationship("User", back_populates="videos")

    @property
    def url(self):
        if self.video_url:
            return self.video_url
        if self.media_key:
            from coachhub.utils.storage import get_storage
            return get_storage().url(self.media_key)
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'coach_id': self.coach_id,
            'coach': self.coach.to_summary() if self.coach else None,
            'title': self.title,
            'description': self.description,
            'video_url': self.url,
            'is_premium': bool(self.is_premium),
            'view_count': self.view_count or 0,
            'created_at': isoformat(self.created_at),
        }
