import math

from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat


def _to_float(value):
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class Goal(db.Model):
    __tablename__ = "goals"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    title = db.Column(db.String(150), nullable=False)
    current_value = db.Column(db.String(50))
    target_value = db.Column(db.String(50))
    target_date = db.Column(db.Date, nullable=True)
    frequency_per_week = db.Column(db.Integer)
    motivation = db.Column(db.Text)
    progress_percent = db.Column(db.Integer)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", foreign_keys=[user_id], back_populates="user_goals")
    coach = db.relationship("User", foreign_keys=[coach_id], back_populates="assigned_goals")
    progress_logs = db.relationship("GoalProgress", back_populates="goal", lazy="dynamic", cascade="all, delete-orphan")
    notes = db.relationship("GoalNote", back_populates="goal", lazy="dynamic", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("idx_goals_user_id", "user_id"),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'coach_id': self.coach_id,
            'title': self.title,
            'current_value': self.current_value,
            'target_value': self.target_value,
            'target_date': isoformat(self.target_date),
            'frequency_per_week': self.frequency_per_week,
            'motivation': self.motivation,
            'progress_percent': self.progress_percent,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


def compute_percent(current, target):
    current = _to_float(current)
    target = _to_float(target)
    if current is None or not target:
        return 0
    return max(0, min(100, math.floor(current / target * 100)))
