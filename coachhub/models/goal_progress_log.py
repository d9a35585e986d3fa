from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat


class GoalProgress(db.Model):
    __tablename__ = "goal_progress"

    id = db.Column(db.Integer, primary_key=True)
    goal_id = db.Column(db.Integer, db.ForeignKey("goals.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    previous_weight = db.Column(db.Float)
    current_weight = db.Column(db.Float)
    training_duration = db.Column(db.Integer)  # minutes
    calories_burned = db.Column(db.Integer)
    calories_gained = db.Column(db.Integer)
    sets_per_session = db.Column(db.Integer)
    notes = db.Column(db.Text)
    recorded_at = db.Column(db.DateTime, default=utcnow, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    goal = db.relationship("Goal", back_populates="progress_logs")

    def to_dict(self):
        return {
            'id': self.id,
            'goal_id': self.goal_id,
            'previous_weight': self.previous_weight,
            'current_weight': self.current_weight,
            'training_duration': self.training_duration,
            'calories_burned': self.calories_burned,
            'calories_gained': self.calories_gained,
            'sets_per_session': self.sets_per_session,
            'notes': self.notes,
            'recorded_at': isoformat(self.recorded_at),
            'created_at': isoformat(self.created_at),
        }


class GoalNote(db.Model):
    __tablename__ = "goal_notes"

    id = db.Column(db.Integer, primary_key=True)
    goal_id = db.Column(db.Integer, db.ForeignKey("goals.id"), nullable=False, index=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    note = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    goal = db.relationship("Goal", back_populates="notes")
    coach = db.relationship("User")

    def to_dict(self):
        return {
            'id': self.id,
            'goal_id': self.goal_id,
            'coach_id': self.coach_id,
            'coach_name': self.coach.name if self.coach else None,
            'note': self.note,
            'created_at': isoformat(self.created_at),
        }
