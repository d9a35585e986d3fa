from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat


class CoachReview(db.Model):
    __tablename__ = "coach_reviews"

    id = db.Column(db.Integer, primary_key=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("coach_profiles.id"), nullable=False, index=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True)
    review_text = db.Column(db.Text, nullable=False)
    rating = db.Column(db.Integer, db.CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)"))
    created_at = db.Column(db.DateTime, default=utcnow)
    deleted_at = db.Column(db.DateTime)

    coach_profile = db.relationship("CoachProfile", back_populates="reviews")
    athlete = db.relationship("User", back_populates="reviews_written")

    __table_args__ = (
        db.UniqueConstraint("booking_id", "athlete_id", name="uq_review_booking_athlete"),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'coach_id': self.coach_id,
            'athlete_id': self.athlete_id,
            'booking_id': self.booking_id,
            'review': self.review_text,
            'rating': self.rating,
            'created_at': isoformat(self.created_at),
        }
