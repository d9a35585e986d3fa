from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat


class Badge(db.Model):
    __tablename__ = "badges"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(50), unique=True, nullable=False, index=True)
    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(255))
    icon = db.Column(db.String(255))
    criteria = db.Column(db.JSON)
    points = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=utcnow)

    user_badges = db.relationship("UserBadge", back_populates="badge", lazy="dynamic", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            'id': self.id,
            'key': self.key,
            'title': self.title,
            'description': self.description,
            'icon': self.icon,
            'criteria': self.criteria,
            'points': self.points,
            'created_at': isoformat(self.created_at),
        }


class UserBadge(db.Model):
    __tablename__ = "user_badges"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    badge_id = db.Column(db.Integer, db.ForeignKey("badges.id"), nullable=False)
    earned_at = db.Column(db.DateTime, default=utcnow)

    user = db.relationship("User", back_populates="user_badges")
    badge = db.relationship("Badge", back_populates="user_badges")

    __table_args__ = (
        db.UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'badge_id': self.badge_id,
            'earned_at': isoformat(self.earned_at),
        }
