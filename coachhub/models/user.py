from werkzeug.security import generate_password_hash, check_password_hash

from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat

USERS_TABLE = "users"


class User(db.Model):
    __tablename__ = USERS_TABLE

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.String(20),
        db.CheckConstraint("role IN ('admin','coach','athlete')"),
        nullable=False,
        default="athlete",
        index=True,
    )
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('active','blocked')"),
        default="active",
        index=True,
    )

    avatar = db.Column(db.String(255), nullable=True)
    phone_number = db.Column(db.String(50))
    gender = db.Column(db.String(20))
    date_of_birth = db.Column(db.Date)
    age = db.Column(db.Integer)
    location = db.Column(db.String(255))
    address = db.Column(db.String(255))
    bio = db.Column(db.Text)
    objectives = db.Column(db.Text)
    goals = db.Column(db.Text)
    sports = db.Column(db.String(150))

    email_verified_at = db.Column(db.DateTime)
    approved_at = db.Column(db.DateTime)
    billing_id = db.Column(db.String(255))  # Stripe customer id

    two_factor_secret = db.Column(db.String(64))
    is_two_factor_enabled = db.Column(db.Boolean, default=False)

    refresh_token_jti = db.Column(db.String(64))
    refresh_token_expires_at = db.Column(db.DateTime)

    availability = db.Column(db.String(20), default="offline")
    last_active = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    coach_profile = db.relationship("CoachProfile", uselist=False, back_populates="user", cascade="all, delete-orphan")
    ucodes = db.relationship("Ucode", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    bookings = db.relationship("Booking", foreign_keys="[Booking.user_id]", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    coach_bookings = db.relationship("Booking", foreign_keys="[Booking.coach_id]", back_populates="coach", lazy="dynamic", cascade="all, delete-orphan")
    payment_transactions = db.relationship("PaymentTransaction", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    subscriptions = db.relationship("UserSubscription", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    user_goals = db.relationship("Goal", foreign_keys="[Goal.user_id]", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    assigned_goals = db.relationship("Goal", foreign_keys="[Goal.coach_id]", back_populates="coach", lazy="dynamic")
    user_badges = db.relationship("UserBadge", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")
    reviews_written = db.relationship("CoachReview", back_populates="athlete", lazy="dynamic", cascade="all, delete-orphan")
    videos = db.relationship("Video", back_populates="coach", lazy="dynamic", cascade="all, delete-orphan")
    received_notifications = db.relationship(
        "Notification",
        foreign_keys="[Notification.receiver_id]",
        back_populates="receiver",
        lazy="dynamic",
        cascade="all, delete-orphan"
    )
    sent_notifications = db.relationship(
        "Notification",
        foreign_keys="[Notification.sender_id]",
        back_populates="sender",
        lazy="dynamic",
        cascade="all, delete-orphan"
    )

    # Helpers
    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    __table_args__ = (
        db.Index("idx_users_role_status", "role", "status"),
    )

    # ------- helper properties -------
    @property
    def is_admin(self):
        return self.role == "admin"

    @property
    def is_coach(self):
        return self.role == "coach"

    @property
    def is_active(self):
        return self.status == "active"

    @property
    def avatar_url(self):
        if not self.avatar:
            return None
        from coachhub.utils.storage import AVATAR_FOLDER, get_storage
        return get_storage().url(f"{AVATAR_FOLDER}/{self.avatar}")

    def to_summary(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "avatar_url": self.avatar_url,
            "type": self.role,
        }

    def to_public_dict(self):
        """Fields other users may see (booking and coach listings)."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "email": self.email,
            "phone_number": self.phone_number,
            "avatar": self.avatar,
            "avatar_url": self.avatar_url,
            "bio": self.bio,
            "objectives": self.objectives,
            "goals": self.goals,
            "sports": self.sports,
            "age": self.age,
            "location": self.location,
            "type": self.role,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "avatar_url": self.avatar_url,
            "type": self.role,
            "status": self.status,
            "phone_number": self.phone_number,
            "gender": self.gender,
            "date_of_birth": isoformat(self.date_of_birth),
            "age": self.age,
            "location": self.location,
            "address": self.address,
            "bio": self.bio,
            "objectives": self.objectives,
            "goals": self.goals,
            "sports": self.sports,
            "email_verified_at": isoformat(self.email_verified_at),
            "is_two_factor_enabled": bool(self.is_two_factor_enabled),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<User {self.id}: {self.email}>'


class Ucode(db.Model):
    """One-time codes for password reset, email verification and email change."""
    __tablename__ = "ucodes"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    token = db.Column(db.String(64), nullable=False)
    email = db.Column(db.String(120))
    type = db.Column(
        db.String(20),
        db.CheckConstraint("type IN ('otp','verification','email_change')"),
        nullable=False,
    )
    expired_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    user = db.relationship("User", back_populates="ucodes")

    @property
    def is_expired(self):
        return self.expired_at < utcnow()
