from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat


class CoachProfile(db.Model):
    __tablename__ = "coach_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False, index=True)
    status = db.Column(db.Integer, default=1, index=True)  # 1 = active

    primary_specialty = db.Column(db.String(150))
    specialties = db.Column(db.JSON, default=list)
    experience_level = db.Column(db.String(50))
    certifications = db.Column(db.JSON, default=list)

    session_price = db.Column(db.Numeric(10, 2))
    hourly_rate = db.Column(db.Numeric(10, 2))
    hourly_currency = db.Column(db.String(3), default="USD")
    session_duration_minutes = db.Column(db.Integer)
    location = db.Column(db.String(255))
    rgpd_laws_agreement = db.Column(db.Boolean, default=False)

    is_verified = db.Column(db.Boolean, default=False, index=True)
    registration_fee_paid = db.Column(db.Boolean, default=False)
    registration_fee_paid_at = db.Column(db.DateTime)

    subscription_active = db.Column(db.Boolean, default=False)
    subscription_started_at = db.Column(db.DateTime)
    subscription_expires_at = db.Column(db.DateTime)
    subscription_provider = db.Column(db.String(50))
    subscription_reference = db.Column(db.String(255))

    avg_rating = db.Column(db.Float)
    rating_count = db.Column(db.Integer, default=0)

    # Availability
    blocked_days = db.Column(db.JSON, default=list)        # ["2025-01-05", ...]
    blocked_time_slots = db.Column(db.JSON, default=list)  # ISO datetimes
    weekend_days = db.Column(db.JSON, default=list)        # weekday names or dates
    available_days = db.Column(db.JSON, default=list)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="coach_profile")
    bookings = db.relationship("Booking", back_populates="coach_profile", lazy="dynamic")
    session_packages = db.relationship("SessionPackage", back_populates="coach_profile", lazy="dynamic", cascade="all, delete-orphan")
    reviews = db.relationship("CoachReview", back_populates="coach_profile", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self):
        return f'<CoachProfile {self.id} user={self.user_id}>'

    @property
    def price(self):
        value = self.session_price if self.session_price is not None else self.hourly_rate
        return float(value) if value is not None else None

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'status': self.status,
            'primary_specialty': self.primary_specialty,
            'specialties': self.specialties or [],
            'experience_level': self.experience_level,
            'certifications': self.certifications or [],
            'session_price': float(self.session_price) if self.session_price is not None else None,
            'hourly_rate': float(self.hourly_rate) if self.hourly_rate is not None else None,
            'hourly_currency': self.hourly_currency,
            'session_duration_minutes': self.session_duration_minutes,
            'location': self.location,
            'rgpd_laws_agreement': bool(self.rgpd_laws_agreement),
            'is_verified': bool(self.is_verified),
            'registration_fee_paid': bool(self.registration_fee_paid),
            'registration_fee_paid_at': isoformat(self.registration_fee_paid_at),
            'subscription_active': bool(self.subscription_active),
            'subscription_started_at': isoformat(self.subscription_started_at),
            'subscription_expires_at': isoformat(self.subscription_expires_at),
            'subscription_provider': self.subscription_provider,
            'subscription_reference': self.subscription_reference,
            'avg_rating': self.avg_rating,
            'rating_count': self.rating_count or 0,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def to_public_dict(self):
        return {
            'id': self.id,
            'status': self.status,
            'primary_specialty': self.primary_specialty,
            'specialties': self.specialties or [],
            'experience_level': self.experience_level,
            'certifications': self.certifications or [],
            'hourly_rate': float(self.hourly_rate) if self.hourly_rate is not None else None,
            'hourly_currency': self.hourly_currency,
            'session_duration_minutes': self.session_duration_minutes,
            'session_price': float(self.session_price) if self.session_price is not None else None,
            'is_verified': bool(self.is_verified),
            'avg_rating': self.avg_rating,
            'rating_count': self.rating_count or 0,
        }
