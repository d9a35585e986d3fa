from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat

BOOKING_STATUSES = ('PENDING', 'CONFIRMED', 'COMPLETED', 'CANCELLED')


def _money(value):
    return float(value) if value is not None else None


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    coach_profile_id = db.Column(db.Integer, db.ForeignKey("coach_profiles.id"), nullable=True, index=True)
    session_package_id = db.Column(db.Integer, db.ForeignKey("session_packages.id", ondelete="SET NULL"), nullable=True)
    payment_transaction_id = db.Column(db.Integer, db.ForeignKey("payment_transactions.id"), nullable=True)

    title = db.Column(db.String(200))
    description = db.Column(db.Text)
    notes = db.Column(db.Text)
    location = db.Column(db.String(255))
    google_map_link = db.Column(db.String(500))

    appointment_date = db.Column(db.DateTime, index=True)
    session_time = db.Column(db.DateTime)
    duration_minutes = db.Column(db.Integer)

    session_price = db.Column(db.Numeric(10, 2))
    currency = db.Column(db.String(3), default="USD")
    total_amount = db.Column(db.Numeric(10, 2))
    number_of_sessions = db.Column(db.Integer)
    days_validity = db.Column(db.Integer)
    total_completed_session = db.Column(db.Integer, default=0)

    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('PENDING','CONFIRMED','COMPLETED','CANCELLED')"),
        default="PENDING",
        index=True,
    )
    validation_token = db.Column(db.String(10))
    token_expires_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = db.Column(db.DateTime)

    user = db.relationship("User", foreign_keys=[user_id], back_populates="bookings")
    coach = db.relationship("User", foreign_keys=[coach_id], back_populates="coach_bookings")
    coach_profile = db.relationship("CoachProfile", back_populates="bookings")
    session_package = db.relationship("SessionPackage", back_populates="bookings")
    payment_transaction = db.relationship("PaymentTransaction", foreign_keys=[payment_transaction_id])

    __table_args__ = (
        db.Index("idx_bookings_coach_date", "coach_id", "appointment_date"),
        db.Index("idx_bookings_user_date", "user_id", "appointment_date"),
    )

    def __repr__(self):
        return f'<Booking {self.id}: {self.status}>'

    @property
    def revenue(self):
        return float(self.total_amount or self.session_price or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'coach_id': self.coach_id,
            'coach_profile_id': self.coach_profile_id,
            'session_package_id': self.session_package_id,
            'payment_transaction_id': self.payment_transaction_id,
            'title': self.title,
            'description': self.description,
            'notes': self.notes,
            'location': self.location,
            'google_map_link': self.google_map_link,
            'appointment_date': isoformat(self.appointment_date),
            'session_time': isoformat(self.session_time),
            'duration_minutes': self.duration_minutes,
            'session_price': _money(self.session_price),
            'currency': self.currency,
            'total_amount': _money(self.total_amount),
            'number_of_sessions': self.number_of_sessions,
            'days_validity': self.days_validity,
            'total_completed_session': self.total_completed_session or 0,
            'status': self.status,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class SessionPackage(db.Model):
    __tablename__ = "session_packages"

    id = db.Column(db.Integer, primary_key=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    coach_profile_id = db.Column(db.Integer, db.ForeignKey("coach_profiles.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    number_of_sessions = db.Column(db.Integer, nullable=False, default=1)
    days_validity = db.Column(db.Integer)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), default="USD")
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    coach_profile = db.relationship("CoachProfile", back_populates="session_packages")
    bookings = db.relationship("Booking", back_populates="session_package", lazy="dynamic")

    @property
    def price_per_session(self):
        if not self.number_of_sessions:
            return float(self.total_price)
        return float(self.total_price) / self.number_of_sessions

    def to_dict(self):
        return {
            'id': self.id,
            'coach_id': self.coach_id,
            'coach_profile_id': self.coach_profile_id,
            'title': self.title,
            'description': self.description,
            'number_of_sessions': self.number_of_sessions,
            'days_validity': self.days_validity,
            'total_price': _money(self.total_price),
            'currency': self.currency,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
