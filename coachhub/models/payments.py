from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat

SUBSCRIPTION_TX_TYPES = ('subscription', 'registration_and_subscription')
PAID_STATUSES = ('succeeded', 'paid', 'completed')


class PaymentTransaction(db.Model):
    __tablename__ = "payment_transactions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    provider = db.Column(db.String(50), default="stripe")
    reference_number = db.Column(db.String(255), index=True)  # payment intent id
    type = db.Column(db.String(50))  # booking, registration_and_subscription, subscription
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('pending','succeeded','paid','completed','failed','canceled','requires_action','expired')"),
        default="pending",
        index=True
    )
    amount = db.Column(db.Numeric(10, 2))
    currency = db.Column(db.String(3), default='USD')
    paid_amount = db.Column(db.Numeric(10, 2))
    paid_currency = db.Column(db.String(3))
    raw_status = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = db.Column(db.DateTime)

    user = db.relationship("User", back_populates="payment_transactions")

    __table_args__ = (
        db.Index('idx_payment_tx_status_created', 'status', 'created_at'),
    )

    def __repr__(self):
        return f'<PaymentTransaction {self.id}: {self.amount} - {self.status}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'provider': self.provider,
            'reference_number': self.reference_number,
            'type': self.type,
            'status': self.status,
            'amount': float(self.amount) if self.amount is not None else None,
            'currency': self.currency,
            'paid_amount': float(self.paid_amount) if self.paid_amount is not None else None,
            'paid_currency': self.paid_currency,
            'raw_status': self.raw_status,
            'created_at': isoformat(self.created_at),
        }
