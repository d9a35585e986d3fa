from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat

ACTIVE_STATUSES = ('active', 'trialing')


class UserSubscription(db.Model):
    __tablename__ = "user_subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    plan_id = db.Column(db.Integer, db.ForeignKey("subscription_plans.id"), nullable=True)

    stripe_subscription_id = db.Column(db.String(255), unique=True)
    stripe_customer_id = db.Column(db.String(255))

    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('active','trialing','past_due','canceled','incomplete','incomplete_expired','unpaid')"),
        default="incomplete",
        index=True,
    )
    current_period_start = db.Column(db.DateTime)
    current_period_end = db.Column(db.DateTime)
    cancel_at_period_end = db.Column(db.Boolean, default=False)
    canceled_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="subscriptions")
    plan = db.relationship("SubscriptionPlan", back_populates="subscriptions")

    __table_args__ = (
        db.Index("idx_user_subscription_user_status", "user_id", "status"),
    )

    @property
    def is_active(self):
        return self.status in ACTIVE_STATUSES

    def cancel_subscription(self, immediate=False):
        now = utcnow()
        if immediate:
            self.status = 'canceled'
            self.canceled_at = now
            self.current_period_end = now
        else:
            self.cancel_at_period_end = True

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'plan_id': self.plan_id,
            'plan': self.plan.to_dict() if self.plan else None,
            'stripe_subscription_id': self.stripe_subscription_id,
            'status': self.status,
            'current_period_start': isoformat(self.current_period_start),
            'current_period_end': isoformat(self.current_period_end),
            'cancel_at_period_end': bool(self.cancel_at_period_end),
            'canceled_at': isoformat(self.canceled_at),
            'created_at': isoformat(self.created_at),
        }
