from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat


class SubscriptionPlan(db.Model):
    __tablename__ = "subscription_plans"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), default='USD')
    billing_interval = db.Column(
        db.String(10),
        db.CheckConstraint("billing_interval IN ('month','year')"),
        default='month',
    )
    features = db.Column(db.JSON, default=list)
    stripe_product_id = db.Column(db.String(255))
    stripe_price_id = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, default=True)
    sort_order = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = db.Column(db.DateTime)

    subscriptions = db.relationship("UserSubscription", back_populates="plan", lazy="dynamic")

    def __repr__(self):
        return f'<SubscriptionPlan {self.name}>'

    @property
    def active_subscriptions_count(self):
        return self.subscriptions.filter_by(status='active').count()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': float(self.price),
            'currency': self.currency,
            'interval': self.billing_interval,
            'features': self.features or [],
            'stripe_product_id': self.stripe_product_id,
            'stripe_price_id': self.stripe_price_id,
            'is_active': self.is_active,
            'sort_order': self.sort_order,
            'active_subscriptions': self.active_subscriptions_count,
            'created_at': isoformat(self.created_at),
        }
