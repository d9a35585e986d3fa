"""Thin wrappers over the Stripe SDK.

Routes call these through the module (``stripe_payment.create_payment_intent``)
so tests can patch them in one place.
"""
import logging

import stripe
from flask import current_app

logger = logging.getLogger(__name__)

SignatureVerificationError = stripe.SignatureVerificationError


def _configure():
    stripe.api_key = current_app.config.get('STRIPE_SECRET_KEY')


def to_cents(amount):
    return int(round(float(amount) * 100))


def create_customer(email, name=None):
    _configure()
    customer = stripe.Customer.create(email=email, name=name)
    logger.info(f"Created Stripe customer {customer['id']} for {email}")
    return customer['id']


def ensure_customer(user):
    """Return the user's Stripe customer id, creating the customer when missing.

    The caller commits the session.
    """
    if user.billing_id:
        return user.billing_id
    user.billing_id = create_customer(user.email, user.name)
    return user.billing_id


def create_payment_intent(amount, currency='usd', customer=None, metadata=None):
    _configure()
    params = {
        'amount': to_cents(amount),
        'currency': (currency or 'usd').lower(),
        'metadata': {k: str(v) for k, v in (metadata or {}).items() if v is not None},
        'automatic_payment_methods': {'enabled': True},
    }
    if customer:
        params['customer'] = customer
    intent = stripe.PaymentIntent.create(**params)
    return {'id': intent['id'], 'client_secret': intent['client_secret']}


def create_checkout_session(customer, price_id, success_url, cancel_url, metadata=None):
    _configure()
    session = stripe.checkout.Session.create(
        mode='subscription',
        customer=customer,
        line_items=[{'price': price_id, 'quantity': 1}],
        success_url=success_url,
        cancel_url=cancel_url,
        metadata={k: str(v) for k, v in (metadata or {}).items()},
    )
    return {'id': session['id'], 'url': session['url']}


def cancel_subscription(subscription_id):
    """Cancel immediately. Returns the Stripe subscription status."""
    _configure()
    return stripe.Subscription.delete(subscription_id)['status']


def cancel_subscription_at_period_end(subscription_id):
    _configure()
    return stripe.Subscription.modify(subscription_id, cancel_at_period_end=True)['status']


def create_product_price(name, description, price, currency='usd', interval='month', product_id=None):
    """Create (or reuse) a product and attach a new recurring price to it."""
    _configure()
    if not product_id:
        product = stripe.Product.create(name=name, description=description or None)
        product_id = product['id']
    else:
        stripe.Product.modify(product_id, name=name, description=description or None)
    stripe_price = stripe.Price.create(
        product=product_id,
        unit_amount=to_cents(price),
        currency=(currency or 'usd').lower(),
        recurring={'interval': interval},
    )
    return product_id, stripe_price['id']


def construct_event(payload, sig_header):
    """Verify a webhook payload and return the signed ``stripe.Event``.

    Raises ValueError or SignatureVerificationError.
    """
    _configure()
    return stripe.Webhook.construct_event(
        payload=payload,
        sig_header=sig_header,
        secret=current_app.config.get('STRIPE_WEBHOOK_SECRET'),
    )
