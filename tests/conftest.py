"""Shared fixtures: an in-memory app, users of each role and a patched Stripe."""

import itertools
from unittest.mock import MagicMock, patch

import pytest
from flask_jwt_extended import create_access_token

from coachhub import create_app
from coachhub.extensions import db
from coachhub.models import CoachProfile, User

PASSWORD = "Str0ng!Pass"

_counter = itertools.count(1)


# ─────────────────────────────────────────────────────────────────
# App
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def stripe_mock():
    """Every Stripe wrapper replaced by a MagicMock with realistic return values."""
    ids = itertools.count(1)
    mocks = {
        "create_customer": MagicMock(side_effect=lambda *a, **k: f"cus_{next(ids)}"),
        "create_payment_intent": MagicMock(
            side_effect=lambda **k: {"id": f"pi_{next(ids)}", "client_secret": "secret_123"}
        ),
        "create_checkout_session": MagicMock(
            return_value={"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}
        ),
        "cancel_subscription": MagicMock(return_value="canceled"),
        "cancel_subscription_at_period_end": MagicMock(return_value="active"),
        "create_product_price": MagicMock(return_value=("prod_1", "price_1")),
    }
    with patch.multiple("coachhub.utils.stripe_payment", **mocks):
        yield mocks


# ─────────────────────────────────────────────────────────────────
# Users
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def make_user(app):
    def _make(role="athlete", name=None, email=None, password=PASSWORD, **fields):
        n = next(_counter)
        user = User(
            name=name or f"{role.title()} {n}",
            email=email or f"{role}{n}@example.com",
            role=role,
            status=fields.pop("status", "active"),
            **fields,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_coach(make_user):
    def _make(**profile_fields):
        user = make_user("coach", sports=profile_fields.pop("sports", None))
        profile = CoachProfile(
            user_id=user.id,
            primary_specialty=profile_fields.pop("primary_specialty", "Swimming"),
            specialties=profile_fields.pop("specialties", ["swimming", "triathlon"]),
            session_price=profile_fields.pop("session_price", 50),
            hourly_currency="USD",
            session_duration_minutes=60,
            **profile_fields,
        )
        db.session.add(profile)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def coach(make_coach):
    return make_coach()


@pytest.fixture
def athlete(make_user):
    return make_user("athlete")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def token_for(app):
    def _token(user):
        return create_access_token(identity=str(user.id))
    return _token


@pytest.fixture
def auth_headers(token_for):
    def _headers(user):
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _headers
