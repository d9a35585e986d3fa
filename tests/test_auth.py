"""Registration, login, token lifecycle, one-time codes and 2FA."""

import pyotp
import pytest

from coachhub.extensions import db
from coachhub.models import PaymentTransaction, Ucode, User
from coachhub.routes.auth import validate_password
from tests.conftest import PASSWORD


def _login(client, email, password=PASSWORD, **extra):
    return client.post("/api/auth/login", json={"email": email, "password": password, **extra})


# ─────────────────────────────────────────────────────────────────
# Password rules
# ─────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("password,message", [
    ("Sh0rt!", "at least 8 characters"),
    ("lowercase1!", "uppercase"),
    ("UPPERCASE1!", "lowercase"),
    ("NoDigits!!", "number"),
    ("NoSpecial1", "special character"),
])
def test_validate_password_rejects_weak_passwords(password, message):
    ok, msg = validate_password(password)
    assert not ok
    assert message in msg


def test_validate_password_accepts_strong_password():
    assert validate_password(PASSWORD) == (True, "Password is valid")


# ─────────────────────────────────────────────────────────────────
# Register / login
# ─────────────────────────────────────────────────────────────────


class TestRegister:
    def test_register_creates_athlete_with_billing_and_verification_code(self, client, stripe_mock):
        resp = client.post("/api/auth/register", json={
            "name": "Jane Runner",
            "email": "Jane@Example.com",
            "password": PASSWORD,
        })
        assert resp.status_code == 201
        assert resp.get_json()["success"] is True

        user = User.query.filter_by(email="jane@example.com").one()
        assert user.role == "athlete"
        assert user.billing_id.startswith("cus_")
        assert Ucode.query.filter_by(user_id=user.id, type="verification").count() == 1
        stripe_mock["create_customer"].assert_called_once()

    def test_register_as_coach(self, client):
        resp = client.post("/api/auth/register", json={
            "name": "Coach Carter",
            "email": "carter@example.com",
            "password": PASSWORD,
            "type": "coach",
        })
        assert resp.status_code == 201
        assert User.query.filter_by(email="carter@example.com").one().is_coach

    def test_register_duplicate_email(self, client, athlete):
        resp = client.post("/api/auth/register", json={
            "name": "Someone",
            "email": athlete.email,
            "password": PASSWORD,
        })
        assert resp.status_code == 400
        assert resp.get_json() == {"success": False, "message": "Email already exist"}

    def test_register_rejects_weak_password(self, client):
        resp = client.post("/api/auth/register", json={
            "name": "Weak", "email": "weak@example.com", "password": "password",
        })
        assert resp.status_code == 400
        assert User.query.filter_by(email="weak@example.com").first() is None

    def test_register_survives_stripe_failure(self, client, stripe_mock):
        stripe_mock["create_customer"].side_effect = RuntimeError("stripe down")
        resp = client.post("/api/auth/register", json={
            "name": "No Billing", "email": "nobilling@example.com", "password": PASSWORD,
        })
        assert resp.status_code == 201
        assert User.query.filter_by(email="nobilling@example.com").one().billing_id is None


class TestLogin:
    def test_login_returns_token_pair(self, client, athlete):
        resp = _login(client, athlete.email)
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["type"] == "athlete"
        assert body["authorization"]["access_token"]
        assert body["authorization"]["refresh_token"]

    def test_login_unknown_email(self, client):
        resp = _login(client, "ghost@example.com")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Email not found"

    def test_login_wrong_password(self, client, athlete):
        resp = _login(client, athlete.email, "Wr0ng!Pass")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Password not matched"

    def test_login_blocked_user(self, client, make_user):
        user = make_user("athlete", status="blocked")
        resp = _login(client, user.email)
        assert resp.status_code == 403

    def test_login_missing_fields_is_validation_error(self, client):
        resp = client.post("/api/auth/login", json={"email": "a@b.co"})
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False


class TestTokens:
    def test_refresh_issues_new_access_token(self, client, athlete):
        refresh = _login(client, athlete.email).get_json()["authorization"]["refresh_token"]
        resp = client.post("/api/auth/refresh-token", headers={"Authorization": f"Bearer {refresh}"})
        assert resp.status_code == 200
        assert resp.get_json()["authorization"]["access_token"]

    def test_access_token_cannot_refresh(self, client, athlete, auth_headers):
        resp = client.post("/api/auth/refresh-token", headers=auth_headers(athlete))
        assert resp.status_code == 401

    def test_logout_revokes_refresh_token(self, client, athlete):
        tokens = _login(client, athlete.email).get_json()["authorization"]
        access = {"Authorization": f"Bearer {tokens['access_token']}"}

        assert client.post("/api/auth/logout", headers=access).status_code == 200
        resp = client.post("/api/auth/refresh-token", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
        assert resp.status_code == 401

    def test_logout_without_stored_token(self, client, athlete, auth_headers):
        resp = client.post("/api/auth/logout", headers=auth_headers(athlete))
        assert resp.status_code == 404

    def test_me_requires_token(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.get_json() == {"success": False, "message": "Unauthorized"}

    def test_me_includes_coach_profile(self, client, coach, auth_headers):
        resp = client.get("/api/auth/me", headers=auth_headers(coach))
        data = resp.get_json()["data"]
        assert data["type"] == "coach"
        assert data["coach_profile"]["primary_specialty"] == "Swimming"


# ─────────────────────────────────────────────────────────────────
# Profile
# ─────────────────────────────────────────────────────────────────


class TestProfile:
    def test_setup_profile_creates_coach_profile(self, client, make_user, auth_headers):
        user = make_user("coach")
        resp = client.post("/api/auth/setup-profile", headers=auth_headers(user), json={
            "bio": "Ironman finisher",
            "primary_specialty": "Triathlon",
            "specialties": ["running", "cycling"],
            "session_price": 75,
            "hourly_currency": "eur",
        })
        assert resp.status_code == 200
        profile = resp.get_json()["data"]["coach_profile"]
        assert profile["primary_specialty"] == "Triathlon"
        assert profile["specialties"] == ["running", "cycling"]
        assert profile["hourly_currency"] == "EUR"

    def test_setup_profile_sets_age_from_birth_date(self, client, athlete, auth_headers):
        resp = client.post("/api/auth/setup-profile", headers=auth_headers(athlete), json={
            "date_of_birth": "2000-01-01",
            "sports": "swimming",
        })
        data = resp.get_json()["data"]
        assert data["date_of_birth"] == "2000-01-01"
        assert data["age"] >= 24
        assert data["coach_profile"] is None

    def test_update_profile(self, client, athlete, auth_headers):
        resp = client.patch("/api/auth/update", headers=auth_headers(athlete), json={
            "name": "Renamed",
            "phone_number": "+33 6 00 00 00 00",
        })
        assert resp.status_code == 200
        assert resp.get_json()["data"]["name"] == "Renamed"


# ─────────────────────────────────────────────────────────────────
# One-time codes
# ─────────────────────────────────────────────────────────────────


class TestCodes:
    def test_password_reset_flow(self, client, athlete):
        email = athlete.email
        assert client.post("/api/auth/forgot-password", json={"email": email}).status_code == 200
        token = Ucode.query.filter_by(email=email, type="otp").one().token

        assert client.post("/api/auth/verify-otp", json={"email": email, "otp": token}).status_code == 200
        resp = client.post("/api/auth/reset-password", json={
            "email": email, "token": token, "password": "N3w!Password",
        })
        assert resp.status_code == 200
        assert Ucode.query.filter_by(email=email, type="otp").count() == 0
        assert _login(client, email, "N3w!Password").status_code == 200

    def test_verify_otp_rejects_wrong_code(self, client, athlete):
        client.post("/api/auth/forgot-password", json={"email": athlete.email})
        resp = client.post("/api/auth/verify-otp", json={"email": athlete.email, "otp": "000000"})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid OTP"

    def test_forgot_password_unknown_email(self, client):
        resp = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
        assert resp.status_code == 404

    def test_verify_email(self, client, athlete):
        client.post("/api/auth/resend-verification-email", json={"email": athlete.email})
        token = Ucode.query.filter_by(user_id=athlete.id, type="verification").one().token

        resp = client.post("/api/auth/verify-email", json={"email": athlete.email, "token": token})
        assert resp.status_code == 200
        assert db.session.get(User, athlete.id).email_verified_at is not None

    def test_change_email_flow(self, client, athlete, auth_headers):
        headers = auth_headers(athlete)
        resp = client.post("/api/auth/request-email-change", headers=headers, json={"email": "new@example.com"})
        assert resp.status_code == 200
        token = Ucode.query.filter_by(user_id=athlete.id, type="email_change").one().token

        resp = client.post("/api/auth/change-email", headers=headers, json={"email": "new@example.com", "token": token})
        assert resp.status_code == 200
        assert db.session.get(User, athlete.id).email == "new@example.com"

    def test_change_password(self, client, athlete, auth_headers):
        resp = client.post("/api/auth/change-password", headers=auth_headers(athlete), json={
            "old_password": "wrong", "new_password": "An0ther!Pass",
        })
        assert resp.status_code == 400

        resp = client.post("/api/auth/change-password", headers=auth_headers(athlete), json={
            "old_password": PASSWORD, "new_password": "An0ther!Pass",
        })
        assert resp.status_code == 200


# ─────────────────────────────────────────────────────────────────
# Two-factor authentication
# ─────────────────────────────────────────────────────────────────


class TestTwoFactor:
    def test_enable_requires_secret(self, client, athlete, auth_headers):
        resp = client.post("/api/auth/enable-2fa", headers=auth_headers(athlete))
        assert resp.status_code == 400

    def test_login_with_two_factor(self, client, athlete, auth_headers):
        headers = auth_headers(athlete)
        secret = client.post("/api/auth/generate-2fa-secret", headers=headers).get_json()["data"]["secret"]
        code = pyotp.TOTP(secret).now()
        assert client.post("/api/auth/verify-2fa", headers=headers, json={"token": code}).status_code == 200
        assert client.post("/api/auth/enable-2fa", headers=headers).status_code == 200

        resp = _login(client, athlete.email)
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Token is required"

        assert _login(client, athlete.email, token="123").status_code == 401
        assert _login(client, athlete.email, token=pyotp.TOTP(secret).now()).status_code == 200

    def test_disable_clears_secret(self, client, athlete, auth_headers):
        headers = auth_headers(athlete)
        client.post("/api/auth/generate-2fa-secret", headers=headers)
        client.post("/api/auth/enable-2fa", headers=headers)
        assert client.post("/api/auth/disable-2fa", headers=headers).status_code == 200

        user = db.session.get(User, athlete.id)
        assert user.two_factor_secret is None
        assert not user.is_two_factor_enabled


# ─────────────────────────────────────────────────────────────────
# Coach registration payment
# ─────────────────────────────────────────────────────────────────


class TestCoachRegistrationPayment:
    def test_first_payment_includes_registration_fee(self, client, coach, auth_headers, stripe_mock):
        resp = client.post("/api/auth/coach/registration/create-payment", headers=auth_headers(coach), json={})
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["client_secret"] == "secret_123"

        tx = PaymentTransaction.query.filter_by(reference_number=body["payment_intent_id"]).one()
        assert tx.type == "registration_and_subscription"
        assert float(tx.amount) == 59.0
        assert tx.status == "pending"

    def test_renewal_charges_subscription_only(self, client, make_coach, auth_headers):
        coach = make_coach(registration_fee_paid=True)
        body = client.post("/api/auth/coach/registration/create-payment", headers=auth_headers(coach)).get_json()
        tx = PaymentTransaction.query.filter_by(reference_number=body["payment_intent_id"]).one()
        assert tx.type == "subscription"
        assert float(tx.amount) == 49.0

    def test_athlete_cannot_pay_registration(self, client, athlete, auth_headers):
        resp = client.post("/api/auth/coach/registration/create-payment", headers=auth_headers(athlete))
        assert resp.status_code == 403
