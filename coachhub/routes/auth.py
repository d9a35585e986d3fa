import logging
import re
from datetime import datetime, timezone

import pyotp
from flask import Blueprint, current_app, jsonify
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    current_user,
    decode_token,
    jwt_required,
)

from coachhub.errors import ApiError, ForbiddenError, NotFoundError, UnauthorizedError
from coachhub.extensions import db, limiter
from coachhub.models import CoachProfile, PaymentTransaction, User
from coachhub.schemas.auth import (
    ChangePasswordSchema,
    EmailTokenSchema,
    LoginSchema,
    RegisterSchema,
    ResetPasswordSchema,
    SetupProfileSchema,
    UpdateProfileSchema,
)
from coachhub.utils import stripe_payment
from coachhub.utils.dates import calculate_age, utcnow
from coachhub.utils.mailer import find_valid_code, issue_code, send_code
from coachhub.utils.payload import get_payload, get_upload
from coachhub.utils.storage import AVATAR_FOLDER, StorageError, replace_avatar, upload_file

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

EMAIL_REGEX = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
TOTP_ISSUER = "CoachHub"

COACH_PROFILE_FIELDS = (
    'primary_specialty', 'specialties', 'experience_level', 'certifications',
    'session_price', 'hourly_rate', 'session_duration_minutes', 'location',
    'rgpd_laws_agreement',
)


def validate_password(password):
    """Validate password strength."""
    if len(password) < 8:
        return False, "Password must be at least 8 characters"
    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"
    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"
    if not re.search(r"\d", password):
        return False, "Password must contain at least one number"
    if not re.search(r"[!@#$%^&*(),.?\":{}|<>_\-+=/\\\[\]~`';]", password):
        return False, "Password must contain at least one special character"
    return True, "Password is valid"


def _check_password_strength(password):
    is_valid, msg = validate_password(password)
    if not is_valid:
        raise ApiError(msg)


def _issue_tokens(user):
    claims = {"email": user.email}
    access_token = create_access_token(identity=str(user.id), additional_claims=claims)
    refresh_token = create_refresh_token(identity=str(user.id), additional_claims=claims)

    decoded = decode_token(refresh_token)
    user.refresh_token_jti = decoded["jti"]
    user.refresh_token_expires_at = datetime.fromtimestamp(decoded["exp"], timezone.utc).replace(tzinfo=None)
    return access_token, refresh_token


def upsert_coach_profile(user, data):
    profile = user.coach_profile
    if profile is None:
        profile = CoachProfile(user_id=user.id, hourly_currency="USD")
        user.coach_profile = profile
        db.session.add(profile)
    for field in COACH_PROFILE_FIELDS:
        if data.get(field) is not None:
            setattr(profile, field, data[field])
    if data.get('hourly_currency'):
        profile.hourly_currency = data['hourly_currency'].upper()
    elif not profile.hourly_currency:
        profile.hourly_currency = "USD"
    return profile


def _me_payload(user):
    data = user.to_dict()
    data['coach_profile'] = user.coach_profile.to_dict() if user.coach_profile else None
    return data


# ---------------- Register / Login ----------------
@auth_bp.route("/register", methods=["POST"])
@limiter.limit("5 per minute")
def register():
    data = RegisterSchema().load(get_payload())
    name = data["name"].strip()
    email = data["email"].strip().lower()
    password = data["password"]

    if not name or not email or not password:
        raise ApiError("Name, email and password are required")
    if not re.match(EMAIL_REGEX, email):
        raise ApiError("Invalid email format")
    _check_password_strength(password)

    if User.query.filter_by(email=email).first():
        raise ApiError("Email already exist")

    role = "coach" if data.get("type") == "coach" else "athlete"
    user = User(name=name, email=email, role=role, status="active")
    user.set_password(password)
    if data.get("date_of_birth"):
        user.date_of_birth = data["date_of_birth"]
        user.age = calculate_age(data["date_of_birth"])

    avatar = get_upload("avatar") or get_upload("image")
    if avatar:
        try:
            user.avatar = upload_file(avatar, AVATAR_FOLDER)
        except StorageError as e:
            raise ApiError(f"Failed to upload avatar: {e}")

    try:
        db.session.add(user)
        db.session.flush()

        try:
            stripe_payment.ensure_customer(user)
        except Exception as e:
            logger.error(f"Failed to create billing account for {email}: {e}")

        ucode = issue_code(user, "verification")
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error registering {email}: {e}")
        raise ApiError("Failed to create account", 500)

    send_code(ucode, user.name)
    return jsonify({"success": True, "message": "Registered successfully"}), 201


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    data = LoginSchema().load(get_payload())
    email = data["email"].strip().lower()

    user = User.query.filter_by(email=email).first()
    if not user:
        raise UnauthorizedError("Email not found")
    if not user.check_password(data["password"]):
        raise UnauthorizedError("Password not matched")
    if not user.is_active:
        raise ForbiddenError("Your account has been blocked")

    if user.is_two_factor_enabled:
        token = data.get("token")
        if not token:
            raise UnauthorizedError("Token is required")
        if not user.two_factor_secret or not pyotp.TOTP(user.two_factor_secret).verify(str(token), valid_window=1):
            raise UnauthorizedError("Invalid token")

    access_token, refresh_token = _issue_tokens(user)
    user.last_active = utcnow()
    db.session.commit()

    return jsonify({
        "success": True,
        "message": "Logged in successfully",
        "authorization": {
            "type": "bearer",
            "access_token": access_token,
            "refresh_token": refresh_token,
        },
        "type": user.role,
    })


@auth_bp.route("/refresh-token", methods=["POST"])
@jwt_required(refresh=True)
def refresh_token():
    user = current_user
    access_token = create_access_token(identity=str(user.id), additional_claims={"email": user.email})
    return jsonify({
        "success": True,
        "authorization": {"type": "bearer", "access_token": access_token},
    })


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    user = current_user
    if not user.refresh_token_jti:
        raise NotFoundError("Refresh token not found")
    user.refresh_token_jti = None
    user.refresh_token_expires_at = None
    db.session.commit()
    return jsonify({"success": True, "message": "Refresh token revoked successfully"})


# ---------------- Profile ----------------
@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    return jsonify({"success": True, "data": _me_payload(current_user)})


@auth_bp.route("/setup-profile", methods=["POST"])
@jwt_required()
def setup_profile():
    user = current_user
    data = SetupProfileSchema().load(get_payload())

    if data.get("date_of_birth"):
        user.date_of_birth = data["date_of_birth"]
        user.age = calculate_age(data["date_of_birth"])
    for field in ("bio", "objectives", "goals", "sports"):
        if field in data:
            setattr(user, field, data[field])

    if user.is_coach:
        upsert_coach_profile(user, data)

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error setting up profile for user {user.id}: {e}")
        raise ApiError("Failed to update profile", 500)

    return jsonify({"success": True, "message": "Profile updated successfully", "data": _me_payload(user)})


@auth_bp.route("/update", methods=["PATCH"])
@jwt_required()
def update_profile():
    user = current_user
    data = UpdateProfileSchema().load(get_payload())

    for field in ("name", "phone_number", "location", "gender", "bio", "objectives", "goals", "sports", "address"):
        if data.get(field):
            setattr(user, field, data[field])
    if data.get("date_of_birth"):
        user.date_of_birth = data["date_of_birth"]
        user.age = calculate_age(data["date_of_birth"])

    avatar = get_upload("avatar") or get_upload("image")
    if avatar:
        replace_avatar(user, avatar)

    if user.is_coach:
        upsert_coach_profile(user, data)

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating user {user.id}: {e}")
        raise ApiError("Failed to update profile", 500)

    return jsonify({"success": True, "message": "Profile updated successfully", "data": _me_payload(user)})


# ---------------- Coach registration payment ----------------
@auth_bp.route("/coach/registration/create-payment", methods=["POST"])
@jwt_required()
def create_coach_registration_payment():
    user = current_user
    if not user.is_coach:
        raise ForbiddenError("Only coaches can pay the registration fee")

    data = get_payload()
    registration_fee = current_app.config["COACH_REGISTRATION_FEE"]
    subscription_fee = current_app.config["COACH_SUBSCRIPTION_FEE"]
    currency = (data.get("currency") or "usd").lower()

    profile = user.coach_profile
    if profile is None or not profile.registration_fee_paid:
        total = registration_fee + subscription_fee
        tx_type = "registration_and_subscription"
    else:
        total = subscription_fee
        tx_type = "subscription"

    try:
        override = float(data.get("amount") or 0)
    except (TypeError, ValueError):
        raise ApiError("Invalid amount")
    if override > 0:
        total = override

    try:
        customer = stripe_payment.ensure_customer(user)
        intent = stripe_payment.create_payment_intent(
            amount=total,
            currency=currency,
            customer=customer,
            metadata={"user_id": user.id, "type": f"coach_{tx_type}"},
        )
        db.session.add(PaymentTransaction(
            user_id=user.id,
            provider="stripe",
            reference_number=intent["id"],
            type=tx_type,
            status="pending",
            amount=total,
            currency=currency.upper(),
        ))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating registration payment for user {user.id}: {e}")
        raise ApiError(str(e), 500)

    return jsonify({
        "success": True,
        "client_secret": intent["client_secret"],
        "payment_intent_id": intent["id"],
    })


# ---------------- Password / email codes ----------------
@auth_bp.route("/forgot-password", methods=["POST"])
@limiter.limit("5 per minute")
def forgot_password():
    email = (get_payload().get("email") or "").strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user:
        raise NotFoundError("Email not found")

    ucode = issue_code(user, "otp")
    db.session.commit()
    send_code(ucode, user.name)
    return jsonify({"success": True, "message": "We have sent an OTP code to your email"})


@auth_bp.route("/verify-otp", methods=["POST"])
def verify_otp():
    data = get_payload()
    email = (data.get("email") or "").strip().lower()
    otp = data.get("otp") or data.get("token")
    if not User.query.filter_by(email=email).first():
        raise NotFoundError("Email not found")
    if not otp or not find_valid_code(email, otp, "otp"):
        raise ApiError("Invalid OTP")
    return jsonify({"success": True, "message": "OTP verified successfully"})


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = ResetPasswordSchema().load(get_payload())
    email = data["email"].strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user:
        raise NotFoundError("Email not found")

    ucode = find_valid_code(email, data["token"], "otp")
    if not ucode:
        raise ApiError("Invalid token")
    _check_password_strength(data["password"])

    user.set_password(data["password"])
    db.session.delete(ucode)
    db.session.commit()
    return jsonify({"success": True, "message": "Password updated successfully"})


@auth_bp.route("/verify-email", methods=["POST"])
def verify_email():
    data = EmailTokenSchema().load(get_payload())
    email = data["email"].strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user:
        raise NotFoundError("Email not found")

    ucode = find_valid_code(email, data["token"], "verification")
    if not ucode:
        raise ApiError("Invalid token")

    user.email_verified_at = utcnow()
    db.session.delete(ucode)
    db.session.commit()
    return jsonify({"success": True, "message": "Email verified successfully"})


@auth_bp.route("/resend-verification-email", methods=["POST"])
@limiter.limit("5 per minute")
def resend_verification_email():
    email = (get_payload().get("email") or "").strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user:
        raise NotFoundError("Email not found")

    ucode = issue_code(user, "verification")
    db.session.commit()
    send_code(ucode, user.name)
    return jsonify({"success": True, "message": "We have sent a verification code to your email"})


@auth_bp.route("/change-password", methods=["POST"])
@jwt_required()
def change_password():
    user = current_user
    data = ChangePasswordSchema().load(get_payload())
    if not user.check_password(data["old_password"]):
        raise ApiError("Invalid password")
    _check_password_strength(data["new_password"])

    user.set_password(data["new_password"])
    db.session.commit()
    return jsonify({"success": True, "message": "Password updated successfully"})


@auth_bp.route("/request-email-change", methods=["POST"])
@jwt_required()
def request_email_change():
    user = current_user
    new_email = (get_payload().get("email") or "").strip().lower()
    if not re.match(EMAIL_REGEX, new_email):
        raise ApiError("Invalid email format")
    if User.query.filter(User.email == new_email, User.id != user.id).first():
        raise ApiError("Email already exist")

    ucode = issue_code(user, "email_change", email=new_email)
    db.session.commit()
    send_code(ucode, user.name)
    return jsonify({"success": True, "message": "We have sent an OTP code to your email"})


@auth_bp.route("/change-email", methods=["POST"])
@jwt_required()
def change_email():
    user = current_user
    data = EmailTokenSchema().load(get_payload())
    new_email = data["email"].strip().lower()

    ucode = find_valid_code(new_email, data["token"], "email_change")
    if not ucode or ucode.user_id != user.id:
        raise ApiError("Invalid token")
    if User.query.filter(User.email == new_email, User.id != user.id).first():
        raise ApiError("Email already exist")

    user.email = new_email
    user.email_verified_at = utcnow()
    db.session.delete(ucode)
    db.session.commit()
    return jsonify({"success": True, "message": "Email updated successfully"})


# ---------------- Two-factor authentication ----------------
@auth_bp.route("/generate-2fa-secret", methods=["POST"])
@jwt_required()
def generate_2fa_secret():
    user = current_user
    secret = pyotp.random_base32()
    user.two_factor_secret = secret
    db.session.commit()

    otpauth_url = pyotp.TOTP(secret).provisioning_uri(name=user.email, issuer_name=TOTP_ISSUER)
    return jsonify({"success": True, "data": {"secret": secret, "otpauth_url": otpauth_url}})


@auth_bp.route("/verify-2fa", methods=["POST"])
@jwt_required()
def verify_2fa():
    user = current_user
    token = str(get_payload().get("token") or "")
    if not user.two_factor_secret or not token or not pyotp.TOTP(user.two_factor_secret).verify(token, valid_window=1):
        raise ApiError("Invalid token")
    return jsonify({"success": True, "message": "2FA verified successfully"})


@auth_bp.route("/enable-2fa", methods=["POST"])
@jwt_required()
def enable_2fa():
    user = current_user
    if not user.two_factor_secret:
        raise ApiError("Generate a 2FA secret first")
    user.is_two_factor_enabled = True
    db.session.commit()
    return jsonify({"success": True, "message": "2FA enabled successfully"})


@auth_bp.route("/disable-2fa", methods=["POST"])
@jwt_required()
def disable_2fa():
    user = current_user
    user.is_two_factor_enabled = False
    user.two_factor_secret = None
    db.session.commit()
    return jsonify({"success": True, "message": "2FA disabled successfully"})
