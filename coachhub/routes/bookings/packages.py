import logging

from flask import jsonify
from flask_jwt_extended import current_user, jwt_required

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db
from coachhub.models import SessionPackage
from coachhub.schemas.bookings import SessionPackageSchema
from coachhub.utils.payload import get_payload
from . import bookings_bp
from .helpers import own_coach_profile

logger = logging.getLogger(__name__)


def _own_package(package_id):
    profile = own_coach_profile(current_user)
    package = SessionPackage.query.filter_by(
        id=package_id,
        coach_id=current_user.id,
        coach_profile_id=profile.id,
    ).first()
    if not package:
        raise NotFoundError("Session Package not found")
    return package


@bookings_bp.route("/session-package", methods=["POST"])
@jwt_required()
def create_session_package():
    profile = own_coach_profile(current_user)
    data = SessionPackageSchema().load(get_payload())

    package = SessionPackage(
        coach_id=current_user.id,
        coach_profile_id=profile.id,
        title=data["title"],
        description=data.get("description"),
        number_of_sessions=data["number_of_sessions"],
        days_validity=data.get("days_validity"),
        total_price=data["total_price"],
        currency=(data.get("currency") or "USD").upper(),
    )
    try:
        db.session.add(package)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating session package: {e}")
        raise ApiError("Failed to create session package", 500)

    return jsonify({"success": True, "message": "Session package created", "data": package.to_dict()}), 201


@bookings_bp.route("/session/packages", methods=["GET"])
@jwt_required()
def get_session_packages():
    profile = own_coach_profile(current_user)
    packages = SessionPackage.query.filter_by(
        coach_id=current_user.id,
        coach_profile_id=profile.id,
    ).order_by(SessionPackage.created_at.desc()).all()
    if not packages:
        raise NotFoundError("No session packages found for this coach")
    return jsonify({"success": True, "data": [p.to_dict() for p in packages]})


@bookings_bp.route("/session/package/<int:package_id>", methods=["PATCH"])
@jwt_required()
def update_session_package(package_id):
    package = _own_package(package_id)
    data = SessionPackageSchema(partial=True).load(get_payload())

    for field, value in data.items():
        if field == "currency" and value:
            value = value.upper()
        setattr(package, field, value)

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating session package {package_id}: {e}")
        raise ApiError("Failed to update session package", 500)

    return jsonify({"success": True, "message": "Session package updated", "data": package.to_dict()})


@bookings_bp.route("/session/package/<int:package_id>", methods=["DELETE"])
@jwt_required()
def delete_session_package(package_id):
    package = _own_package(package_id)
    try:
        db.session.delete(package)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting session package {package_id}: {e}")
        raise ApiError("Failed to delete session package", 500)

    return jsonify({"success": True, "message": "Session package deleted"})
