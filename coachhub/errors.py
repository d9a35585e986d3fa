import logging

from flask import jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from coachhub.extensions import db, jwt

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised by routes to return ``{"success": false, "message": ...}``."""

    status_code = 400

    def __init__(self, message, status_code=None, data=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.data = data

    def to_dict(self):
        payload = {"success": False, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload


class UnauthorizedError(ApiError):
    status_code = 401


class ForbiddenError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    status_code = 409


def error_response(message, status_code):
    return jsonify({"success": False, "message": message}), status_code


def _first_validation_message(messages):
    if isinstance(messages, dict):
        for field, value in messages.items():
            inner = _first_validation_message(value)
            if field == "_schema":
                return inner
            return f"{field}: {inner}"
    if isinstance(messages, list) and messages:
        return _first_validation_message(messages[0])
    return str(messages)


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return jsonify({
            "success": False,
            "message": _first_validation_message(error.messages),
            "errors": error.messages,
        }), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return error_response(error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        db.session.rollback()
        logger.exception(f"Unhandled error: {error}")
        return error_response("Internal server error", 500)


@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return error_response("Token has expired", 401)


@jwt.invalid_token_loader
def invalid_token_callback(reason):
    return error_response(f"Invalid token: {reason}", 401)


@jwt.unauthorized_loader
def unauthorized_callback(reason):
    return error_response("Unauthorized", 401)


@jwt.revoked_token_loader
def revoked_token_callback(jwt_header, jwt_payload):
    return error_response("Refresh token is required", 401)
