from functools import wraps

from flask_jwt_extended import current_user, jwt_required

from coachhub.errors import ForbiddenError


def role_required(*roles, message=None):
    """Require a valid access token whose user has one of ``roles``."""
    def decorator(view_func):
        @wraps(view_func)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if current_user.role not in roles:
                raise ForbiddenError(message or "You do not have permission to access this resource")
            return view_func(*args, **kwargs)
        return wrapper
    return decorator


def admin_required(view_func):
    return role_required("admin", message="Admin access required")(view_func)


def coach_required(view_func):
    return role_required("coach", message="Only coaches can perform this action")(view_func)
