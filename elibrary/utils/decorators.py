from functools import wraps
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_jwt_identity
from flask import jsonify

from elibrary.models.user import ROLE_ADMIN


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            claims = get_jwt()
            role = claims.get("role")
            if role not in roles:
                return jsonify({"success": False, "message": "Forbidden", "error": "Forbidden"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def current_user_id() -> int:
    return int(get_jwt_identity())


def current_role():
    return (get_jwt() or {}).get("role")


def is_admin() -> bool:
    return current_role() == ROLE_ADMIN
