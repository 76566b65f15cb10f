from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.repositories.user_repo import UserRepo
from elibrary.services.auth_service import AuthService
from elibrary.services.errors import ServiceError
from elibrary.utils.decorators import current_user_id
from elibrary.utils.responses import json_error, service_error

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/register", endpoint="auth_register")
def register():
    data = request.get_json(silent=True) or {}

    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip()
    password = (data.get("password") or "").strip()
    phone = (data.get("phone") or "").strip() or None

    if not username or not email or not password:
        return json_error("username, email and password are required", 400, "ValidationFailed")

    try:
        user = AuthService.register(
            username=username,
            email=email,
            password=password,
            phone=phone,
        )  # role is never taken from the request
        return jsonify({"success": True, "id": user.id, "username": user.username, "role": user.role}), 201
    except ServiceError as e:
        return service_error(e)


@auth_bp.post("/login", endpoint="auth_login")
def login():
    data = request.get_json(silent=True) or {}
    try:
        token, user = AuthService.login(
            (data.get("username") or "").strip(),
            (data.get("password") or "").strip()
        )
        return jsonify({
            "success": True,
            "access_token": token,
            "user": {"id": user.id, "username": user.username, "role": user.role}
        })
    except ServiceError as e:
        return service_error(e)


@auth_bp.get("/me", endpoint="auth_me")
@jwt_required()
def me():
    user = UserRepo.get_by_id(current_user_id())
    if user is None:
        return json_error("Unauthorized", 401)

    return jsonify({
        "success": True,
        "user": {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "phone": user.phone,
            "role": user.role
        }
    })
