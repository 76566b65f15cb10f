from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.models.user import ROLE_ADMIN
from elibrary.services.admin_user_service import AdminUserService
from elibrary.services.errors import ServiceError
from elibrary.utils.clock import utcnow
from elibrary.utils.decorators import role_required
from elibrary.utils.responses import iso, service_error

admin_user_bp = Blueprint("admin_users", __name__)


@admin_user_bp.get("/")
@jwt_required()
@role_required(ROLE_ADMIN)
def list_users():
    args = request.args
    rows = AdminUserService.list_members(
        utcnow(),
        q=args.get("q"),
        status=args.get("status"),
        sort=args.get("sort", "borrowings_desc"),
        limit=args.get("limit", 50, type=int),
    )
    return jsonify({"success": True, "data": [
        {
            "id": u.id,
            "username": u.username,
            "email": u.email,
            "phone": u.phone,
            "subscription_end": iso(sub_end),
            "borrowings_count": int(borrowings or 0),
            "reviews_count": int(reviews or 0),
        } for u, sub_end, borrowings, reviews in rows
    ]})


@admin_user_bp.post("/<int:user_id>/subscription")
@jwt_required()
@role_required(ROLE_ADMIN)
def grant_subscription(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        sub = AdminUserService.grant_subscription(user_id, data.get("plan_id"), utcnow())
        return jsonify({
            "success": True,
            "user_id": user_id,
            "plan_id": sub.plan_id,
            "subscription_end": iso(sub.end_date),
        })
    except ServiceError as e:
        return service_error(e)
