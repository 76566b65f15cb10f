from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.models.user import ROLE_ADMIN
from elibrary.services.errors import ServiceError
from elibrary.services.subscription_service import SubscriptionService
from elibrary.utils.decorators import role_required
from elibrary.utils.responses import iso, money, service_error

admin_payment_bp = Blueprint("admin_payments", __name__)


@admin_payment_bp.get("/")
@jwt_required()
@role_required(ROLE_ADMIN)
def list_payments():
    try:
        rows = SubscriptionService.list_payments(
            request.args.get("status"),
            request.args.get("limit", 100, type=int),
        )
    except ServiceError as e:
        return service_error(e)

    return jsonify({"success": True, "data": [
        {
            "id": p.id,
            "created_at": iso(p.created_at),
            "paid_at": iso(p.paid_at),
            "amount": money(p.amount),
            "method": p.method,
            "status": p.status,
            "receipt_number": p.receipt_number,
            "user_id": u.id,
            "username": u.username,
            "email": u.email,
            "plan": plan,
        } for p, plan, u in rows
    ]})
