from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.models.user import ROLE_ADMIN
from elibrary.services.errors import ServiceError
from elibrary.services.subscription_service import SubscriptionService
from elibrary.utils.clock import utcnow
from elibrary.utils.decorators import current_user_id, role_required
from elibrary.utils.responses import iso, service_error

admin_subscription_bp = Blueprint("admin_subscriptions", __name__)


@admin_subscription_bp.get("/pending")
@jwt_required()
@role_required(ROLE_ADMIN)
def pending():
    return jsonify({"success": True, "data": [
        {
            "id": r.id,
            "user_id": r.user_id,
            "username": r.user.username if r.user else None,
            "plan": r.plan.name if r.plan else None,
            "requested_at": iso(r.requested_at),
            "payment_status": r.payment.status if r.payment else None,
        } for r in SubscriptionService.pending_requests()
    ]})


@admin_subscription_bp.get("/active")
@jwt_required()
@role_required(ROLE_ADMIN)
def active():
    return jsonify({"success": True, "data": [
        {
            "id": s.id,
            "user_id": s.user_id,
            "username": s.user.username if s.user else None,
            "email": s.user.email if s.user else None,
            "plan": s.plan.name if s.plan else None,
            "start_date": iso(s.start_date),
            "end_date": iso(s.end_date),
        } for s in SubscriptionService.active_subscriptions(utcnow())
    ]})


@admin_subscription_bp.post("/approve/<int:request_id>")
@jwt_required()
@role_required(ROLE_ADMIN)
def approve(request_id: int):
    try:
        result = SubscriptionService.approve(request_id, current_user_id(), utcnow())
        return jsonify({
            "success": True,
            "request_id": result["request_id"],
            "payment_id": result["payment_id"],
            "receipt_number": result["receipt_number"],
            "subscription_end": iso(result["subscription_end"]),
        })
    except ServiceError as e:
        return service_error(e)


@admin_subscription_bp.post("/reject/<int:request_id>")
@jwt_required()
@role_required(ROLE_ADMIN)
def reject(request_id: int):
    data = request.get_json(silent=True) or {}
    try:
        req = SubscriptionService.reject(request_id, current_user_id(), data.get("note"), utcnow())
        return jsonify({"success": True, "request_id": req.id, "status": req.status})
    except ServiceError as e:
        return service_error(e)
