from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.services.errors import ServiceError
from elibrary.services.subscription_service import SubscriptionService
from elibrary.utils.clock import utcnow
from elibrary.utils.decorators import current_user_id
from elibrary.utils.responses import iso, money, service_error

subscription_bp = Blueprint("subscriptions", __name__)


@subscription_bp.get("/plans")
def plans():
    return jsonify({"success": True, "data": [
        {
            "id": p.id,
            "name": p.name,
            "duration_days": p.duration_days,
            "price": money(p.price),
        } for p in SubscriptionService.list_plans()
    ]})


@subscription_bp.post("/request/<int:plan_id>")
@jwt_required()
def request_plan(plan_id: int):
    try:
        req = SubscriptionService.request_plan(current_user_id(), plan_id, utcnow())
        return jsonify({"success": True, "request_id": req.id, "status": req.status}), 201
    except ServiceError as e:
        return service_error(e)


@subscription_bp.post("/pay/<int:request_id>")
@jwt_required()
def pay(request_id: int):
    data = request.get_json(silent=True) or {}
    try:
        p = SubscriptionService.pay(
            request_id,
            current_user_id(),
            data.get("method"),
            data.get("payment_reference"),
            utcnow(),
        )
        return jsonify({"success": True, "payment_id": p.id, "status": p.status})
    except ServiceError as e:
        return service_error(e)


@subscription_bp.get("/me")
@jwt_required()
def my_subscription():
    sub = SubscriptionService.my_subscription(current_user_id(), utcnow())
    if sub is None:
        return jsonify({"success": True, "data": None})
    return jsonify({"success": True, "data": {
        "id": sub.id,
        "plan_id": sub.plan_id,
        "plan": sub.plan.name if sub.plan else None,
        "start_date": iso(sub.start_date),
        "end_date": iso(sub.end_date),
    }})
