# elibrary/controllers/fine_controller.py

from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from elibrary.services.fine_service import FineService
from elibrary.utils.clock import utcnow
from elibrary.utils.decorators import current_user_id
from elibrary.utils.responses import money

fine_bp = Blueprint("fines", __name__)


@fine_bp.get("/summary")
@jwt_required()
def summary():
    s = FineService.summary(current_user_id())
    return jsonify({"success": True, "count": s["count"], "total": money(s["total"])})


@fine_bp.post("/pay-all")
@jwt_required()
def pay_all():
    paid = FineService.pay_all(current_user_id(), utcnow())
    return jsonify({"success": True, "paid": money(paid)})
