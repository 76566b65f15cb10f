from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.services.errors import ServiceError
from elibrary.services.profile_service import ProfileService
from elibrary.utils.clock import utcnow
from elibrary.utils.decorators import current_user_id
from elibrary.utils.responses import iso, money, service_error

profile_bp = Blueprint("profile", __name__)


def _dates(d):
    if d is None:
        return None
    return {k: iso(v) if k.endswith("_at") or k.endswith("_date") else v for k, v in d.items()}


@profile_bp.get("/summary")
@jwt_required()
def summary():
    try:
        s = ProfileService.summary(current_user_id(), utcnow())
    except ServiceError as e:
        return service_error(e)

    user = s["user"]
    activity = s["activity"]
    return jsonify({
        "success": True,
        "user": {"id": user.id, "username": user.username, "email": user.email, "phone": user.phone},
        "subscription": _dates(s["subscription"]),
        "activity": {
            **activity,
            "last_borrowing": _dates(activity["last_borrowing"]),
            "last_review": _dates(activity["last_review"]),
        },
    })


@profile_bp.get("/overview")
@jwt_required()
def overview():
    history = [
        {**_dates(row), "fine_amount": money(row["fine_amount"])}
        for row in ProfileService.overview(
            current_user_id(),
            request.args.get("history_limit", 50, type=int),
        )
    ]
    return jsonify({
        "success": True,
        "last_returned": history[0] if history else None,
        "returned_history": history,
    })
