from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.models.user import ROLE_ADMIN
from elibrary.services.notification_service import NotificationService
from elibrary.tasks.late_check import run_late_check
from elibrary.utils.clock import utcnow
from elibrary.utils.decorators import current_user_id, role_required
from elibrary.utils.responses import iso, json_error

notif_bp = Blueprint("notifications", __name__)


def _flag(name: str, default: bool) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.lower() in ("1", "true", "yes")


@notif_bp.get("/")
@jwt_required()
def list_notifications():
    rows = NotificationService.list_for_user(
        current_user_id(),
        unread_only=_flag("unread_only", False),
        limit=request.args.get("limit", 50, type=int),
    )
    return jsonify({"success": True, "data": [
        {
            "id": n.id,
            "type": n.type,
            "title": n.title,
            "message": n.message,
            "borrowing_id": n.borrowing_id,
            "created_at": iso(n.created_at),
            "read_at": iso(n.read_at),
        } for n in rows
    ]})


@notif_bp.get("/count")
@jwt_required()
def count():
    cnt = NotificationService.count_for_user(current_user_id(), unread_only=_flag("unread_only", True))
    return jsonify({"success": True, "count": cnt})


@notif_bp.post("/<int:notification_id>/read")
@jwt_required()
def mark_read(notification_id: int):
    n = NotificationService.mark_read(notification_id, current_user_id(), utcnow())
    if n is None:
        return json_error("Notification not found", 404, "NotFound")
    return jsonify({"success": True, "read_at": iso(n.read_at)})


@notif_bp.post("/read-all")
@jwt_required()
def mark_all_read():
    updated = NotificationService.mark_all_read(current_user_id(), utcnow())
    return jsonify({"success": True, "updated": updated})


@notif_bp.post("/run-late-check")
@jwt_required()
@role_required(ROLE_ADMIN)
def run_late_check_now():
    result = run_late_check(utcnow())
    return jsonify({"success": True, "message": "Late check finished", "data": result})
