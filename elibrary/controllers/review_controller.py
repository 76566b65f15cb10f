from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.services.errors import ServiceError
from elibrary.services.review_service import ReviewService
from elibrary.utils.clock import utcnow
from elibrary.utils.decorators import current_user_id, is_admin
from elibrary.utils.responses import iso, service_error

review_bp = Blueprint("reviews", __name__)


def _review_json(r):
    user = r.user
    return {
        "id": r.id,
        "book_id": r.book_id,
        "user_id": r.user_id,
        "user_name": (user.username or user.email) if user else "User",
        "rating": r.rating,
        "comment": r.comment,
        "created_at": iso(r.created_at),
        "updated_at": iso(r.updated_at),
    }


@review_bp.get("/books/<int:book_id>/reviews")
def list_reviews(book_id: int):
    try:
        return jsonify({"success": True, "data": [_review_json(r) for r in ReviewService.list_for_book(book_id)]})
    except ServiceError as e:
        return service_error(e)


@review_bp.post("/books/<int:book_id>/reviews")
@jwt_required()
def upsert_review(book_id: int):
    data = request.get_json(silent=True) or {}
    try:
        r = ReviewService.upsert(
            book_id,
            current_user_id(),
            data.get("rating"),
            data.get("comment"),
            utcnow(),
            is_admin=is_admin(),
        )
        return jsonify({"success": True, "data": _review_json(r)})
    except ServiceError as e:
        return service_error(e)


@review_bp.delete("/books/<int:book_id>/reviews/<int:review_id>")
@jwt_required()
def delete_review(book_id: int, review_id: int):
    try:
        ReviewService.delete(book_id, review_id, current_user_id(), is_admin=is_admin())
        return jsonify({"success": True})
    except ServiceError as e:
        return service_error(e)
