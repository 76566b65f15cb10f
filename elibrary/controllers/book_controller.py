# elibrary/controllers/book_controller.py

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.models.user import ROLE_ADMIN
from elibrary.services.book_service import BookService
from elibrary.services.errors import ServiceError
from elibrary.utils.decorators import role_required
from elibrary.utils.responses import iso, service_error

book_bp = Blueprint("books", __name__)


def _book_json(b, avg_rating=0.0, reviews_count=0):
    return {
        "id": b.id,
        "title": b.title,
        "author": b.author,
        "genre": b.genre,
        "isbn": b.isbn,
        "cover_url": b.cover_url,
        "published_on": b.published_on.isoformat() if b.published_on else None,
        "copies_total": b.copies_total,
        "copies_available": b.copies_available,
        "avg_rating": round(float(avg_rating or 0.0), 2),
        "reviews_count": int(reviews_count or 0),
    }


@book_bp.get("/")
def list_books():
    args = request.args
    page, page_size, total, rows = BookService.list_books(
        page=args.get("page", 1, type=int),
        page_size=args.get("page_size", 10, type=int),
        sort_by=args.get("sort_by", "newest"),
        sort_dir=args.get("sort_dir", "desc"),
        search=args.get("search"),
        author=args.get("author"),
        genre=args.get("genre"),
        available_only=args.get("available_only", "0").lower() in ("1", "true", "yes"),
    )
    return jsonify({
        "success": True,
        "page": page,
        "page_size": page_size,
        "total_count": total,
        "data": [_book_json(b, avg, cnt) for b, avg, cnt in rows]
    })


@book_bp.get("/<int:book_id>")
def get_book(book_id: int):
    try:
        b = BookService.get_book(book_id)
        avg, cnt = BookService.rating(book_id)
        return jsonify({"success": True, "data": _book_json(b, avg, cnt)})
    except ServiceError as e:
        return service_error(e)


@book_bp.post("/")
@jwt_required()
@role_required(ROLE_ADMIN)
def create_book():
    data = request.get_json(silent=True) or {}
    try:
        b = BookService.create_book(data)
        return jsonify({"success": True, "id": b.id, "data": _book_json(b)}), 201
    except ServiceError as e:
        return service_error(e)


@book_bp.put("/<int:book_id>")
@jwt_required()
@role_required(ROLE_ADMIN)
def update_book(book_id: int):
    data = request.get_json(silent=True) or {}
    try:
        b = BookService.update_book(book_id, data)
        return jsonify({"success": True, "data": {"id": b.id, "created_at": iso(b.created_at)}})
    except ServiceError as e:
        return service_error(e)


@book_bp.delete("/<int:book_id>")
@jwt_required()
@role_required(ROLE_ADMIN)
def delete_book(book_id: int):
    try:
        BookService.delete_book(book_id)
        return jsonify({"success": True})
    except ServiceError as e:
        return service_error(e)
