from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from elibrary.services.borrowing_service import BorrowingService
from elibrary.services.errors import ServiceError
from elibrary.utils.clock import utcnow
from elibrary.utils.decorators import current_user_id, is_admin
from elibrary.utils.responses import iso, money, service_error

borrowing_bp = Blueprint("borrowings", __name__)


@borrowing_bp.post("/<int:book_id>")
@jwt_required()
def borrow_book(book_id: int):
    try:
        b = BorrowingService.borrow(
            current_user_id(),
            book_id,
            utcnow(),
            may_borrow=not is_admin(),
        )
        return jsonify({"success": True, "borrowing_id": b.id, "due_at": iso(b.due_at)}), 201
    except ServiceError as e:
        return service_error(e)


@borrowing_bp.post("/<int:borrowing_id>/return")
@jwt_required()
def return_book(borrowing_id: int):
    try:
        r = BorrowingService.return_book(borrowing_id, current_user_id(), utcnow())
        return jsonify({
            "success": True,
            "borrowing_id": r.borrowing_id,
            "returned_at": iso(r.returned_at),
            "fine_amount": money(r.fine_amount),
            "fine_paid": r.fine_paid,
        })
    except ServiceError as e:
        return service_error(e)


@borrowing_bp.get("/eligibility")
@jwt_required()
def eligibility():
    result = BorrowingService.check_eligibility(current_user_id(), utcnow())
    return jsonify({"success": True, "data": result.to_dict()})


@borrowing_bp.get("/active")
@jwt_required()
def active():
    items = BorrowingService.list_active(current_user_id(), utcnow())
    return jsonify({"success": True, "data": [
        {
            "borrowing_id": x.borrowing_id,
            "book_id": x.book_id,
            "title": x.title,
            "author": x.author,
            "borrowed_at": iso(x.borrowed_at),
            "due_at": iso(x.due_at),
            "is_overdue": x.is_overdue,
            "days_left": x.days_left,
            "overdue_days": x.overdue_days,
            "fine_amount": money(x.fine_amount),
        } for x in items
    ]})


@borrowing_bp.get("/history")
@jwt_required()
def history():
    limit = request.args.get("limit", type=int)
    if limit is not None and (limit <= 0 or limit > 200):
        limit = 50

    items = BorrowingService.list_history(current_user_id(), utcnow(), limit=limit)
    return jsonify({"success": True, "data": [
        {
            "borrowing_id": x.borrowing_id,
            "book_id": x.book_id,
            "title": x.title,
            "author": x.author,
            "borrowed_at": iso(x.borrowed_at),
            "due_at": iso(x.due_at),
            "returned_at": iso(x.returned_at),
            "fine_amount": money(x.fine_amount),
            "fine_paid": x.fine_paid,
            "was_overdue": x.was_overdue,
        } for x in items
    ]})
