from datetime import date

from elibrary.models.book import Book
from elibrary.repositories.book_repo import BookRepo
from elibrary.services.errors import ErrorKind, ServiceError

SORT_KEYS = {"newest", "oldest", "title", "author", "genre", "available", "rating", "reviews", "borrowed", "publishedon", "id"}


def _clean(value):
    value = (value or "").strip() if isinstance(value, str) else value
    return value or None


def _parse_date(value):
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ServiceError(ErrorKind.VALIDATION_FAILED, "published_on must be an ISO date (YYYY-MM-DD).")


def _validated(data: dict) -> dict:
    title = (data.get("title") or "").strip()
    if not title:
        raise ServiceError(ErrorKind.VALIDATION_FAILED, "Title is required.")

    try:
        total = int(data.get("copies_total", 1))
        available = int(data.get("copies_available", total))
    except (TypeError, ValueError):
        raise ServiceError(ErrorKind.VALIDATION_FAILED, "Copy counts must be integers.")

    if total < 0:
        raise ServiceError(ErrorKind.VALIDATION_FAILED, "copies_total cannot be negative.")
    if available < 0:
        raise ServiceError(ErrorKind.VALIDATION_FAILED, "copies_available cannot be negative.")
    if available > total:
        raise ServiceError(ErrorKind.VALIDATION_FAILED, "copies_available cannot be greater than copies_total.")

    return {
        "title": title,
        "author": _clean(data.get("author")),
        "genre": _clean(data.get("genre")),
        "isbn": _clean(data.get("isbn")),
        "published_on": _parse_date(data.get("published_on")),
        "copies_total": total,
        "copies_available": available,
    }


class BookService:
    @staticmethod
    def list_books(page=1, page_size=10, sort_by="newest", sort_dir="desc",
                   search=None, author=None, genre=None, available_only=False):
        page = max(1, page)
        page_size = 10 if page_size < 1 else min(page_size, 100)

        sort_by = (sort_by or "newest").strip().lower()
        if sort_by not in SORT_KEYS:
            sort_by = "newest"
        descending = (sort_dir or "desc").strip().lower() == "desc"

        total, rows = BookRepo.search(
            search=_clean(search),
            author=_clean(author),
            genre=_clean(genre),
            available_only=available_only,
            sort_by=sort_by,
            descending=descending,
            page=page,
            page_size=page_size,
        )
        return page, page_size, total, rows

    @staticmethod
    def get_book(book_id: int):
        book = BookRepo.get(book_id)
        if not book:
            raise ServiceError(ErrorKind.BOOK_NOT_FOUND)
        return book

    @staticmethod
    def rating(book_id: int):
        return BookRepo.rating_of(book_id)

    @staticmethod
    def create_book(data: dict):
        return BookRepo.create(Book(**_validated(data)))

    @staticmethod
    def update_book(book_id: int, data: dict):
        book = BookService.get_book(book_id)
        for k, v in _validated(data).items():
            setattr(book, k, v)
        BookRepo.update()
        return book

    @staticmethod
    def delete_book(book_id: int):
        book = BookService.get_book(book_id)
        # borrowings are kept as an audit trail, so a lent-out book stays
        if BookRepo.has_borrowings(book_id):
            raise ServiceError(ErrorKind.VALIDATION_FAILED, "This book has borrowing records and cannot be deleted.")
        BookRepo.delete(book)
