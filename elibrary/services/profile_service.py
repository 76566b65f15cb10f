from datetime import datetime

from elibrary.repositories.borrowing_repo import BorrowingRepo
from elibrary.repositories.review_repo import ReviewRepo
from elibrary.repositories.subscription_repo import SubscriptionRepo
from elibrary.repositories.user_repo import UserRepo
from elibrary.services.errors import ErrorKind, ServiceError

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 200


def _book_fields(row) -> dict:
    book = row.book
    return {
        "book_id": row.book_id,
        "title": book.title if book else f"Book #{row.book_id}",
        "author": book.author if book else None,
    }


class ProfileService:
    @staticmethod
    def summary(user_id: int, now: datetime) -> dict:
        user = UserRepo.get_by_id(user_id)
        if user is None:
            raise ServiceError(ErrorKind.USER_NOT_FOUND)

        borrowings = BorrowingRepo.count_by_user(user_id)
        reviews = ReviewRepo.count_by_user(user_id)

        last_borrowing = None
        latest = BorrowingRepo.list_by_user(user_id, limit=1)
        if latest:
            b = latest[0]
            last_borrowing = {**_book_fields(b), "borrowed_at": b.borrowed_at, "returned_at": b.returned_at}

        last_review = None
        r = ReviewRepo.last_by_user(user_id)
        if r is not None:
            last_review = {**_book_fields(r), "rating": r.rating, "created_at": r.created_at}

        subscription = None
        sub = SubscriptionRepo.latest_active(user_id, now)
        if sub is not None:
            subscription = {
                "plan": sub.plan.name if sub.plan else None,
                "start_date": sub.start_date,
                "end_date": sub.end_date,
            }

        return {
            "user": user,
            "subscription": subscription,
            "activity": {
                "borrowings_count": borrowings,
                "active_borrowings_count": BorrowingRepo.count_by_user(user_id, open_only=True),
                "reviews_count": reviews,
                "score": borrowings + reviews,
                "last_borrowing": last_borrowing,
                "last_review": last_review,
            },
        }

    @staticmethod
    def overview(user_id: int, history_limit: int = DEFAULT_HISTORY_LIMIT) -> list:
        """Returned loans, most recent return first."""
        if history_limit is None or history_limit <= 0 or history_limit > MAX_HISTORY_LIMIT:
            history_limit = DEFAULT_HISTORY_LIMIT

        return [
            {
                "borrowing_id": b.id,
                **_book_fields(b),
                "borrowed_at": b.borrowed_at,
                "returned_at": b.returned_at,
                "fine_amount": b.fine_amount,
            }
            for b in BorrowingRepo.list_returned_by_user(user_id, history_limit)
        ]
