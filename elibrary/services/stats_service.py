from datetime import datetime

from elibrary.extensions import db
from elibrary.models.book import Book
from elibrary.repositories.borrowing_repo import BorrowingRepo
from elibrary.repositories.review_repo import ReviewRepo
from elibrary.repositories.subscription_repo import SubscriptionRepo
from elibrary.repositories.user_repo import UserRepo


def _limit(limit: int) -> int:
    return 5 if limit <= 0 or limit > 50 else limit


class StatsService:
    @staticmethod
    def overview(now: datetime) -> dict:
        return {
            "users_count": UserRepo.count_all(),
            "active_subs": SubscriptionRepo.count_active(now),
            "total_borrowings": BorrowingRepo.count_all(),
            "total_books": db.session.execute(db.select(db.func.count(Book.id))).scalar_one(),
        }

    @staticmethod
    def top_borrowed(limit: int = 5):
        return [
            {"book_id": r.id, "title": r.title, "author": r.author, "borrowings": int(r.borrowings)}
            for r in BorrowingRepo.top_borrowed(_limit(limit))
        ]

    @staticmethod
    def top_reviewed(limit: int = 5):
        return [
            {"book_id": r.id, "title": r.title, "author": r.author, "reviews": int(r.reviews)}
            for r in ReviewRepo.top_reviewed(_limit(limit))
        ]

    @staticmethod
    def top_rated(limit: int = 5):
        return [
            {
                "book_id": r.id,
                "title": r.title,
                "author": r.author,
                "avg_rating": round(float(r.avg_rating), 2),
                "reviews_count": int(r.reviews_count),
            }
            for r in ReviewRepo.top_rated(_limit(limit))
        ]
