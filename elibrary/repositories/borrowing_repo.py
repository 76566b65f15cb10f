from datetime import datetime

from elibrary.extensions import db
from elibrary.models.book import Book
from elibrary.models.borrowing import Borrowing


class BorrowingRepo:
    @staticmethod
    def get(borrowing_id: int):
        return db.session.get(Borrowing, borrowing_id)

    @staticmethod
    def get_owned(borrowing_id: int, user_id: int):
        return db.session.execute(
            db.select(Borrowing).where(
                Borrowing.id == borrowing_id,
                Borrowing.user_id == user_id,
            )
        ).scalars().first()

    @staticmethod
    def list_by_user(user_id: int, limit=None):
        q = (
            db.select(Borrowing)
            .where(Borrowing.user_id == user_id)
            .order_by(Borrowing.borrowed_at.desc(), Borrowing.id.desc())
        )
        if limit:
            q = q.limit(limit)
        return db.session.execute(q).scalars().all()

    @staticmethod
    def count_by_user(user_id: int, open_only: bool = False) -> int:
        q = db.select(db.func.count(Borrowing.id)).where(Borrowing.user_id == user_id)
        if open_only:
            q = q.where(Borrowing.returned_at.is_(None))
        return db.session.execute(q).scalar_one()

    @staticmethod
    def list_returned_by_user(user_id: int, limit: int):
        return db.session.execute(
            db.select(Borrowing)
            .where(Borrowing.user_id == user_id, Borrowing.returned_at.is_not(None))
            .order_by(Borrowing.returned_at.desc(), Borrowing.id.desc())
            .limit(limit)
        ).scalars().all()

    @staticmethod
    def list_open_by_user(user_id: int):
        return db.session.execute(
            db.select(Borrowing)
            .where(Borrowing.user_id == user_id, Borrowing.returned_at.is_(None))
            .order_by(Borrowing.borrowed_at.desc(), Borrowing.id.desc())
        ).scalars().all()

    @staticmethod
    def list_with_unpaid_fines(user_id: int):
        return db.session.execute(
            db.select(Borrowing).where(
                Borrowing.user_id == user_id,
                Borrowing.fine_amount > 0,
                Borrowing.fine_paid.is_(False),
            )
        ).scalars().all()

    @staticmethod
    def find_open_for_book(user_id: int, book_id: int):
        return db.session.execute(
            db.select(Borrowing).where(
                Borrowing.user_id == user_id,
                Borrowing.book_id == book_id,
                Borrowing.returned_at.is_(None),
            )
        ).scalars().first()

    @staticmethod
    def users_with_open_due_before(limit: datetime):
        """Users having at least one unreturned borrowing due before `limit`."""
        return db.session.execute(
            db.select(Borrowing.user_id)
            .where(Borrowing.returned_at.is_(None), Borrowing.due_at <= limit)
            .distinct()
        ).scalars().all()

    @staticmethod
    def count_all() -> int:
        return db.session.execute(db.select(db.func.count(Borrowing.id))).scalar_one()

    @staticmethod
    def top_borrowed(limit: int):
        cnt = db.func.count(Borrowing.id).label("borrowings")
        return db.session.execute(
            db.select(Book.id, Book.title, Book.author, cnt)
            .join(Borrowing, Borrowing.book_id == Book.id)
            .group_by(Book.id, Book.title, Book.author)
            .order_by(cnt.desc(), Book.title.asc())
            .limit(limit)
        ).all()

    @staticmethod
    def add(borrowing: Borrowing):
        db.session.add(borrowing)
        return borrowing

    @staticmethod
    def flush():
        db.session.flush()

    @staticmethod
    def commit():
        db.session.commit()

    @staticmethod
    def rollback():
        db.session.rollback()
