from sqlalchemy import func, or_

from elibrary.extensions import db
from elibrary.models.book import Book
from elibrary.models.borrowing import Borrowing
from elibrary.models.review import Review


class BookRepo:
    @staticmethod
    def get(book_id: int):
        return db.session.get(Book, book_id)

    @staticmethod
    def get_for_update(book_id: int):
        """Row-locked read; the lock lives until the surrounding commit/rollback."""
        return (
            db.session.execute(
                db.select(Book).where(Book.id == book_id).with_for_update()
            )
            .scalars()
            .first()
        )

    @staticmethod
    def decrement_available(book: Book):
        book.copies_available -= 1

    @staticmethod
    def increment_available(book: Book):
        # min(total, available+1)
        book.copies_available = min(book.copies_total, book.copies_available + 1)

    @staticmethod
    def search(search=None, author=None, genre=None, available_only=False,
               sort_by="newest", descending=True, page=1, page_size=10):
        avg_rating = (
            db.select(func.coalesce(func.avg(Review.rating * 1.0), 0.0))
            .where(Review.book_id == Book.id)
            .scalar_subquery()
        )
        reviews_count = (
            db.select(func.count(Review.id))
            .where(Review.book_id == Book.id)
            .scalar_subquery()
        )
        borrowings_count = (
            db.select(func.count(Borrowing.id))
            .where(Borrowing.book_id == Book.id)
            .scalar_subquery()
        )

        q = db.select(Book, avg_rating.label("avg_rating"), reviews_count.label("reviews_count"))

        if search:
            like = f"%{search}%"
            q = q.where(or_(Book.title.like(like), Book.author.like(like), Book.isbn.like(like)))
        if author:
            q = q.where(Book.author.like(f"%{author}%"))
        if genre:
            q = q.where(Book.genre.like(f"%{genre}%"))
        if available_only:
            q = q.where(Book.copies_available > 0)

        sort_columns = {
            "rating": [avg_rating, reviews_count, Book.id],
            "reviews": [reviews_count, avg_rating, Book.id],
            "borrowed": [borrowings_count, avg_rating, Book.id],
            "available": [Book.copies_available, Book.id],
            "title": [Book.title, Book.id],
            "author": [Book.author, Book.title, Book.id],
            "genre": [Book.genre, Book.title, Book.id],
            "publishedon": [Book.published_on, Book.id],
            "newest": [Book.id],
            "id": [Book.id],
        }
        if sort_by == "oldest":
            order = [Book.id.asc()]
        else:
            columns = sort_columns.get(sort_by, [Book.id])
            order = [c.desc() if descending else c.asc() for c in columns]

        total = db.session.execute(
            db.select(func.count()).select_from(q.order_by(None).subquery())
        ).scalar_one()

        rows = db.session.execute(
            q.order_by(*order).offset((page - 1) * page_size).limit(page_size)
        ).all()
        return total, rows

    @staticmethod
    def rating_of(book_id: int):
        avg, cnt = db.session.execute(
            db.select(func.avg(Review.rating * 1.0), func.count(Review.id))
            .where(Review.book_id == book_id)
        ).one()
        return float(avg or 0.0), int(cnt or 0)

    @staticmethod
    def has_borrowings(book_id: int) -> bool:
        return db.session.execute(
            db.select(Borrowing.id).where(Borrowing.book_id == book_id).limit(1)
        ).first() is not None

    @staticmethod
    def create(book: Book):
        db.session.add(book)
        db.session.commit()
        return book

    @staticmethod
    def update():
        db.session.commit()

    @staticmethod
    def delete(book: Book):
        db.session.delete(book)
        db.session.commit()
