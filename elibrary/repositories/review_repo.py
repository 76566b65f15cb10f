from elibrary.extensions import db
from elibrary.models.book import Book
from elibrary.models.review import Review


class ReviewRepo:
    @staticmethod
    def list_for_book(book_id: int):
        return db.session.execute(
            db.select(Review)
            .where(Review.book_id == book_id)
            .order_by(db.func.coalesce(Review.updated_at, Review.created_at).desc(), Review.id.desc())
        ).scalars().all()

    @staticmethod
    def get_for_user(book_id: int, user_id: int):
        return db.session.execute(
            db.select(Review).where(Review.book_id == book_id, Review.user_id == user_id)
        ).scalars().first()

    @staticmethod
    def get_in_book(review_id: int, book_id: int):
        return db.session.execute(
            db.select(Review).where(Review.id == review_id, Review.book_id == book_id)
        ).scalars().first()

    @staticmethod
    def count_by_user(user_id: int) -> int:
        return db.session.execute(
            db.select(db.func.count(Review.id)).where(Review.user_id == user_id)
        ).scalar_one()

    @staticmethod
    def last_by_user(user_id: int):
        return db.session.execute(
            db.select(Review)
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        ).scalars().first()

    @staticmethod
    def top_reviewed(limit: int):
        cnt = db.func.count(Review.id).label("reviews")
        return db.session.execute(
            db.select(Book.id, Book.title, Book.author, cnt)
            .join(Review, Review.book_id == Book.id)
            .group_by(Book.id, Book.title, Book.author)
            .order_by(cnt.desc(), Book.title.asc())
            .limit(limit)
        ).all()

    @staticmethod
    def top_rated(limit: int):
        avg = db.func.avg(Review.rating * 1.0).label("avg_rating")
        cnt = db.func.count(Review.id).label("reviews_count")
        return db.session.execute(
            db.select(Book.id, Book.title, Book.author, avg, cnt)
            .join(Review, Review.book_id == Book.id)
            .group_by(Book.id, Book.title, Book.author)
            .order_by(avg.desc(), Book.title.asc())
            .limit(limit)
        ).all()

    @staticmethod
    def add(review: Review):
        db.session.add(review)
        db.session.commit()
        return review

    @staticmethod
    def update():
        db.session.commit()

    @staticmethod
    def delete(review: Review):
        db.session.delete(review)
        db.session.commit()
