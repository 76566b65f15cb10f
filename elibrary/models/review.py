from elibrary.extensions import db
from elibrary.utils.clock import system_utcnow


class Review(db.Model):
    __tablename__ = "reviews"

    id = db.Column(db.Integer, primary_key=True)

    book_id = db.Column(db.Integer, db.ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.String(500), nullable=False, default="")

    created_at = db.Column(db.DateTime, nullable=False, default=system_utcnow)
    updated_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", backref="reviews")
    book = db.relationship("Book", backref=db.backref("reviews", cascade="all, delete-orphan"))

    __table_args__ = (
        db.UniqueConstraint("book_id", "user_id", name="uq_reviews_book_user"),
        db.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )
