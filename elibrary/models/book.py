from elibrary.extensions import db
from elibrary.utils.clock import system_utcnow


class Book(db.Model):
    __tablename__ = "books"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=True, index=True)
    genre = db.Column(db.String(100), nullable=True, index=True)
    isbn = db.Column(db.String(32), unique=True, nullable=True, index=True)
    published_on = db.Column(db.Date, nullable=True)
    cover_url = db.Column(db.String(500), nullable=True)

    copies_total = db.Column(db.Integer, nullable=False, default=1)
    copies_available = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=system_utcnow)

    __table_args__ = (
        db.CheckConstraint("copies_available >= 0", name="ck_books_available_non_negative"),
        db.CheckConstraint("copies_available <= copies_total", name="ck_books_available_le_total"),
    )
