from decimal import Decimal

from sqlalchemy import text

from elibrary.extensions import db
from elibrary.utils.clock import system_utcnow


class Borrowing(db.Model):
    __tablename__ = "borrowings"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)

    borrowed_at = db.Column(db.DateTime, nullable=False, default=system_utcnow)
    due_at = db.Column(db.DateTime, nullable=False, index=True)
    returned_at = db.Column(db.DateTime, nullable=True)

    fine_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    fine_paid = db.Column(db.Boolean, nullable=False, default=True)

    user = db.relationship("User", backref="borrowings")
    book = db.relationship("Book", backref="borrowings")

    __table_args__ = (
        # only one open loan per (user, book)
        db.Index(
            "ux_borrowings_open_user_book",
            "user_id",
            "book_id",
            unique=True,
            sqlite_where=text("returned_at IS NULL"),
            postgresql_where=text("returned_at IS NULL"),
            mssql_where=text("returned_at IS NULL"),
        ),
        db.CheckConstraint("fine_amount >= 0", name="ck_borrowings_fine_non_negative"),
    )

    @property
    def is_returned(self) -> bool:
        return self.returned_at is not None

    @property
    def has_unpaid_fine(self) -> bool:
        return (self.fine_amount or 0) > 0 and not self.fine_paid
