from elibrary.extensions import db
from elibrary.utils.clock import system_utcnow


class NotificationType:
    BORROWED = "Borrowed"
    RETURNED = "Returned"
    FINE = "Fine"
    DUE_SOON = "DueSoon"
    OVERDUE = "Overdue"
    INFO = "Info"

    ALL = (BORROWED, RETURNED, FINE, DUE_SOON, OVERDUE, INFO)


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    type = db.Column(db.String(50), nullable=False, default=NotificationType.INFO)
    title = db.Column(db.String(120), nullable=False)
    message = db.Column(db.String(500), nullable=False)

    borrowing_id = db.Column(db.Integer, db.ForeignKey("borrowings.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=system_utcnow)
    read_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", backref="notifications")
