from datetime import datetime, timedelta

from elibrary.models.notification import Notification, NotificationType
from elibrary.repositories.notification_repo import NotificationRepo

DUE_SOON_WINDOW = timedelta(hours=24)


def _fmt(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M")


class NotificationService:
    @staticmethod
    def emit(user_id: int, notif_type: str, title: str, message: str,
             now: datetime, borrowing_id: int = None) -> Notification:
        """Adds a notification to the current transaction; the caller commits."""
        return NotificationRepo.add(Notification(
            user_id=user_id,
            type=notif_type,
            title=title[:120],
            message=message[:500],
            borrowing_id=borrowing_id,
            created_at=now,
        ))

    @staticmethod
    def borrowed(borrowing, book_title: str, now: datetime) -> Notification:
        return NotificationService.emit(
            borrowing.user_id,
            NotificationType.BORROWED,
            "Book borrowed",
            f"You borrowed '{book_title}'. Due date: {_fmt(borrowing.due_at)} UTC.",
            now,
            borrowing.id,
        )

    @staticmethod
    def returned(borrowing, book_title: str, now: datetime) -> Notification:
        return NotificationService.emit(
            borrowing.user_id,
            NotificationType.RETURNED,
            "Book returned",
            f"You returned '{book_title}' on time. Thank you!",
            now,
            borrowing.id,
        )

    @staticmethod
    def fine(borrowing, book_title: str, now: datetime) -> Notification:
        return NotificationService.emit(
            borrowing.user_id,
            NotificationType.FINE,
            "Late return fine",
            f"'{book_title}' was returned late. Fine: {borrowing.fine_amount:.2f}.",
            now,
            borrowing.id,
        )

    @staticmethod
    def ensure_once(borrowing, notif_type: str, title: str, message: str, now: datetime):
        """Check-then-insert keyed by (user, type, borrowing). Returns the new row or None."""
        if NotificationRepo.exists(borrowing.user_id, notif_type, borrowing.id):
            return None
        return NotificationService.emit(borrowing.user_id, notif_type, title, message, now, borrowing.id)

    @staticmethod
    def backfill(open_borrowings, now: datetime) -> list:
        """
        DueSoon for loans due within the next 24 hours, Overdue for loans past due.
        Each at most once per borrowing. Nothing is committed here.
        """
        created = []
        soon_limit = now + DUE_SOON_WINDOW

        for b in open_borrowings:
            if b.returned_at is not None:
                continue

            title = b.book.title if b.book else f"Book #{b.book_id}"

            if b.due_at < now:
                row = NotificationService.ensure_once(
                    b,
                    NotificationType.OVERDUE,
                    "Overdue book",
                    f"'{title}' was due on {_fmt(b.due_at)} UTC. Please return it as soon as possible.",
                    now,
                )
            elif b.due_at <= soon_limit:
                row = NotificationService.ensure_once(
                    b,
                    NotificationType.DUE_SOON,
                    "Due date approaching",
                    f"'{title}' is due on {_fmt(b.due_at)} UTC.",
                    now,
                )
            else:
                row = None

            if row is not None:
                created.append(row)

        return created

    # -----------------------------
    # Read side
    # -----------------------------
    @staticmethod
    def list_for_user(user_id: int, unread_only: bool = False, limit: int = 50):
        if limit <= 0 or limit > 200:
            limit = 50
        return NotificationRepo.list_for_user(user_id, unread_only=unread_only, limit=limit)

    @staticmethod
    def count_for_user(user_id: int, unread_only: bool = True) -> int:
        return NotificationRepo.count_for_user(user_id, unread_only=unread_only)

    @staticmethod
    def mark_read(notification_id: int, user_id: int, now: datetime):
        n = NotificationRepo.get_owned(notification_id, user_id)
        if n is None:
            return None
        if n.read_at is None:
            n.read_at = now
            NotificationRepo.commit()
        return n

    @staticmethod
    def mark_all_read(user_id: int, now: datetime) -> int:
        unread = NotificationRepo.list_unread(user_id)
        for n in unread:
            n.read_at = now
        if unread:
            NotificationRepo.commit()
        return len(unread)
