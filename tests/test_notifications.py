from datetime import timedelta
from decimal import Decimal

from elibrary.models import Borrowing, Notification, NotificationType
from elibrary.services.borrowing_service import BorrowingService
from elibrary.services.notification_service import NotificationService
from elibrary.tasks.late_check import run_late_check


def _count(db, user, notif_type):
    return db.session.execute(
        db.select(db.func.count(Notification.id)).where(
            Notification.user_id == user.id,
            Notification.type == notif_type,
        )
    ).scalar_one()


def test_due_soon_notification_is_created_once(db, now, make_user, make_book, make_borrowing):
    user = make_user()
    b = make_borrowing(user, make_book(), now - timedelta(days=29), now + timedelta(hours=12))

    items = BorrowingService.list_active(user.id, now)
    BorrowingService.list_active(user.id, now + timedelta(hours=1))

    assert _count(db, user, NotificationType.DUE_SOON) == 1
    assert _count(db, user, NotificationType.OVERDUE) == 0
    assert len(items) == 1
    item = items[0]
    assert item.borrowing_id == b.id
    assert item.is_overdue is False
    assert item.days_left == 1
    assert item.overdue_days == 0


def test_loans_due_later_get_no_reminder(db, now, make_user, make_book, make_borrowing):
    user = make_user()
    make_borrowing(user, make_book(), now, now + timedelta(days=3))

    items = BorrowingService.list_active(user.id, now)

    assert items[0].days_left == 3
    assert db.session.execute(db.select(db.func.count(Notification.id))).scalar_one() == 0


def test_overdue_notification_is_created_once_and_fine_accrues(db, now, make_user, make_book, make_borrowing):
    user = make_user()
    b = make_borrowing(user, make_book(title="Neuromancer", author="William Gibson"),
                       now - timedelta(days=40), now - timedelta(days=2, hours=3))

    items = BorrowingService.list_active(user.id, now)
    BorrowingService.list_active(user.id, now + timedelta(days=1))

    assert _count(db, user, NotificationType.OVERDUE) == 1
    item = items[0]
    assert item.is_overdue is True
    assert item.overdue_days == 3
    assert item.days_left == 0
    assert item.title == "Neuromancer"
    assert item.author == "William Gibson"
    assert item.fine_amount == Decimal("1.50")
    assert db.session.get(Borrowing, b.id).fine_amount == Decimal("2.00")


def test_due_soon_then_overdue_each_once(db, now, make_user, make_book, make_borrowing):
    user = make_user()
    make_borrowing(user, make_book(), now - timedelta(days=29), now + timedelta(hours=2))

    BorrowingService.list_active(user.id, now)
    BorrowingService.list_active(user.id, now + timedelta(hours=3))
    BorrowingService.list_active(user.id, now + timedelta(hours=5))

    assert _count(db, user, NotificationType.DUE_SOON) == 1
    assert _count(db, user, NotificationType.OVERDUE) == 1


def test_history_lists_returned_and_open_loans(now, make_user, make_book, make_borrowing, subscribe):
    user = make_user()
    subscribe(user)
    late = BorrowingService.borrow(user.id, make_book(title="A").id, now - timedelta(days=40))
    BorrowingService.return_book(late.id, user.id, now - timedelta(days=5))
    open_loan = make_borrowing(user, make_book(title="B"), now, now + timedelta(days=30))

    rows = BorrowingService.list_history(user.id, now)

    assert [r.borrowing_id for r in rows] == [open_loan.id, late.id]
    returned = rows[1]
    assert returned.was_overdue is True
    assert returned.fine_amount == Decimal("2.50")
    assert returned.fine_paid is False
    assert rows[0].returned_at is None
    assert rows[0].was_overdue is False

    assert len(BorrowingService.list_history(user.id, now, limit=1)) == 1


def test_list_count_and_mark_read(db, now, make_user):
    user, other = make_user(), make_user()
    for i in range(3):
        NotificationService.emit(user.id, NotificationType.INFO, f"Info {i}", "hello", now + timedelta(minutes=i))
    NotificationService.emit(other.id, NotificationType.INFO, "Other", "hello", now)
    db.session.commit()

    rows = NotificationService.list_for_user(user.id)
    assert [n.title for n in rows] == ["Info 2", "Info 1", "Info 0"]
    assert NotificationService.count_for_user(user.id) == 3

    assert NotificationService.mark_read(rows[0].id, other.id, now) is None
    first = NotificationService.mark_read(rows[0].id, user.id, now)
    assert first.read_at == now
    # a second read keeps the original timestamp
    assert NotificationService.mark_read(rows[0].id, user.id, now + timedelta(hours=1)).read_at == now

    assert NotificationService.count_for_user(user.id) == 2
    assert NotificationService.count_for_user(user.id, unread_only=False) == 3
    assert len(NotificationService.list_for_user(user.id, unread_only=True)) == 2

    assert NotificationService.mark_all_read(user.id, now) == 2
    assert NotificationService.count_for_user(user.id) == 0
    assert NotificationService.count_for_user(other.id) == 1


def test_list_limit_out_of_range_falls_back(db, now, make_user):
    user = make_user()
    for i in range(3):
        NotificationService.emit(user.id, NotificationType.INFO, f"n{i}", "m", now)
    db.session.commit()

    assert len(NotificationService.list_for_user(user.id, limit=0)) == 3
    assert len(NotificationService.list_for_user(user.id, limit=2)) == 2


def test_late_check_covers_every_user_once(db, now, make_user, make_book, make_borrowing):
    late_user, soon_user, fine_user = make_user(), make_user(), make_user()
    make_borrowing(late_user, make_book(title="X"), now - timedelta(days=35), now - timedelta(days=5))
    make_borrowing(soon_user, make_book(title="Y"), now - timedelta(days=29), now + timedelta(hours=6))
    make_borrowing(fine_user, make_book(title="Z"), now, now + timedelta(days=20))

    first = run_late_check(now)
    second = run_late_check(now)

    assert first == {"users": 2, "notifications_created": 2}
    assert second == {"users": 2, "notifications_created": 0}
    assert _count(db, late_user, NotificationType.OVERDUE) == 1
    assert _count(db, soon_user, NotificationType.DUE_SOON) == 1
    assert _count(db, fine_user, NotificationType.DUE_SOON) == 0


def test_mail_copies_are_sent_when_enabled(app, db, now, make_user, make_book, make_borrowing):
    from elibrary.extensions import mail

    app.config["NOTIFY_BY_MAIL"] = True
    user = make_user("mailme")
    make_borrowing(user, make_book(title="Mailed"), now - timedelta(days=35), now - timedelta(days=5))

    with mail.record_messages() as outbox:
        BorrowingService.list_active(user.id, now)

    assert len(outbox) == 1
    assert outbox[0].recipients == ["mailme@example.com"]
    assert "Mailed" in outbox[0].body


def test_failed_mail_copy_does_not_fail_the_read(app, db, now, make_user, make_book, make_borrowing, monkeypatch):
    from elibrary.extensions import mail

    def _smtp_down(message):
        raise ConnectionError("smtp unreachable")

    app.config["NOTIFY_BY_MAIL"] = True
    monkeypatch.setattr(mail, "send", _smtp_down)
    user = make_user()
    make_borrowing(user, make_book(), now - timedelta(days=35), now - timedelta(days=5))

    active = BorrowingService.list_active(user.id, now)

    assert len(active) == 1
    assert _count(db, user, NotificationType.OVERDUE) == 1
