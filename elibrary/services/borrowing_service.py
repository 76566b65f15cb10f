from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from elibrary.models.borrowing import Borrowing
from elibrary.repositories.book_repo import BookRepo
from elibrary.repositories.borrowing_repo import BorrowingRepo
from elibrary.repositories.subscription_repo import SubscriptionRepo
from elibrary.services import fines
from elibrary.services.errors import DEFAULT_MESSAGES, ErrorKind, ServiceError
from elibrary.services.mail_service import MailService
from elibrary.services.notification_service import NotificationService

MAX_ACTIVE_BORROWINGS = 3
LOAN_DAYS = 30


@dataclass
class EligibilityResult:
    ok: bool
    kind: ErrorKind = None
    message: str = None
    subscription_end: datetime = None
    active_count: int = 0
    unpaid_total: Decimal = None
    overdue_title: str = None
    overdue_due_at: datetime = None

    def to_error(self) -> ServiceError:
        return ServiceError(
            self.kind,
            self.message,
            overdue_title=self.overdue_title,
            overdue_due_at=self.overdue_due_at,
            unpaid_total=self.unpaid_total,
        )

    def to_dict(self) -> dict:
        return {
            "eligible": self.ok,
            "error": self.kind.value if self.kind else None,
            "message": self.message or (DEFAULT_MESSAGES[self.kind] if self.kind else None),
            "subscription_end": self.subscription_end.isoformat() if self.subscription_end else None,
            "active_count": self.active_count,
            "unpaid_total": float(self.unpaid_total) if self.unpaid_total is not None else None,
            "overdue_title": self.overdue_title,
            "overdue_due_at": self.overdue_due_at.isoformat() if self.overdue_due_at else None,
        }


@dataclass
class ReturnResult:
    borrowing_id: int
    returned_at: datetime
    fine_amount: Decimal
    fine_paid: bool


@dataclass
class ActiveBorrowing:
    borrowing_id: int
    book_id: int
    title: str
    author: str
    borrowed_at: datetime
    due_at: datetime
    is_overdue: bool
    days_left: int
    overdue_days: int
    fine_amount: Decimal


@dataclass
class HistoryBorrowing:
    borrowing_id: int
    book_id: int
    title: str
    author: str
    borrowed_at: datetime
    due_at: datetime
    returned_at: datetime
    fine_amount: Decimal
    fine_paid: bool
    was_overdue: bool


def _rules():
    cfg = current_app.config
    return {
        "max_active": int(cfg.get("MAX_ACTIVE_BORROWINGS", MAX_ACTIVE_BORROWINGS)),
        "loan_period": timedelta(days=int(cfg.get("LOAN_DAYS", LOAN_DAYS))),
        "per_day": Decimal(str(cfg.get("FINE_PER_OVERDUE_DAY", fines.FINE_PER_OVERDUE_DAY))),
        "extra_after_days": int(cfg.get("EXTRA_FINE_AFTER_DAYS", fines.EXTRA_FINE_AFTER_DAYS)),
    }


def _fine_for(borrowing: Borrowing, now: datetime, rules: dict) -> Decimal:
    return fines.compute_fine(
        borrowing.due_at,
        now,
        per_day=rules["per_day"],
        extra_after_days=rules["extra_after_days"],
    )


def _book_title(borrowing: Borrowing) -> str:
    return borrowing.book.title if borrowing.book else f"Book #{borrowing.book_id}"


class BorrowingService:
    # -----------------------------
    # Fine accrual
    # -----------------------------
    @staticmethod
    def _accrue(open_borrowings, now: datetime, rules: dict) -> int:
        changed = 0
        for b in open_borrowings:
            if b.returned_at is not None or b.due_at >= now:
                continue

            fine = _fine_for(b, now, rules)
            current = Decimal(b.fine_amount or 0)

            if fine > current or (current > 0 and b.fine_paid):
                b.fine_amount = fine
                b.fine_paid = fine == 0
                changed += 1
        return changed

    @staticmethod
    def sweep_fines(user_id: int, now: datetime) -> int:
        """Recomputes fines of the user's overdue open loans; commits only on change."""
        changed = BorrowingService._accrue(BorrowingRepo.list_open_by_user(user_id), now, _rules())
        if changed:
            try:
                BorrowingRepo.commit()
            except Exception:
                BorrowingRepo.rollback()
                current_app.logger.exception(f"[borrowing] fine sweep failed for user #{user_id}")
                raise
        return changed

    # -----------------------------
    # Eligibility
    # -----------------------------
    @staticmethod
    def check_eligibility(user_id: int, now: datetime) -> EligibilityResult:
        BorrowingService.sweep_fines(user_id, now)
        rules = _rules()

        unpaid = BorrowingRepo.list_with_unpaid_fines(user_id)
        if unpaid:
            total = sum((Decimal(b.fine_amount) for b in unpaid), Decimal("0.00"))
            return EligibilityResult(
                ok=False,
                kind=ErrorKind.UNPAID_FINES,
                message=f"You have unpaid fines ({total:.2f}). Please settle them before borrowing.",
                unpaid_total=total,
            )

        sub_end = SubscriptionRepo.active_end_date(user_id, now)
        if sub_end is None:
            return EligibilityResult(ok=False, kind=ErrorKind.NO_ACTIVE_SUBSCRIPTION)

        open_rows = BorrowingRepo.list_open_by_user(user_id)

        overdue = sorted((b for b in open_rows if b.due_at < now), key=lambda b: b.due_at)
        if overdue:
            first = overdue[0]
            title = _book_title(first)
            return EligibilityResult(
                ok=False,
                kind=ErrorKind.HAS_OVERDUE_BOOK,
                message=(
                    f"You have an overdue book: '{title}' (due {first.due_at:%Y-%m-%d}). "
                    "Please return it before borrowing another."
                ),
                subscription_end=sub_end,
                active_count=len(open_rows),
                overdue_title=title,
                overdue_due_at=first.due_at,
            )

        if len(open_rows) >= rules["max_active"]:
            return EligibilityResult(
                ok=False,
                kind=ErrorKind.MAX_ACTIVE_BORROWINGS_REACHED,
                message=f"You have reached the maximum number of active borrowings ({rules['max_active']}).",
                subscription_end=sub_end,
                active_count=len(open_rows),
            )

        return EligibilityResult(ok=True, subscription_end=sub_end, active_count=len(open_rows))

    # -----------------------------
    # Borrow / Return
    # -----------------------------
    @staticmethod
    def borrow(user_id: int, book_id: int, now: datetime, may_borrow: bool = True) -> Borrowing:
        if not may_borrow:
            raise ServiceError(ErrorKind.BORROWING_NOT_ALLOWED)

        eligibility = BorrowingService.check_eligibility(user_id, now)
        if not eligibility.ok:
            raise eligibility.to_error()

        rules = _rules()
        try:
            if BorrowingRepo.find_open_for_book(user_id, book_id) is not None:
                raise ServiceError(ErrorKind.ALREADY_BORROWED)

            # lock the book row until commit; concurrent borrows of this book queue here
            book = BookRepo.get_for_update(book_id)
            if book is None:
                raise ServiceError(ErrorKind.BOOK_NOT_FOUND)

            if book.copies_available is None or book.copies_available <= 0:
                raise ServiceError(ErrorKind.NO_COPIES_AVAILABLE)

            due_at = min(now + rules["loan_period"], eligibility.subscription_end)
            if due_at <= now:
                raise ServiceError(ErrorKind.SUBSCRIPTION_EXPIRING)

            BookRepo.decrement_available(book)
            borrowing = BorrowingRepo.add(Borrowing(
                user_id=user_id,
                book_id=book.id,
                borrowed_at=now,
                due_at=due_at,
                fine_amount=Decimal("0.00"),
                fine_paid=True,
            ))
            BorrowingRepo.flush()

            NotificationService.borrowed(borrowing, book.title, now)

            # single commit point
            BorrowingRepo.commit()
        except ServiceError:
            BorrowingRepo.rollback()
            raise
        except IntegrityError:
            # open-loan unique index lost a race against a concurrent borrow
            BorrowingRepo.rollback()
            raise ServiceError(ErrorKind.ALREADY_BORROWED)
        except Exception:
            BorrowingRepo.rollback()
            current_app.logger.exception(f"[borrowing] borrow failed user=#{user_id} book=#{book_id}")
            raise

        current_app.logger.info(
            f"[borrowing] user=#{user_id} borrowed book=#{book_id} borrowing=#{borrowing.id} due={due_at.isoformat()}"
        )
        return borrowing

    @staticmethod
    def return_book(borrowing_id: int, user_id: int, now: datetime) -> ReturnResult:
        rec = BorrowingRepo.get_owned(borrowing_id, user_id)
        if rec is None:
            raise ServiceError(ErrorKind.NOT_FOUND)

        if rec.returned_at is not None:
            raise ServiceError(ErrorKind.ALREADY_RETURNED)

        rules = _rules()
        try:
            rec.returned_at = max(now, rec.borrowed_at)

            # stock back, capped at total
            book = BookRepo.get_for_update(rec.book_id)
            if book is not None:
                BookRepo.increment_available(book)

            fine = _fine_for(rec, rec.returned_at, rules)
            title = _book_title(rec)
            if fine > 0:
                rec.fine_amount = fine
                rec.fine_paid = False
                notification = NotificationService.fine(rec, title, now)
            else:
                rec.fine_amount = Decimal("0.00")
                rec.fine_paid = True
                notification = NotificationService.returned(rec, title, now)

            BorrowingRepo.commit()
        except Exception:
            BorrowingRepo.rollback()
            current_app.logger.exception(f"[borrowing] return failed borrowing=#{borrowing_id}")
            raise

        current_app.logger.info(
            f"[borrowing] user=#{user_id} returned borrowing=#{rec.id} fine={rec.fine_amount}"
        )
        MailService.send_notification_copies([notification])

        return ReturnResult(
            borrowing_id=rec.id,
            returned_at=rec.returned_at,
            fine_amount=Decimal(rec.fine_amount),
            fine_paid=bool(rec.fine_paid),
        )

    # -----------------------------
    # Reads
    # -----------------------------
    @staticmethod
    def refresh_user(user_id: int, now: datetime) -> list:
        """
        Fine sweep + DueSoon/Overdue backfill for one user, in one transaction.
        Returns the notifications created.
        """
        open_rows = BorrowingRepo.list_open_by_user(user_id)
        try:
            changed = BorrowingService._accrue(open_rows, now, _rules())
            created = NotificationService.backfill(open_rows, now)
            if changed or created:
                BorrowingRepo.commit()
        except Exception:
            BorrowingRepo.rollback()
            current_app.logger.exception(f"[borrowing] refresh failed for user #{user_id}")
            raise

        if created:
            MailService.send_notification_copies(created)
        return created

    @staticmethod
    def list_active(user_id: int, now: datetime) -> list:
        BorrowingService.refresh_user(user_id, now)

        items = []
        for b in BorrowingRepo.list_open_by_user(user_id):
            items.append(ActiveBorrowing(
                borrowing_id=b.id,
                book_id=b.book_id,
                title=_book_title(b),
                author=b.book.author if b.book else None,
                borrowed_at=b.borrowed_at,
                due_at=b.due_at,
                is_overdue=b.due_at < now,
                days_left=fines.days_left(b.due_at, now),
                overdue_days=fines.overdue_days(b.due_at, now),
                fine_amount=Decimal(b.fine_amount or 0),
            ))
        return items

    @staticmethod
    def list_history(user_id: int, now: datetime, limit: int = None) -> list:
        items = []
        for b in BorrowingRepo.list_by_user(user_id, limit=limit):
            items.append(HistoryBorrowing(
                borrowing_id=b.id,
                book_id=b.book_id,
                title=_book_title(b),
                author=b.book.author if b.book else None,
                borrowed_at=b.borrowed_at,
                due_at=b.due_at,
                returned_at=b.returned_at,
                fine_amount=Decimal(b.fine_amount or 0),
                fine_paid=bool(b.fine_paid),
                was_overdue=(b.returned_at or now) > b.due_at,
            ))
        return items
