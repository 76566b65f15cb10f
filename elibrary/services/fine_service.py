from datetime import datetime
from decimal import Decimal

from flask import current_app

from elibrary.models.notification import NotificationType
from elibrary.repositories.borrowing_repo import BorrowingRepo
from elibrary.services.notification_service import NotificationService


class FineService:
    @staticmethod
    def summary(user_id: int) -> dict:
        rows = BorrowingRepo.list_with_unpaid_fines(user_id)
        total = sum((Decimal(b.fine_amount) for b in rows), Decimal("0.00"))
        return {"count": len(rows), "total": total}

    @staticmethod
    def pay_all(user_id: int, now: datetime) -> Decimal:
        """Settles every unpaid fine of the user; returns the total paid."""
        rows = BorrowingRepo.list_with_unpaid_fines(user_id)
        if not rows:
            return Decimal("0.00")

        total = sum((Decimal(b.fine_amount) for b in rows), Decimal("0.00"))
        try:
            for b in rows:
                b.fine_paid = True

            NotificationService.emit(
                user_id,
                NotificationType.INFO,
                "Fines paid",
                f"You paid fines totalling {total:.2f}.",
                now,
            )
            BorrowingRepo.commit()
        except Exception:
            BorrowingRepo.rollback()
            current_app.logger.exception(f"[fines] pay-all failed for user #{user_id}")
            raise

        current_app.logger.info(f"[fines] user=#{user_id} paid {total:.2f} over {len(rows)} borrowing(s)")
        return total
