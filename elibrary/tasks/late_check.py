# elibrary/tasks/late_check.py
from datetime import datetime

import click
from flask import current_app

from elibrary.repositories.borrowing_repo import BorrowingRepo
from elibrary.services.borrowing_service import BorrowingService
from elibrary.services.notification_service import DUE_SOON_WINDOW
from elibrary.utils.clock import utcnow


def run_late_check(now: datetime) -> dict:
    """
    Fine sweep + DueSoon/Overdue notification backfill for every user with an
    open loan that is overdue or due within the next 24 hours.
    Run on demand only (admin endpoint or `flask late-check`); nothing schedules it.
    """
    user_ids = BorrowingRepo.users_with_open_due_before(now + DUE_SOON_WINDOW)

    notified = 0
    for user_id in user_ids:
        notified += len(BorrowingService.refresh_user(user_id, now))

    current_app.logger.info(f"[late_check] users={len(user_ids)} notifications_created={notified}")
    return {"users": len(user_ids), "notifications_created": notified}


def register_cli(app):
    @app.cli.command("late-check")
    def late_check_command():
        """Accrue overdue fines and backfill due-soon/overdue notifications."""
        result = run_late_check(utcnow())
        click.echo(
            f"late-check: {result['users']} user(s), {result['notifications_created']} notification(s) created"
        )
