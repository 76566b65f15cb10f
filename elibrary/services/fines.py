"""Overdue fine arithmetic.

Pure functions only; the borrowing service feeds them rows and the clock.
"""
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

FINE_PER_OVERDUE_DAY = Decimal("0.50")
EXTRA_FINE_AFTER_DAYS = 30

_CENT = Decimal("0.01")
_DAY_US = 86400 * 10 ** 6


def _ceil_days(delta: timedelta) -> int:
    micros = (delta.days * 86400 + delta.seconds) * 10 ** 6 + delta.microseconds
    return -(-micros // _DAY_US)


def overdue_days(due_at: datetime, now: datetime) -> int:
    """Started days past `due_at`; 0 while not overdue."""
    if now <= due_at:
        return 0
    return max(0, _ceil_days(now - due_at))


def days_left(due_at: datetime, now: datetime) -> int:
    if due_at <= now:
        return 0
    return max(0, _ceil_days(due_at - now))


def compute_fine(due_at: datetime, now: datetime,
                 per_day: Decimal = FINE_PER_OVERDUE_DAY,
                 extra_after_days: int = EXTRA_FINE_AFTER_DAYS) -> Decimal:
    """
    Linear daily fee, and every day beyond `extra_after_days` is charged a
    second time (2x rate past the threshold).
    Rounded to cents, half away from zero.
    """
    days = overdue_days(due_at, now)
    if days <= 0:
        return Decimal("0.00")

    per_day = Decimal(str(per_day))
    fine = per_day * days
    if days > extra_after_days:
        fine += per_day * (days - extra_after_days)

    return fine.quantize(_CENT, rounding=ROUND_HALF_UP)
