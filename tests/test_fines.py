from datetime import datetime, timedelta
from decimal import Decimal

from elibrary.services.fines import compute_fine, days_left, overdue_days

DUE = datetime(2026, 1, 10, 9, 30)


def test_no_fine_on_or_before_due_date():
    assert compute_fine(DUE, DUE) == Decimal("0.00")
    assert compute_fine(DUE, DUE - timedelta(days=3)) == Decimal("0.00")


def test_boundaries():
    assert compute_fine(DUE, DUE + timedelta(days=1)) == Decimal("0.50")
    assert compute_fine(DUE, DUE + timedelta(days=5)) == Decimal("2.50")
    assert compute_fine(DUE, DUE + timedelta(days=30)) == Decimal("15.00")
    assert compute_fine(DUE, DUE + timedelta(days=31)) == Decimal("16.00")
    assert compute_fine(DUE, DUE + timedelta(days=40)) == Decimal("25.00")


def test_partial_day_counts_as_a_started_day():
    assert overdue_days(DUE, DUE + timedelta(seconds=1)) == 1
    assert compute_fine(DUE, DUE + timedelta(seconds=1)) == Decimal("0.50")
    assert compute_fine(DUE, DUE + timedelta(days=1, minutes=1)) == Decimal("1.00")


def test_fine_is_non_decreasing_over_time():
    previous = Decimal("0")
    for hours in range(0, 24 * 70, 7):
        fine = compute_fine(DUE, DUE + timedelta(hours=hours))
        assert fine >= previous
        previous = fine


def test_custom_rate_and_threshold():
    assert compute_fine(DUE, DUE + timedelta(days=3), per_day=Decimal("1.25")) == Decimal("3.75")
    assert compute_fine(DUE, DUE + timedelta(days=3), per_day="1", extra_after_days=1) == Decimal("5.00")


def test_rounding_is_half_up():
    assert compute_fine(DUE, DUE + timedelta(days=1), per_day=Decimal("0.125")) == Decimal("0.13")


def test_days_left():
    assert days_left(DUE, DUE - timedelta(days=2)) == 2
    assert days_left(DUE, DUE - timedelta(hours=1)) == 1
    assert days_left(DUE, DUE) == 0
    assert days_left(DUE, DUE + timedelta(days=1)) == 0
