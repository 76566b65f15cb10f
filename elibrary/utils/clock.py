from datetime import datetime, timezone

from flask import current_app

CLOCK_KEY = "elibrary.clock"


def system_utcnow() -> datetime:
    """Naive UTC now; every column in the schema stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SystemClock:
    def now(self) -> datetime:
        return system_utcnow()


class FixedClock:
    """Clock frozen at a given instant, moved forward by hand in tests."""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime):
        self._now = now

    def advance(self, delta):
        self._now = self._now + delta


def init_clock(app, clock=None):
    app.extensions[CLOCK_KEY] = clock or SystemClock()


def utcnow() -> datetime:
    clock = current_app.extensions.get(CLOCK_KEY)
    if clock is None:
        return system_utcnow()
    return clock.now()
