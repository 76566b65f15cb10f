from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from elibrary import create_app
from elibrary.config import TestConfig
from elibrary.extensions import db as _db
from elibrary.models import Book, Borrowing, SubscriptionPlan, User, UserSubscription
from elibrary.models.user import ROLE_ADMIN, ROLE_USER
from elibrary.utils.clock import FixedClock

NOW = datetime(2026, 3, 2, 12, 0, 0)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def app(clock):
    app = create_app(TestConfig, clock=clock)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def plan(db):
    p = SubscriptionPlan(name="Monthly", duration_days=30, price=Decimal("9.90"), is_active=True)
    db.session.add(p)
    db.session.commit()
    return p


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(username=None, role=ROLE_USER):
        counter["n"] += 1
        username = username or f"reader{counter['n']}"
        u = User(username=username, email=f"{username}@example.com", password_hash="x", role=role)
        db.session.add(u)
        db.session.commit()
        return u

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("librarian", role=ROLE_ADMIN)


@pytest.fixture
def make_book(db):
    def _make(title="Dune", copies=1, author="Frank Herbert", genre="Sci-Fi"):
        b = Book(title=title, author=author, genre=genre, copies_total=copies, copies_available=copies)
        db.session.add(b)
        db.session.commit()
        return b

    return _make


@pytest.fixture
def subscribe(db, plan):
    def _subscribe(user, ends_in=timedelta(days=60), now=NOW):
        s = UserSubscription(
            user_id=user.id,
            plan_id=plan.id,
            start_date=now - timedelta(days=1),
            end_date=now + ends_in,
            is_active=True,
        )
        db.session.add(s)
        db.session.commit()
        return s

    return _subscribe


@pytest.fixture
def make_borrowing(db):
    """Open loan inserted directly, bypassing the eligibility rules."""

    def _make(user, book, borrowed_at, due_at, returned_at=None):
        b = Borrowing(
            user_id=user.id,
            book_id=book.id,
            borrowed_at=borrowed_at,
            due_at=due_at,
            returned_at=returned_at,
            fine_amount=Decimal("0.00"),
            fine_paid=True,
        )
        if returned_at is None:
            book.copies_available -= 1
        db.session.add(b)
        db.session.commit()
        return b

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "username": user.username},
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def now():
    return NOW
