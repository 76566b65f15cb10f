from datetime import timedelta

from elibrary.models import Book


def _available(db, book_id):
    return db.session.execute(db.select(Book.copies_available).where(Book.id == book_id)).scalar_one()


def test_borrow_and_return_round(client, db, clock, now, make_user, make_book, subscribe, auth_headers):
    user = make_user()
    subscribe(user, ends_in=timedelta(days=10))
    book = make_book(copies=1)
    headers = auth_headers(user)

    res = client.post(f"/borrowings/{book.id}", headers=headers)
    assert res.status_code == 201
    body = res.get_json()
    assert body["success"] is True
    assert body["due_at"] == (now + timedelta(days=10)).isoformat()
    assert _available(db, book.id) == 0

    clock.advance(timedelta(days=15))
    res = client.post(f"/borrowings/{body['borrowing_id']}/return", headers=headers)
    assert res.status_code == 200
    data = res.get_json()
    assert data["fine_amount"] == 2.5
    assert data["fine_paid"] is False

    res = client.post(f"/borrowings/{body['borrowing_id']}/return", headers=headers)
    assert res.status_code == 400
    assert res.get_json()["error"] == "AlreadyReturned"
    assert _available(db, book.id) == 1


def test_same_user_same_book_twice(client, make_user, make_book, subscribe, auth_headers):
    user = make_user()
    subscribe(user)
    book = make_book(copies=5)
    headers = auth_headers(user)

    assert client.post(f"/borrowings/{book.id}", headers=headers).status_code == 201
    res = client.post(f"/borrowings/{book.id}", headers=headers)

    assert res.status_code == 400
    assert res.get_json()["error"] == "AlreadyBorrowed"


def test_admin_cannot_borrow(client, admin, make_book, subscribe, auth_headers):
    subscribe(admin)
    book = make_book()

    res = client.post(f"/borrowings/{book.id}", headers=auth_headers(admin))

    assert res.status_code == 403
    assert res.get_json()["error"] == "BorrowingNotAllowed"


def test_error_kinds_map_to_statuses(client, make_user, make_book, subscribe, auth_headers):
    user = make_user()
    headers = auth_headers(user)
    book = make_book()

    res = client.post(f"/borrowings/{book.id}", headers=headers)
    assert res.status_code == 400
    assert res.get_json()["error"] == "NoActiveSubscription"
    assert res.get_json()["message"]

    subscribe(user)
    res = client.post("/borrowings/9999", headers=headers)
    assert res.status_code == 404
    assert res.get_json()["error"] == "BookNotFound"

    res = client.post("/borrowings/9999/return", headers=headers)
    assert res.status_code == 404
    assert res.get_json()["error"] == "NotFound"


def test_requires_token(client, make_book):
    book = make_book()
    assert client.post(f"/borrowings/{book.id}").status_code == 401
    assert client.get("/borrowings/active").status_code == 401


def test_active_and_history_views(client, clock, now, make_user, make_book, subscribe, auth_headers):
    user = make_user()
    subscribe(user)
    headers = auth_headers(user)
    book = make_book(title="Foundation", author="Isaac Asimov")
    borrowing_id = client.post(f"/borrowings/{book.id}", headers=headers).get_json()["borrowing_id"]

    clock.advance(timedelta(days=29, hours=12))
    res = client.get("/borrowings/active", headers=headers)
    assert res.status_code == 200
    [item] = res.get_json()["data"]
    assert item["borrowing_id"] == borrowing_id
    assert item["title"] == "Foundation"
    assert item["author"] == "Isaac Asimov"
    assert item["is_overdue"] is False
    assert item["days_left"] == 1
    assert item["overdue_days"] == 0

    notifications = client.get("/notifications/", headers=headers).get_json()["data"]
    assert [n["type"] for n in notifications] == ["DueSoon", "Borrowed"]

    res = client.get("/borrowings/history", headers=headers)
    [row] = res.get_json()["data"]
    assert row["returned_at"] is None
    assert row["fine_paid"] is True
    assert row["was_overdue"] is False


def test_eligibility_endpoint(client, make_user, make_book, subscribe, auth_headers):
    user = make_user()
    headers = auth_headers(user)

    data = client.get("/borrowings/eligibility", headers=headers).get_json()["data"]
    assert data["eligible"] is False
    assert data["error"] == "NoActiveSubscription"

    subscribe(user)
    data = client.get("/borrowings/eligibility", headers=headers).get_json()["data"]
    assert data["eligible"] is True
    assert data["subscription_end"] is not None


def test_fines_summary_and_pay_all(client, clock, make_user, make_book, subscribe, auth_headers):
    user = make_user()
    subscribe(user, ends_in=timedelta(days=90))
    headers = auth_headers(user)
    first, second = make_book(title="One"), make_book(title="Two")

    borrowing_id = client.post(f"/borrowings/{first.id}", headers=headers).get_json()["borrowing_id"]
    clock.advance(timedelta(days=35))
    client.post(f"/borrowings/{borrowing_id}/return", headers=headers)

    summary = client.get("/profile/fines/summary", headers=headers).get_json()
    assert summary["count"] == 1
    assert summary["total"] == 2.5

    blocked = client.post(f"/borrowings/{second.id}", headers=headers)
    assert blocked.get_json()["error"] == "UnpaidFines"

    assert client.post("/profile/fines/pay-all", headers=headers).get_json()["paid"] == 2.5
    assert client.post("/profile/fines/pay-all", headers=headers).get_json()["paid"] == 0.0
    assert client.get("/profile/fines/summary", headers=headers).get_json()["count"] == 0

    assert client.post(f"/borrowings/{second.id}", headers=headers).status_code == 201


def test_notification_endpoints(client, make_user, make_book, subscribe, auth_headers):
    user = make_user()
    subscribe(user)
    headers = auth_headers(user)
    client.post(f"/borrowings/{make_book().id}", headers=headers)

    assert client.get("/notifications/count", headers=headers).get_json()["count"] == 1
    [n] = client.get("/notifications/?unread_only=1", headers=headers).get_json()["data"]

    res = client.post(f"/notifications/{n['id']}/read", headers=headers)
    assert res.status_code == 200
    assert res.get_json()["read_at"] is not None
    assert client.get("/notifications/count", headers=headers).get_json()["count"] == 0
    assert client.get("/notifications/count?unread_only=0", headers=headers).get_json()["count"] == 1

    assert client.post("/notifications/424242/read", headers=headers).status_code == 404
    assert client.post("/notifications/read-all", headers=headers).get_json()["updated"] == 0


def test_run_late_check_is_admin_only(client, clock, admin, make_user, make_book, make_borrowing, auth_headers, now):
    user = make_user()
    make_borrowing(user, make_book(), now - timedelta(days=31), now - timedelta(days=1))

    assert client.post("/notifications/run-late-check", headers=auth_headers(user)).status_code == 403

    res = client.post("/notifications/run-late-check", headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.get_json()["data"] == {"users": 1, "notifications_created": 1}
