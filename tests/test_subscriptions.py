from datetime import timedelta
from decimal import Decimal

import pytest

from elibrary.models import Payment, PaymentStatus, RequestStatus, SubscriptionPlan, UserSubscription
from elibrary.services.errors import ErrorKind, ServiceError
from elibrary.services.subscription_service import SubscriptionService


def test_request_pay_and_approve_creates_subscription(db, now, plan, make_user, admin):
    user = make_user()

    req = SubscriptionService.request_plan(user.id, plan.id, now)
    assert req.status == RequestStatus.PENDING

    payment = SubscriptionService.pay(req.id, user.id, "card", "  TX-1 ", now)
    assert payment.status == PaymentStatus.PENDING
    assert payment.amount == Decimal("9.90")
    assert payment.payment_reference == "TX-1"
    # paying twice returns the same payment
    assert SubscriptionService.pay(req.id, user.id, "card", None, now).id == payment.id

    result = SubscriptionService.approve(req.id, admin.id, now)

    assert result["subscription_end"] == now + timedelta(days=30)
    assert result["receipt_number"] == f"R-{now.year}-000001"
    paid = db.session.get(Payment, payment.id)
    assert paid.status == PaymentStatus.PAID
    assert paid.paid_at == now
    assert paid.recorded_by_user_id == admin.id
    assert SubscriptionService.my_subscription(user.id, now).end_date == now + timedelta(days=30)


def test_approve_extends_an_active_subscription(db, now, plan, make_user, admin, subscribe):
    user = make_user()
    current = subscribe(user, ends_in=timedelta(days=5))
    req = SubscriptionService.request_plan(user.id, plan.id, now)

    result = SubscriptionService.approve(req.id, admin.id, now)

    assert result["subscription_end"] == now + timedelta(days=35)
    assert db.session.execute(db.select(db.func.count(UserSubscription.id))).scalar_one() == 1
    assert db.session.get(UserSubscription, current.id).end_date == now + timedelta(days=35)


def test_approve_without_payment_records_cash(db, now, plan, make_user, admin):
    user = make_user()
    req = SubscriptionService.request_plan(user.id, plan.id, now)

    result = SubscriptionService.approve(req.id, admin.id, now)

    payment = db.session.get(Payment, result["payment_id"])
    assert payment.method == "cash"
    assert payment.status == PaymentStatus.PAID
    assert payment.amount == Decimal("9.90")


def test_receipt_numbers_increase(now, plan, make_user, admin):
    numbers = []
    for _ in range(2):
        req = SubscriptionService.request_plan(make_user().id, plan.id, now)
        numbers.append(SubscriptionService.approve(req.id, admin.id, now)["receipt_number"])

    assert numbers == [f"R-{now.year}-000001", f"R-{now.year}-000002"]


def test_only_pending_requests_can_be_approved_or_paid(now, plan, make_user, admin):
    user = make_user()
    req = SubscriptionService.request_plan(user.id, plan.id, now)
    SubscriptionService.approve(req.id, admin.id, now)

    with pytest.raises(ServiceError) as exc:
        SubscriptionService.approve(req.id, admin.id, now)
    assert exc.value.kind == ErrorKind.REQUEST_NOT_PENDING

    with pytest.raises(ServiceError) as exc:
        SubscriptionService.pay(req.id, user.id, "card", None, now)
    assert exc.value.kind == ErrorKind.REQUEST_NOT_PENDING


def test_pay_checks_owner_and_method(now, plan, make_user):
    owner, stranger = make_user(), make_user()
    req = SubscriptionService.request_plan(owner.id, plan.id, now)

    with pytest.raises(ServiceError) as exc:
        SubscriptionService.pay(req.id, stranger.id, "card", None, now)
    assert exc.value.kind == ErrorKind.FORBIDDEN

    with pytest.raises(ServiceError) as exc:
        SubscriptionService.pay(req.id, owner.id, "bitcoin", None, now)
    assert exc.value.kind == ErrorKind.VALIDATION_FAILED


def test_reject_marks_request_and_payment(db, now, plan, make_user, admin):
    user = make_user()
    req = SubscriptionService.request_plan(user.id, plan.id, now)
    payment = SubscriptionService.pay(req.id, user.id, "bank_transfer", "IBAN", now)

    SubscriptionService.reject(req.id, admin.id, "No proof of payment", now)

    assert db.session.get(Payment, payment.id).status == PaymentStatus.REJECTED
    assert SubscriptionService.pending_requests() == []
    assert SubscriptionService.my_subscription(user.id, now) is None


def test_inactive_plan_cannot_be_requested(db, now, make_user):
    retired = SubscriptionPlan(name="Old", duration_days=7, price=Decimal("1.00"), is_active=False)
    db.session.add(retired)
    db.session.commit()

    with pytest.raises(ServiceError) as exc:
        SubscriptionService.request_plan(make_user().id, retired.id, now)
    assert exc.value.kind == ErrorKind.PLAN_NOT_FOUND


def test_subscription_http_flow(client, plan, make_user, admin, auth_headers):
    user = make_user()
    headers = auth_headers(user)

    plans = client.get("/subscriptions/plans").get_json()["data"]
    assert plans == [{"id": plan.id, "name": "Monthly", "duration_days": 30, "price": 9.9}]

    res = client.post(f"/subscriptions/request/{plan.id}", headers=headers)
    assert res.status_code == 201
    request_id = res.get_json()["request_id"]

    res = client.post(f"/subscriptions/pay/{request_id}", json={"method": "card"}, headers=headers)
    assert res.get_json()["status"] == "pending"

    assert client.get("/admin/subscriptions/pending", headers=headers).status_code == 403
    pending = client.get("/admin/subscriptions/pending", headers=auth_headers(admin)).get_json()["data"]
    assert [p["id"] for p in pending] == [request_id]
    assert pending[0]["payment_status"] == "pending"

    res = client.post(f"/admin/subscriptions/approve/{request_id}", headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.get_json()["receipt_number"].startswith("R-")

    me = client.get("/subscriptions/me", headers=headers).get_json()["data"]
    assert me["plan"] == "Monthly"
    active = client.get("/admin/subscriptions/active", headers=auth_headers(admin)).get_json()["data"]
    assert [a["username"] for a in active] == [user.username]

    assert client.post("/subscriptions/request/999", headers=headers).status_code == 404
