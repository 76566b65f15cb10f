from decimal import Decimal

from elibrary.extensions import db
from elibrary.utils.clock import system_utcnow


class RequestStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus:
    PENDING = "pending"
    PAID = "paid"
    REJECTED = "rejected"

    ALL = (PENDING, PAID, REJECTED)


class PaymentMethod:
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"

    ALL = (CASH, CARD, BANK_TRANSFER)


class SubscriptionPlan(db.Model):
    __tablename__ = "subscription_plans"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    duration_days = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class SubscriptionRequest(db.Model):
    __tablename__ = "subscription_requests"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    plan_id = db.Column(db.Integer, db.ForeignKey("subscription_plans.id"), nullable=False)

    status = db.Column(db.String(20), nullable=False, default=RequestStatus.PENDING)
    requested_at = db.Column(db.DateTime, nullable=False, default=system_utcnow)

    reviewed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    review_note = db.Column(db.String(500), nullable=True)

    plan = db.relationship("SubscriptionPlan")
    user = db.relationship("User", foreign_keys=[user_id])


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    subscription_request_id = db.Column(
        db.Integer, db.ForeignKey("subscription_requests.id"), unique=True, nullable=False
    )

    amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    method = db.Column(db.String(20), nullable=False, default=PaymentMethod.CARD)
    status = db.Column(db.String(20), nullable=False, default=PaymentStatus.PENDING)
    payment_reference = db.Column(db.String(100), nullable=True)

    recorded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=system_utcnow)
    paid_at = db.Column(db.DateTime, nullable=True)

    receipt_number = db.Column(db.String(32), unique=True, nullable=True)

    request = db.relationship("SubscriptionRequest", backref=db.backref("payment", uselist=False))


class UserSubscription(db.Model):
    __tablename__ = "user_subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    plan_id = db.Column(db.Integer, db.ForeignKey("subscription_plans.id"), nullable=False)

    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    payment_id = db.Column(db.Integer, db.ForeignKey("payments.id"), nullable=True)

    plan = db.relationship("SubscriptionPlan")
    user = db.relationship("User", backref="subscriptions")
