from datetime import datetime

from elibrary.extensions import db
from elibrary.models.subscription import (
    Payment,
    RequestStatus,
    SubscriptionPlan,
    SubscriptionRequest,
    UserSubscription,
)
from elibrary.models.user import User


class SubscriptionRepo:
    @staticmethod
    def latest_active(user_id: int, now: datetime):
        return db.session.execute(
            db.select(UserSubscription)
            .where(
                UserSubscription.user_id == user_id,
                UserSubscription.is_active.is_(True),
                UserSubscription.end_date > now,
            )
            .order_by(UserSubscription.end_date.desc())
        ).scalars().first()

    @staticmethod
    def active_end_date(user_id: int, now: datetime):
        sub = SubscriptionRepo.latest_active(user_id, now)
        return sub.end_date if sub else None

    @staticmethod
    def list_active(now: datetime):
        return db.session.execute(
            db.select(UserSubscription)
            .where(UserSubscription.is_active.is_(True), UserSubscription.end_date > now)
            .order_by(UserSubscription.end_date.desc())
        ).scalars().all()

    @staticmethod
    def count_active(now: datetime) -> int:
        return db.session.execute(
            db.select(db.func.count(UserSubscription.id)).where(
                UserSubscription.is_active.is_(True),
                UserSubscription.end_date > now,
            )
        ).scalar_one()

    @staticmethod
    def list_plans(active_only: bool = True):
        q = db.select(SubscriptionPlan)
        if active_only:
            q = q.where(SubscriptionPlan.is_active.is_(True))
        return db.session.execute(q.order_by(SubscriptionPlan.duration_days.asc())).scalars().all()

    @staticmethod
    def get_plan(plan_id: int):
        return db.session.get(SubscriptionPlan, plan_id)

    @staticmethod
    def get_request(request_id: int):
        return db.session.get(SubscriptionRequest, request_id)

    @staticmethod
    def list_pending_requests():
        return db.session.execute(
            db.select(SubscriptionRequest)
            .where(SubscriptionRequest.status == RequestStatus.PENDING)
            .order_by(SubscriptionRequest.requested_at.asc())
        ).scalars().all()

    @staticmethod
    def payment_for_request(request_id: int):
        return db.session.execute(
            db.select(Payment).where(Payment.subscription_request_id == request_id)
        ).scalars().first()

    @staticmethod
    def list_payments(status=None, limit: int = 100):
        """Rows: (Payment, plan name, requesting User), newest paid/created first."""
        q = (
            db.select(Payment, SubscriptionPlan.name.label("plan"), User)
            .join(SubscriptionRequest, SubscriptionRequest.id == Payment.subscription_request_id)
            .join(SubscriptionPlan, SubscriptionPlan.id == SubscriptionRequest.plan_id)
            .join(User, User.id == SubscriptionRequest.user_id)
        )
        if status:
            q = q.where(Payment.status == status)

        return db.session.execute(
            q.order_by(
                db.func.coalesce(Payment.paid_at, Payment.created_at).desc(),
                Payment.created_at.desc(),
                Payment.id.desc(),
            ).limit(limit)
        ).all()

    @staticmethod
    def count_receipts_with_prefix(prefix: str) -> int:
        return db.session.execute(
            db.select(db.func.count(Payment.id)).where(Payment.receipt_number.like(f"{prefix}%"))
        ).scalar_one()

    @staticmethod
    def add(entity):
        db.session.add(entity)
        return entity

    @staticmethod
    def flush():
        db.session.flush()

    @staticmethod
    def commit():
        db.session.commit()

    @staticmethod
    def rollback():
        db.session.rollback()
