from datetime import datetime, timedelta

from flask import current_app

from elibrary.models.subscription import (
    Payment,
    PaymentMethod,
    PaymentStatus,
    RequestStatus,
    SubscriptionRequest,
    UserSubscription,
)
from elibrary.repositories.subscription_repo import SubscriptionRepo
from elibrary.services.errors import ErrorKind, ServiceError


class SubscriptionService:
    @staticmethod
    def list_plans():
        return SubscriptionRepo.list_plans(active_only=True)

    @staticmethod
    def my_subscription(user_id: int, now: datetime):
        return SubscriptionRepo.latest_active(user_id, now)

    @staticmethod
    def request_plan(user_id: int, plan_id: int, now: datetime) -> SubscriptionRequest:
        plan = SubscriptionRepo.get_plan(plan_id)
        if not plan or not plan.is_active:
            raise ServiceError(ErrorKind.PLAN_NOT_FOUND)

        req = SubscriptionRepo.add(SubscriptionRequest(
            user_id=user_id,
            plan_id=plan.id,
            status=RequestStatus.PENDING,
            requested_at=now,
        ))
        SubscriptionRepo.commit()
        return req

    @staticmethod
    def pay(request_id: int, user_id: int, method: str, reference: str, now: datetime) -> Payment:
        req = SubscriptionRepo.get_request(request_id)
        if req is None:
            raise ServiceError(ErrorKind.REQUEST_NOT_FOUND)
        if req.user_id != user_id:
            raise ServiceError(ErrorKind.FORBIDDEN)
        if req.status != RequestStatus.PENDING:
            raise ServiceError(ErrorKind.REQUEST_NOT_PENDING)

        existing = SubscriptionRepo.payment_for_request(request_id)
        if existing is not None:
            return existing

        method = (method or PaymentMethod.CARD).strip().lower()
        if method not in PaymentMethod.ALL:
            raise ServiceError(ErrorKind.VALIDATION_FAILED, f"Unknown payment method: {method}")

        payment = SubscriptionRepo.add(Payment(
            subscription_request_id=req.id,
            amount=req.plan.price,
            method=method,
            status=PaymentStatus.PENDING,
            payment_reference=(reference or "").strip() or None,
            created_at=now,
        ))
        SubscriptionRepo.commit()
        return payment

    # -----------------------------
    # Admin
    # -----------------------------
    @staticmethod
    def pending_requests():
        return SubscriptionRepo.list_pending_requests()

    @staticmethod
    def active_subscriptions(now: datetime):
        return SubscriptionRepo.list_active(now)

    @staticmethod
    def list_payments(status=None, limit: int = 100):
        if limit is None or limit <= 0 or limit > 500:
            limit = 100

        status = (status or "").strip().lower() or None
        if status is not None and status not in PaymentStatus.ALL:
            raise ServiceError(
                ErrorKind.VALIDATION_FAILED,
                f"Invalid status. Allowed values: {', '.join(PaymentStatus.ALL)}.",
            )
        return SubscriptionRepo.list_payments(status, limit)

    @staticmethod
    def _next_receipt_number(now: datetime) -> str:
        prefix = f"R-{now.year}-"
        seq = SubscriptionRepo.count_receipts_with_prefix(prefix) + 1
        return f"{prefix}{seq:06d}"

    @staticmethod
    def approve(request_id: int, reviewer_id: int, now: datetime) -> dict:
        req = SubscriptionRepo.get_request(request_id)
        if req is None:
            raise ServiceError(ErrorKind.REQUEST_NOT_FOUND)
        if req.status != RequestStatus.PENDING:
            raise ServiceError(ErrorKind.REQUEST_NOT_PENDING)

        try:
            payment = SubscriptionRepo.payment_for_request(request_id)
            if payment is None:
                # approved at the desk without an online payment
                payment = SubscriptionRepo.add(Payment(
                    subscription_request_id=req.id,
                    amount=req.plan.price,
                    method=PaymentMethod.CASH,
                    created_at=now,
                ))
            elif payment.amount is None or payment.amount <= 0:
                payment.amount = req.plan.price

            payment.status = PaymentStatus.PAID
            payment.paid_at = now
            payment.recorded_by_user_id = reviewer_id
            payment.payment_reference = None
            payment.receipt_number = SubscriptionService._next_receipt_number(now)

            req.status = RequestStatus.APPROVED
            req.reviewed_at = now
            req.reviewed_by_user_id = reviewer_id

            SubscriptionRepo.flush()

            active = SubscriptionRepo.latest_active(req.user_id, now)
            duration = timedelta(days=req.plan.duration_days)
            if active is None:
                active = SubscriptionRepo.add(UserSubscription(
                    user_id=req.user_id,
                    plan_id=req.plan_id,
                    start_date=now,
                    end_date=now + duration,
                    is_active=True,
                    payment_id=payment.id,
                ))
            else:
                active.end_date = active.end_date + duration
                active.payment_id = payment.id

            SubscriptionRepo.commit()
        except Exception:
            SubscriptionRepo.rollback()
            current_app.logger.exception(f"[subscriptions] approve failed request=#{request_id}")
            raise

        current_app.logger.info(
            f"[subscriptions] request=#{req.id} approved by user=#{reviewer_id}, ends {active.end_date.isoformat()}"
        )
        return {
            "request_id": req.id,
            "payment_id": payment.id,
            "receipt_number": payment.receipt_number,
            "subscription_end": active.end_date,
        }

    @staticmethod
    def reject(request_id: int, reviewer_id: int, note: str, now: datetime) -> SubscriptionRequest:
        req = SubscriptionRepo.get_request(request_id)
        if req is None:
            raise ServiceError(ErrorKind.REQUEST_NOT_FOUND)

        req.status = RequestStatus.REJECTED
        req.reviewed_at = now
        req.reviewed_by_user_id = reviewer_id
        req.review_note = note

        payment = SubscriptionRepo.payment_for_request(request_id)
        if payment is not None:
            payment.status = PaymentStatus.REJECTED

        SubscriptionRepo.commit()
        return req
