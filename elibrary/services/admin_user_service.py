from datetime import datetime, timedelta

from flask import current_app

from elibrary.models.subscription import UserSubscription
from elibrary.repositories.subscription_repo import SubscriptionRepo
from elibrary.repositories.user_repo import UserRepo
from elibrary.services.errors import ErrorKind, ServiceError

SORTS = {"borrowings", "reviews", "subscription_end", "activity"}
DEFAULT_LIMIT = 50
MAX_LIMIT = 500


def _parse_sort(sort: str):
    """'reviews_asc' -> ('reviews', False); unknown -> (None, False)."""
    sort = (sort or "").strip().lower()
    key, _, direction = sort.rpartition("_")
    if key not in SORTS or direction not in ("asc", "desc"):
        return None, False
    return key, direction == "desc"


class AdminUserService:
    @staticmethod
    def list_members(now: datetime, q=None, status=None, sort="borrowings_desc", limit=DEFAULT_LIMIT):
        if limit is None or limit <= 0 or limit > MAX_LIMIT:
            limit = DEFAULT_LIMIT

        sort_by, descending = _parse_sort(sort)
        return UserRepo.list_members(
            now,
            search=(q or "").strip() or None,
            status=(status or "all").strip().lower(),
            sort_by=sort_by,
            descending=descending,
            limit=limit,
        )

    @staticmethod
    def grant_subscription(user_id: int, plan_id, now: datetime) -> UserSubscription:
        try:
            plan_id = int(plan_id)
        except (TypeError, ValueError):
            plan_id = 0
        if plan_id <= 0:
            raise ServiceError(ErrorKind.VALIDATION_FAILED, "Invalid plan_id.")

        if UserRepo.get_by_id(user_id) is None:
            raise ServiceError(ErrorKind.USER_NOT_FOUND)

        plan = SubscriptionRepo.get_plan(plan_id)
        if plan is None or not plan.is_active:
            raise ServiceError(ErrorKind.PLAN_NOT_FOUND)

        duration = timedelta(days=plan.duration_days)
        try:
            sub = SubscriptionRepo.latest_active(user_id, now)
            if sub is None:
                sub = SubscriptionRepo.add(UserSubscription(
                    user_id=user_id,
                    plan_id=plan.id,
                    start_date=now,
                    end_date=now + duration,
                    is_active=True,
                    payment_id=None,
                ))
            else:
                sub.end_date = sub.end_date + duration
                sub.plan_id = plan.id

            SubscriptionRepo.commit()
        except Exception:
            SubscriptionRepo.rollback()
            current_app.logger.exception(f"[subscriptions] grant failed user=#{user_id} plan=#{plan_id}")
            raise

        current_app.logger.info(
            f"[subscriptions] granted plan=#{plan.id} to user=#{user_id}, ends {sub.end_date.isoformat()}"
        )
        return sub
