from datetime import datetime

from sqlalchemy import func, or_

from elibrary.extensions import db
from elibrary.models.borrowing import Borrowing
from elibrary.models.review import Review
from elibrary.models.subscription import UserSubscription
from elibrary.models.user import ROLE_ADMIN, User


class UserRepo:
    @staticmethod
    def get_by_username(username: str):
        return db.session.execute(db.select(User).filter_by(username=username)).scalars().first()

    @staticmethod
    def get_by_email(email: str):
        return db.session.execute(db.select(User).filter_by(email=email)).scalars().first()

    @staticmethod
    def get_by_id(user_id: int):
        return db.session.get(User, user_id)

    @staticmethod
    def count_all() -> int:
        return db.session.execute(db.select(db.func.count(User.id))).scalar_one()

    @staticmethod
    def list_members(now: datetime, search=None, status=None, sort_by="borrowings", descending=True, limit=50):
        """
        Non-admin users with their active subscription end and activity counts.
        Rows: (User, subscription_end, borrowings_count, reviews_count)
        """
        active_sub = (
            UserSubscription.user_id == User.id,
            UserSubscription.is_active.is_(True),
            UserSubscription.end_date > now,
        )
        subscription_end = (
            db.select(func.max(UserSubscription.end_date)).where(*active_sub).scalar_subquery()
        )
        borrowings_count = (
            db.select(func.count(Borrowing.id)).where(Borrowing.user_id == User.id).scalar_subquery()
        )
        reviews_count = (
            db.select(func.count(Review.id)).where(Review.user_id == User.id).scalar_subquery()
        )

        q = db.select(
            User,
            subscription_end.label("subscription_end"),
            borrowings_count.label("borrowings_count"),
            reviews_count.label("reviews_count"),
        ).where(User.role != ROLE_ADMIN)

        if search:
            like = f"%{search.lower()}%"
            q = q.where(or_(
                func.lower(User.email).like(like),
                func.lower(User.username).like(like),
                func.lower(User.phone).like(like),
            ))

        has_active = db.select(UserSubscription.id).where(*active_sub).exists()
        if status == "active":
            q = q.where(has_active)
        elif status == "inactive":
            q = q.where(~has_active)

        def _dir(col):
            return col.desc() if descending else col.asc()

        if sort_by == "borrowings":
            order = [_dir(borrowings_count)]
        elif sort_by == "reviews":
            order = [_dir(reviews_count)]
        elif sort_by == "activity":
            order = [_dir(borrowings_count + reviews_count)]
        elif sort_by == "subscription_end":
            # users without an active subscription go last either way
            order = [db.case((subscription_end.is_(None), 1), else_=0), _dir(subscription_end)]
        else:
            order = []

        return db.session.execute(
            q.order_by(*order, User.email.asc()).limit(limit)
        ).all()

    @staticmethod
    def create(user: User):
        db.session.add(user)
        db.session.commit()
        return user
