from elibrary.extensions import db
from elibrary.models.notification import Notification


class NotificationRepo:
    @staticmethod
    def exists(user_id: int, notif_type: str, borrowing_id: int) -> bool:
        return db.session.execute(
            db.select(Notification.id).where(
                Notification.user_id == user_id,
                Notification.type == notif_type,
                Notification.borrowing_id == borrowing_id,
            ).limit(1)
        ).first() is not None

    @staticmethod
    def add(entry: Notification):
        db.session.add(entry)
        return entry

    @staticmethod
    def get_owned(notification_id: int, user_id: int):
        return db.session.execute(
            db.select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        ).scalars().first()

    @staticmethod
    def list_for_user(user_id: int, unread_only: bool = False, limit: int = 50):
        q = db.select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            q = q.where(Notification.read_at.is_(None))
        q = q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        return db.session.execute(q).scalars().all()

    @staticmethod
    def count_for_user(user_id: int, unread_only: bool = True) -> int:
        q = db.select(db.func.count(Notification.id)).where(Notification.user_id == user_id)
        if unread_only:
            q = q.where(Notification.read_at.is_(None))
        return db.session.execute(q).scalar_one()

    @staticmethod
    def list_unread(user_id: int):
        return db.session.execute(
            db.select(Notification).where(
                Notification.user_id == user_id,
                Notification.read_at.is_(None),
            )
        ).scalars().all()

    @staticmethod
    def commit():
        db.session.commit()
