from elibrary.models.user import User
from elibrary.models.book import Book
from elibrary.models.borrowing import Borrowing
from elibrary.models.notification import Notification, NotificationType
from elibrary.models.review import Review
from elibrary.models.subscription import (
    Payment,
    PaymentMethod,
    PaymentStatus,
    RequestStatus,
    SubscriptionPlan,
    SubscriptionRequest,
    UserSubscription,
)

__all__ = [
    "User",
    "Book",
    "Borrowing",
    "Notification",
    "NotificationType",
    "Review",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "RequestStatus",
    "SubscriptionPlan",
    "SubscriptionRequest",
    "UserSubscription",
]
