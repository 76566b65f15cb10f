from enum import Enum


class ErrorKind(str, Enum):
    # borrowing lifecycle
    UNPAID_FINES = "UnpaidFines"
    NO_ACTIVE_SUBSCRIPTION = "NoActiveSubscription"
    HAS_OVERDUE_BOOK = "HasOverdueBook"
    MAX_ACTIVE_BORROWINGS_REACHED = "MaxActiveBorrowingsReached"
    ALREADY_BORROWED = "AlreadyBorrowed"
    BOOK_NOT_FOUND = "BookNotFound"
    NO_COPIES_AVAILABLE = "NoCopiesAvailable"
    SUBSCRIPTION_EXPIRING = "SubscriptionExpiring"
    NOT_FOUND = "NotFound"
    ALREADY_RETURNED = "AlreadyReturned"
    BORROWING_NOT_ALLOWED = "BorrowingNotAllowed"

    # everything else
    PLAN_NOT_FOUND = "PlanNotFound"
    REQUEST_NOT_FOUND = "RequestNotFound"
    REQUEST_NOT_PENDING = "RequestNotPending"
    USER_NOT_FOUND = "UserNotFound"
    FORBIDDEN = "Forbidden"
    VALIDATION_FAILED = "ValidationFailed"
    USERNAME_TAKEN = "UsernameTaken"
    INVALID_CREDENTIALS = "InvalidCredentials"


DEFAULT_MESSAGES = {
    ErrorKind.UNPAID_FINES: "You have unpaid fines. Please settle them before borrowing.",
    ErrorKind.NO_ACTIVE_SUBSCRIPTION: "You have no active subscription. Please subscribe to borrow books.",
    ErrorKind.HAS_OVERDUE_BOOK: "You have an overdue book. Please return it before borrowing another.",
    ErrorKind.MAX_ACTIVE_BORROWINGS_REACHED: "You have reached the maximum number of active borrowings.",
    ErrorKind.ALREADY_BORROWED: "You have already borrowed this book and not returned it.",
    ErrorKind.BOOK_NOT_FOUND: "Book not found.",
    ErrorKind.NO_COPIES_AVAILABLE: "No copies available.",
    ErrorKind.SUBSCRIPTION_EXPIRING: "Your subscription ends too soon to borrow a book.",
    ErrorKind.NOT_FOUND: "Borrowing not found.",
    ErrorKind.ALREADY_RETURNED: "This book has already been returned.",
    ErrorKind.BORROWING_NOT_ALLOWED: "Your account is not allowed to borrow books.",
    ErrorKind.PLAN_NOT_FOUND: "Plan not found.",
    ErrorKind.REQUEST_NOT_FOUND: "Request not found.",
    ErrorKind.REQUEST_NOT_PENDING: "Request is not pending.",
    ErrorKind.USER_NOT_FOUND: "User not found.",
    ErrorKind.FORBIDDEN: "Forbidden.",
    ErrorKind.VALIDATION_FAILED: "Invalid input.",
    ErrorKind.USERNAME_TAKEN: "Username or email is already registered.",
    ErrorKind.INVALID_CREDENTIALS: "Invalid username or password.",
}

_NOT_FOUND_KINDS = {
    ErrorKind.NOT_FOUND,
    ErrorKind.BOOK_NOT_FOUND,
    ErrorKind.PLAN_NOT_FOUND,
    ErrorKind.REQUEST_NOT_FOUND,
    ErrorKind.USER_NOT_FOUND,
}
_FORBIDDEN_KINDS = {ErrorKind.BORROWING_NOT_ALLOWED, ErrorKind.FORBIDDEN}


class ServiceError(ValueError):
    """Expected, user-recoverable rule violation raised by the service layer."""

    def __init__(self, kind: ErrorKind, message: str = None, **details):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        self.details = details
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        if self.kind in _NOT_FOUND_KINDS:
            return 404
        if self.kind in _FORBIDDEN_KINDS:
            return 403
        if self.kind == ErrorKind.INVALID_CREDENTIALS:
            return 401
        return 400
