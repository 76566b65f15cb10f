from datetime import datetime

from elibrary.models.review import Review
from elibrary.repositories.book_repo import BookRepo
from elibrary.repositories.review_repo import ReviewRepo
from elibrary.services.errors import ErrorKind, ServiceError


class ReviewService:
    @staticmethod
    def _require_book(book_id: int):
        if BookRepo.get(book_id) is None:
            raise ServiceError(ErrorKind.BOOK_NOT_FOUND)

    @staticmethod
    def list_for_book(book_id: int):
        ReviewService._require_book(book_id)
        return ReviewRepo.list_for_book(book_id)

    @staticmethod
    def upsert(book_id: int, user_id: int, rating, comment, now: datetime, is_admin: bool = False) -> Review:
        ReviewService._require_book(book_id)
        if is_admin:
            raise ServiceError(ErrorKind.FORBIDDEN, "Administrators cannot review books.")

        try:
            rating = int(rating)
        except (TypeError, ValueError):
            raise ServiceError(ErrorKind.VALIDATION_FAILED, "Rating must be between 1 and 5.")
        if rating < 1 or rating > 5:
            raise ServiceError(ErrorKind.VALIDATION_FAILED, "Rating must be between 1 and 5.")

        comment = (comment or "").strip()
        if len(comment) > 500:
            raise ServiceError(ErrorKind.VALIDATION_FAILED, "Comment max length is 500.")

        review = ReviewRepo.get_for_user(book_id, user_id)
        if review is None:
            return ReviewRepo.add(Review(
                book_id=book_id,
                user_id=user_id,
                rating=rating,
                comment=comment,
                created_at=now,
            ))

        review.rating = rating
        review.comment = comment
        review.updated_at = now
        ReviewRepo.update()
        return review

    @staticmethod
    def delete(book_id: int, review_id: int, user_id: int, is_admin: bool = False):
        review = ReviewRepo.get_in_book(review_id, book_id)
        if review is None:
            raise ServiceError(ErrorKind.NOT_FOUND, "Review not found.")
        if not is_admin and review.user_id != user_id:
            raise ServiceError(ErrorKind.FORBIDDEN)
        ReviewRepo.delete(review)
