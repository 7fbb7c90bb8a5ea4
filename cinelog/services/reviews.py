import enum
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import utcnow
from ..models.review import SOURCE_MANUAL, Review, review_key

logger = logging.getLogger(__name__)

REVIEW_SORTS = ("recent", "highest", "lowest")


class Duplicate(enum.Enum):
    NONE = "none"
    BY_SOURCE_ID = "by_source_id"
    BY_USER_MOVIE = "by_user_movie"


class ReviewStore:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def get(self, user_id, movie_id) -> Optional[Review]:
        return self.session.get(Review, review_key(user_id, movie_id))

    def exists_by_user_movie(self, user_id, movie_id) -> bool:
        return self.get(user_id, movie_id) is not None

    def exists_by_source_id(self, user_id, letterboxd_review_id: str) -> bool:
        found = (
            self.session.query(Review.id)
            .filter(Review.user_id == user_id, Review.letterboxd_review_id == letterboxd_review_id)
            .first()
        )
        return found is not None

    def save(self, review: Review) -> Review:
        """Full overwrite at the review's deterministic key."""
        review.id = review_key(review.user_id, review.movie_id)
        try:
            review = self.session.merge(review)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return review

    def delete(self, user_id, movie_id) -> bool:
        review = self.get(user_id, movie_id)
        if review is None:
            return False
        self.session.delete(review)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return True

    def for_user(self, user_id) -> List[Review]:
        return (
            self.session.query(Review)
            .filter(Review.user_id == user_id)
            .order_by(Review.created_at.desc())
            .all()
        )

    def for_movie(self, movie_id, sort: str = "recent") -> List[Review]:
        query = self.session.query(Review).filter(Review.movie_id == str(movie_id))
        if sort == "highest":
            query = query.order_by(Review.rating.desc(), Review.created_at.desc())
        elif sort == "lowest":
            query = query.order_by(Review.rating.asc(), Review.created_at.desc())
        else:
            query = query.order_by(Review.created_at.desc())
        return query.all()

    def average_rating(self, movie_id) -> float:
        avg = (
            self.session.query(func.avg(Review.rating))
            .filter(Review.movie_id == str(movie_id))
            .scalar()
        )
        return float(avg) if avg is not None else 0.0

    def save_manual(self, user_id, movie_id, rating: int, review_text: str = "",
                    watched_date: Optional[date] = None, is_rewatch: bool = False) -> Review:
        """
        Create or edit the user's own review. Editing keeps the original
        created_at; the source becomes manual and any import metadata is dropped.
        """
        validate_rating(rating)
        existing = self.get(user_id, movie_id)
        now = utcnow()
        review = Review(
            user_id=user_id,
            movie_id=str(movie_id),
            rating=rating,
            review_text=(review_text or "").strip(),
            watched_date=watched_date,
            is_rewatch=bool(is_rewatch),
            source=SOURCE_MANUAL,
            letterboxd_url=None,
            letterboxd_review_id=None,
            created_at=existing.created_at if existing is not None else now,
            updated_at=now,
        )
        return self.save(review)


def validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError("Rating must be a whole number between 1 and 10")
    if not 1 <= rating <= 10:
        raise ValueError("Rating must be between 1 and 10")
    return rating


class DuplicateGuard:
    """Decides whether an incoming import would duplicate an existing review."""

    def __init__(self, reviews: ReviewStore):
        self.reviews = reviews

    def check(self, user_id, movie_id, letterboxd_review_id: Optional[str] = None) -> Duplicate:
        if letterboxd_review_id and self.reviews.exists_by_source_id(user_id, letterboxd_review_id):
            return Duplicate.BY_SOURCE_ID
        if self.reviews.exists_by_user_movie(user_id, movie_id):
            return Duplicate.BY_USER_MOVIE
        return Duplicate.NONE
