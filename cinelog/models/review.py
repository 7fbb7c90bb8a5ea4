from . import db, utcnow

SOURCE_MANUAL = "manual"
SOURCE_LETTERBOXD = "letterboxd"


def review_key(user_id, movie_id) -> str:
    """Deterministic review id; at most one review exists per (user, movie)."""
    return f"{user_id}_{movie_id}"


class Review(db.Model):
    __tablename__ = "reviews"

    id = db.Column(db.String(80), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    movie_id = db.Column(db.String(32), db.ForeignKey("movies.id", ondelete="CASCADE"), nullable=False)
    rating = db.Column(db.Integer, nullable=False)  # 1 - 10; 0 only for unrated imports
    review_text = db.Column(db.Text, nullable=False, default="")
    watched_date = db.Column(db.Date, nullable=True)
    is_rewatch = db.Column(db.Boolean, nullable=False, default=False)
    source = db.Column(db.String(20), nullable=False, default=SOURCE_MANUAL)
    letterboxd_url = db.Column(db.String(500), nullable=True)
    letterboxd_review_id = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Relationships
    movie = db.relationship("Movie", back_populates="reviews")
    user = db.relationship("User", back_populates="reviews")

    __table_args__ = (
        db.UniqueConstraint("user_id", "movie_id", name="uq_review_user_movie"),
        db.Index("ix_review_user_letterboxd", "user_id", "letterboxd_review_id"),
    )

    def to_dict(self):
        data = {
            "id": self.id,
            "userId": self.user_id,
            "movieId": self.movie_id,
            "rating": self.rating,
            "reviewText": self.review_text,
            "watchedDate": self.watched_date.isoformat() if self.watched_date else None,
            "isRewatch": self.is_rewatch,
            "source": self.source,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.source == SOURCE_LETTERBOXD:
            data["letterboxdUrl"] = self.letterboxd_url
            data["letterboxdReviewId"] = self.letterboxd_review_id
        return data

    def __repr__(self):
        return f"<Review {self.id} rating={self.rating} source={self.source}>"
