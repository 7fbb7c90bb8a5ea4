from . import db, utcnow


class Movie(db.Model):
    """A cached TMDB movie. The primary key is the TMDB id rendered as a string."""

    __tablename__ = "movies"

    id = db.Column(db.String(32), primary_key=True)
    tmdb_id = db.Column(db.Integer, unique=True, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    original_title = db.Column(db.String(255))
    overview = db.Column(db.Text)
    tagline = db.Column(db.String(500))
    poster_path = db.Column(db.String(255))
    backdrop_path = db.Column(db.String(255))
    release_date = db.Column(db.String(10))  # YYYY-MM-DD as TMDB reports it
    runtime = db.Column(db.Integer)
    genres = db.Column(db.JSON, default=list)
    vote_average = db.Column(db.Float)
    vote_count = db.Column(db.Integer)
    popularity = db.Column(db.Float)
    adult = db.Column(db.Boolean, default=False)
    original_language = db.Column(db.String(10))
    status = db.Column(db.String(50))
    budget = db.Column(db.BigInteger)
    revenue = db.Column(db.BigInteger)
    imdb_id = db.Column(db.String(20))
    director = db.Column(db.String(255))
    cast = db.Column(db.JSON, default=list)
    cached_at = db.Column(db.DateTime, default=utcnow)

    reviews = db.relationship("Review", back_populates="movie", cascade="all, delete-orphan")

    @property
    def year(self):
        if self.release_date and len(self.release_date) >= 4:
            try:
                return int(self.release_date[:4])
            except ValueError:
                return None
        return None

    def to_summary(self):
        return {
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "posterPath": self.poster_path,
            "releaseDate": self.release_date,
            "voteAverage": self.vote_average,
            "genres": self.genres or [],
        }

    def to_dict(self):
        data = self.to_summary()
        data.update(
            {
                "tmdbId": self.tmdb_id,
                "originalTitle": self.original_title,
                "overview": self.overview,
                "tagline": self.tagline,
                "backdropPath": self.backdrop_path,
                "runtime": self.runtime,
                "voteCount": self.vote_count,
                "popularity": self.popularity,
                "adult": self.adult,
                "originalLanguage": self.original_language,
                "status": self.status,
                "budget": self.budget,
                "revenue": self.revenue,
                "imdbId": self.imdb_id,
                "director": self.director,
                "cast": self.cast or [],
            }
        )
        return data

    def __repr__(self):
        return f"<Movie {self.title} ({self.year})>"
