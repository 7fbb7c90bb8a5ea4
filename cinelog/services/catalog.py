import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from ..errors import MovieNotResolvable
from ..extensions import db
from ..models.movie import Movie
from .tmdb import TmdbClient, to_catalog_movie

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "popularity": (Movie.popularity.desc(),),
    "rating": (Movie.vote_average.desc(), Movie.vote_count.desc()),
    "releaseDate": (Movie.release_date.desc(),),
    "alphabetical": (Movie.title.asc(),),
}


class MovieCatalog:
    """Point reads and writes against the cached movie catalog."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def get(self, movie_id) -> Optional[Movie]:
        return self.session.get(Movie, str(movie_id))

    def exists(self, movie_id) -> bool:
        return self.get(movie_id) is not None

    def add(self, movie: Movie) -> Movie:
        """Insert a new entry. Existing entries are never overwritten."""
        self.session.add(movie)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return movie

    def browse(self, page: int = 1, per_page: int = 24, genres: List[str] = None,
               year_from: int = None, year_to: int = None, min_rating: float = None,
               sort: str = "popularity"):
        """
        Filter and page the catalog. Returns (movies, total). Paging happens in SQL
        unless a genre filter is given; genres live in a JSON column and are
        matched in Python.
        """
        query = self.session.query(Movie)
        if year_from:
            query = query.filter(Movie.release_date >= f"{year_from:04d}")
        if year_to:
            query = query.filter(Movie.release_date < f"{year_to + 1:04d}")
        if min_rating is not None:
            query = query.filter(Movie.vote_average >= min_rating)
        query = query.order_by(*SORT_COLUMNS.get(sort, SORT_COLUMNS["popularity"]), Movie.id)

        start = (page - 1) * per_page
        if not genres:
            return query.offset(start).limit(per_page).all(), query.order_by(None).count()

        movies = [m for m in query.all() if any(g in (m.genres or []) for g in genres)]
        return movies[start:start + per_page], len(movies)

    def search(self, text: str, limit: int = 20) -> List[Movie]:
        text = (text or "").strip()
        if not text:
            return []
        return (
            self.session.query(Movie).filter(
                or_(Movie.title.ilike(f"%{text}%"), Movie.original_title.ilike(f"%{text}%"))
            )
            .order_by(Movie.popularity.desc(), Movie.id)
            .limit(limit)
            .all()
        )


class MovieResolver:
    """Makes sure a catalog entry exists, materializing it from TMDB on demand."""

    def __init__(self, catalog: MovieCatalog, tmdb: TmdbClient, cast_limit: int = 20):
        self.catalog = catalog
        self.tmdb = tmdb
        self.cast_limit = cast_limit

    def ensure(self, movie_id: str, tmdb_id: int, title: str = "", year: str = "") -> Movie:
        existing = self.catalog.get(movie_id)
        if existing is not None:
            return existing

        logger.info("Fetching movie from TMDB: %s (%s)", title, tmdb_id)
        data = self.tmdb.movie_details(tmdb_id)
        if not data:
            raise MovieNotResolvable(f"Movie not found on TMDB: {title} ({year})")

        try:
            movie = to_catalog_movie(data, cast_limit=self.cast_limit)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.error("Unusable TMDB payload for %s (%s): %s", title, tmdb_id, exc)
            raise MovieNotResolvable(f"Invalid TMDB data for movie: {title} ({year})") from exc
        movie.id = str(movie_id)
        try:
            self.catalog.add(movie)
        except SQLAlchemyError as exc:
            logger.error("Error storing movie %s: %s", title, exc)
            raise MovieNotResolvable(f"Failed to store movie: {title} ({year})") from exc
        logger.info("Successfully added movie: %s", movie.title)
        return movie
