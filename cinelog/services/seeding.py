import logging
import time
from typing import Callable, Dict, Iterable, Tuple

import requests
from sqlalchemy.exc import SQLAlchemyError

from ..errors import TmdbError
from .catalog import MovieCatalog
from .tmdb import TmdbClient, to_catalog_movie

logger = logging.getLogger(__name__)

# (label, endpoint, extra params, max pages)
DEFAULT_ENDPOINTS: Tuple[Tuple[str, str, Dict[str, str], int], ...] = (
    ("Trending Movies", "/trending/movie/week", {}, 2),
    ("Now Playing", "/movie/now_playing", {"region": "US"}, 2),
    ("Upcoming", "/movie/upcoming", {"region": "US"}, 2),
    ("Popular", "/movie/popular", {}, 5),
    ("Top Rated", "/movie/top_rated", {}, 3),
)


class CatalogSeeder:
    """
    Fills the catalog from TMDB list endpoints. Movies already cached are left
    alone; a failing page ends that endpoint, a failing movie is just counted.
    """

    def __init__(self, tmdb: TmdbClient, catalog: MovieCatalog, cast_limit: int = 15,
                 delay: float = 0.3, sleep: Callable[[float], None] = time.sleep):
        self.tmdb = tmdb
        self.catalog = catalog
        self.cast_limit = cast_limit
        self.delay = delay
        self.sleep = sleep

    def cache_movie(self, tmdb_id: int) -> bool:
        if self.catalog.exists(tmdb_id):
            logger.debug("Movie %s already cached, skipping", tmdb_id)
            return False
        try:
            data = self.tmdb.movie_details(tmdb_id)
            self.sleep(self.delay)
            if not data:
                logger.info("Movie %s not found (404)", tmdb_id)
                return False
            movie = to_catalog_movie(data, cast_limit=self.cast_limit)
            self.catalog.add(movie)
        except (TmdbError, requests.RequestException, SQLAlchemyError) as exc:
            logger.error("Error caching movie %s: %s", tmdb_id, exc)
            return False
        logger.info("Cached: %s (%s)", movie.title, movie.year or "N/A")
        return True

    def seed_endpoint(self, name: str, path: str, params: Dict[str, str] = None, max_pages: int = 5) -> int:
        logger.info("Seeding %s...", name)
        cached = 0
        for page in range(1, max_pages + 1):
            try:
                data = self.tmdb.movie_list(path, page=page, **(params or {}))
            except TmdbError as exc:
                logger.error("Error on page %d of %s: %s", page, name, exc)
                break
            self.sleep(self.delay)

            results = data.get("results") or []
            if not results:
                logger.info("No results on page %d", page)
                break
            logger.info("Page %d/%d: processing %d movies", page, max_pages, len(results))
            for item in results:
                if item.get("id") and self.cache_movie(int(item["id"])):
                    cached += 1
            if page >= (data.get("total_pages") or 0):
                break
        logger.info("Completed %s: cached %d new movies", name, cached)
        return cached

    def seed(self, endpoints: Iterable = DEFAULT_ENDPOINTS) -> int:
        return sum(self.seed_endpoint(name, path, params, pages) for name, path, params, pages in endpoints)
