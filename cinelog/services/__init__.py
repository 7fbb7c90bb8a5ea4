from .cache import init_requests_cache
from .catalog import MovieCatalog, MovieResolver
from .importer import ImportProgress, ImportResult, ImportState, LetterboxdImporter, build_importer
from .letterboxd import LetterboxdFeed, ReviewRecord, feed_url, parse_feed
from .reviews import Duplicate, DuplicateGuard, ReviewStore
from .seeding import CatalogSeeder
from .text import strip_html
from .tmdb import IMAGE_BASE, TMDB_API_BASE, TmdbClient, image_url, to_catalog_movie

__all__ = [
    "init_requests_cache",
    "MovieCatalog",
    "MovieResolver",
    "ImportProgress",
    "ImportResult",
    "ImportState",
    "LetterboxdImporter",
    "LetterboxdFeed",
    "ReviewRecord",
    "feed_url",
    "parse_feed",
    "Duplicate",
    "DuplicateGuard",
    "ReviewStore",
    "CatalogSeeder",
    "strip_html",
    "IMAGE_BASE",
    "TMDB_API_BASE",
    "TmdbClient",
    "image_url",
    "to_catalog_movie",
    "build_importer",
]
