import os
from datetime import timedelta

from dotenv import load_dotenv


def _normalize_db_url(url: str) -> str:
    """
    Normalize postgres:// to postgresql+psycopg2:// for SQLAlchemy.
    """
    if not url:
        return url
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def _optional_float(value):
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError:
        return None


class Config:
    # Load .env if present
    load_dotenv()

    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-secret-key-change-me")
    SESSION_COOKIE_NAME = "cinelog_session"
    PERMANENT_SESSION_LIFETIME = timedelta(days=30)

    # Database config
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///cinelog.db")
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(DATABASE_URL)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # TMDB
    TMDB_API_KEY = os.getenv("TMDB_API_KEY", "")
    TMDB_BEARER_TOKEN = os.getenv("TMDB_BEARER_TOKEN", "")
    TMDB_API_BASE = os.getenv("TMDB_API_BASE", "https://api.themoviedb.org/3")
    # None leaves the transport default in place
    TMDB_TIMEOUT = _optional_float(os.getenv("TMDB_TIMEOUT"))

    # Letterboxd import
    LETTERBOXD_FEED_BASE = os.getenv("LETTERBOXD_FEED_BASE", "https://letterboxd.com")
    # Empty string fetches the feed directly instead of through the relay
    LETTERBOXD_RELAY_URL = os.getenv("LETTERBOXD_RELAY_URL", "https://api.allorigins.win/raw")
    IMPORT_DELAY_SECONDS = float(os.getenv("IMPORT_DELAY_SECONDS", "0.3"))
    RESOLVER_CAST_LIMIT = 20
    SEED_CAST_LIMIT = 15

    # Outbound HTTP cache (TMDB only)
    HTTP_CACHE_ENABLED = True
    HTTP_CACHE_NAME = os.getenv("HTTP_CACHE_NAME", "http_cache")
    HTTP_CACHE_EXPIRE = 86400

    PROFILE_LOOKUP_WORKERS = 8
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # CSRF - enabled for forms; JSON endpoints are exempted per view
    WTF_CSRF_TIME_LIMIT = None


class DevelopmentConfig(Config):
    DEBUG = True
    ENV = "development"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    DEBUG = False
    ENV = "production"


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    HTTP_CACHE_ENABLED = False
    IMPORT_DELAY_SECONDS = 0
    TMDB_API_KEY = "test-key"
    TMDB_BEARER_TOKEN = ""
    # in-memory SQLite shares one connection; keep lookups serial
    PROFILE_LOOKUP_WORKERS = 1
    LOG_LEVEL = "WARNING"


def get_config():
    env = os.getenv("FLASK_ENV", "development").lower()
    if env == "production":
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
