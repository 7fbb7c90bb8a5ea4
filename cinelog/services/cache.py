import requests_cache
from requests_cache import DO_NOT_CACHE


def init_requests_cache(app):
    """
    Install a global requests-cache for outbound TMDB calls (24h by default).
    Everything else, the Letterboxd feed and its relay included, bypasses the cache.
    """
    if not app.config.get("HTTP_CACHE_ENABLED", True):
        return
    tmdb_host = app.config.get("TMDB_API_BASE", "https://api.themoviedb.org/3").split("://", 1)[-1]
    requests_cache.install_cache(
        app.config.get("HTTP_CACHE_NAME", "http_cache"),
        expire_after=DO_NOT_CACHE,
        urls_expire_after={
            f"{tmdb_host}/*": app.config.get("HTTP_CACHE_EXPIRE", 86400),
            "*": DO_NOT_CACHE,
        },
    )
