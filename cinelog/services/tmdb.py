import logging
from typing import Any, Dict, List, Optional

import requests
from flask import current_app

from ..errors import TmdbError
from ..models.movie import Movie

logger = logging.getLogger(__name__)

TMDB_API_BASE = "https://api.themoviedb.org/3"
IMAGE_BASE = "https://image.tmdb.org/t/p"


def image_url(path: Optional[str], size: str = "w342") -> Optional[str]:
    if not path:
        return None
    return f"{IMAGE_BASE}/{size}{path}"


class TmdbClient:
    """
    Thin TMDB v3 client. A bearer token is preferred when configured; otherwise
    the api_key query parameter is sent.
    """

    def __init__(self, api_key: str = "", bearer_token: str = "", base_url: str = TMDB_API_BASE,
                 timeout: Optional[float] = None):
        self.api_key = api_key
        self.bearer_token = bearer_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, config=None) -> "TmdbClient":
        config = config if config is not None else current_app.config
        return cls(
            api_key=config.get("TMDB_API_KEY", ""),
            bearer_token=config.get("TMDB_BEARER_TOKEN", ""),
            base_url=config.get("TMDB_API_BASE", TMDB_API_BASE),
            timeout=config.get("TMDB_TIMEOUT"),
        )

    def _auth_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        return headers

    def _api_key_param(self) -> Dict[str, str]:
        if self.bearer_token or not self.api_key:
            return {}
        return {"api_key": self.api_key}

    def _get(self, path: str, params: Dict[str, Any]) -> requests.Response:
        if not self.bearer_token and not self.api_key:
            raise TmdbError("TMDB API key not configured")
        url = f"{self.base_url}{path}"
        try:
            return requests.get(
                url,
                headers=self._auth_headers(),
                params={**params, **self._api_key_param()},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TmdbError(f"TMDB request failed: {exc}") from exc

    def movie_details(self, tmdb_id: int) -> Optional[Dict[str, Any]]:
        """
        Full movie record with credits appended, or None when TMDB reports 404.
        Any other non-success status raises TmdbError.
        """
        resp = self._get(f"/movie/{tmdb_id}", {"append_to_response": "credits"})
        if resp.status_code == 404:
            logger.warning("Movie with TMDB ID %s not found", tmdb_id)
            return None
        if not resp.ok:
            raise TmdbError(f"TMDB API error: {resp.status_code} {resp.reason}", status=resp.status_code)
        return resp.json() or {}

    def movie_list(self, path: str, page: int = 1, **params) -> Dict[str, Any]:
        """One page of a list endpoint such as /movie/popular or /trending/movie/week."""
        resp = self._get(path, {**params, "page": page})
        if not resp.ok:
            raise TmdbError(f"TMDB API error: {resp.status_code} {resp.reason}", status=resp.status_code)
        return resp.json() or {}


def _director(credits: Dict[str, Any]) -> Optional[str]:
    crew = (credits.get("crew") or []) if isinstance(credits, dict) else []
    for person in crew:
        if isinstance(person, dict) and person.get("job") == "Director" and person.get("name"):
            return person["name"]
    return None


def _cast(credits: Dict[str, Any], limit: int) -> List[Dict[str, Any]]:
    cast = (credits.get("cast") or []) if isinstance(credits, dict) else []
    return [
        {
            "id": actor.get("id"),
            "name": actor.get("name"),
            "character": actor.get("character"),
            "profilePath": actor.get("profile_path"),
            "order": actor.get("order"),
        }
        for actor in cast[:limit]
        if isinstance(actor, dict)
    ]


def to_catalog_movie(data: Dict[str, Any], cast_limit: int = 20) -> Movie:
    """Convert a TMDB movie payload (with credits appended) into a catalog entry."""
    credits = data.get("credits") or {}
    tmdb_id = int(data["id"])
    return Movie(
        id=str(tmdb_id),
        tmdb_id=tmdb_id,
        title=data.get("title") or data.get("original_title") or "",
        original_title=data.get("original_title"),
        overview=data.get("overview"),
        tagline=data.get("tagline"),
        poster_path=data.get("poster_path"),
        backdrop_path=data.get("backdrop_path"),
        release_date=data.get("release_date") or None,
        runtime=data.get("runtime"),
        genres=[g["name"] for g in data.get("genres") or [] if isinstance(g, dict) and g.get("name")],
        vote_average=data.get("vote_average"),
        vote_count=data.get("vote_count"),
        popularity=data.get("popularity"),
        adult=bool(data.get("adult", False)),
        original_language=data.get("original_language"),
        status=data.get("status"),
        budget=data.get("budget"),
        revenue=data.get("revenue"),
        imdb_id=data.get("imdb_id"),
        director=_director(credits),
        cast=_cast(credits, cast_limit),
    )
