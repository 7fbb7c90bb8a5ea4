import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional
from urllib.parse import quote

import requests
from flask import current_app

from ..errors import FeedParseError, FeedUnavailable
from .text import strip_html

logger = logging.getLogger(__name__)

LETTERBOXD_BASE = "https://letterboxd.com"
RELAY_URL = "https://api.allorigins.win/raw"

# Namespaces used in Letterboxd RSS
LETTERBOXD_NS = "https://letterboxd.com"
TMDB_NS = "https://themoviedb.org"

FEED_ACCEPT = "application/rss+xml, application/xml, text/xml"


def feed_url(handle: str, base: str = LETTERBOXD_BASE) -> str:
    return f"{base.rstrip('/')}/{handle}/rss/"


@dataclass(frozen=True)
class ReviewRecord:
    """One review entry from a Letterboxd feed, before import."""

    tmdb_id: int
    film_title: str
    film_year: str
    rating: int  # 1 - 10, 0 when the entry carries no rating
    review_text: str
    watched_date: Optional[date]
    is_rewatch: bool
    letterboxd_url: str
    letterboxd_review_id: str
    published_date: str

    @property
    def label(self) -> str:
        return f"{self.film_title} ({self.film_year})"

    def published_at(self) -> Optional[datetime]:
        """The RFC 822 pubDate as naive UTC, or None if it does not parse."""
        if not self.published_date:
            return None
        try:
            parsed = parsedate_to_datetime(self.published_date)
        except (TypeError, ValueError):
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed


class LetterboxdFeed:
    """Fetches a member's public RSS feed, through a relay unless one is disabled."""

    def __init__(self, base_url: str = LETTERBOXD_BASE, relay_url: Optional[str] = RELAY_URL,
                 timeout: Optional[float] = None):
        self.base_url = base_url
        self.relay_url = relay_url
        self.timeout = timeout

    @classmethod
    def from_config(cls, config=None) -> "LetterboxdFeed":
        config = config if config is not None else current_app.config
        return cls(
            base_url=config.get("LETTERBOXD_FEED_BASE", LETTERBOXD_BASE),
            relay_url=config.get("LETTERBOXD_RELAY_URL", RELAY_URL),
        )

    def request_url(self, handle: str) -> str:
        url = feed_url(handle, self.base_url)
        if not self.relay_url:
            return url
        return f"{self.relay_url}?url={quote(url, safe='')}"

    def fetch(self, handle: str) -> str:
        handle = (handle or "").strip()
        if not handle:
            raise FeedUnavailable("No Letterboxd username configured")
        url = self.request_url(handle)
        logger.info("Fetching Letterboxd feed for %s", handle)
        try:
            resp = requests.get(url, headers={"Accept": FEED_ACCEPT}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FeedUnavailable(f"Failed to fetch RSS feed: {exc}") from exc
        if not resp.ok:
            raise FeedUnavailable(
                f"Failed to fetch RSS feed: {resp.status_code} {resp.reason}", status=resp.status_code
            )
        return resp.text


def _text(item: ET.Element, tag: str, namespace: Optional[str] = None) -> Optional[str]:
    name = f"{{{namespace}}}{tag}" if namespace else tag
    element = item.find(name)
    if element is None:
        return None
    text = "".join(element.itertext()).strip()
    return text or None


def _rating(value: Optional[str]) -> int:
    """Letterboxd half stars (0.5 - 5.0) doubled onto the 1 - 10 scale."""
    if not value:
        return 0
    try:
        stars = float(value)
    except ValueError:
        return 0
    if not math.isfinite(stars) or stars < 0 or stars > 5:
        return 0
    return int(round(stars * 2))


def _watched_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.warning("Failed to parse watched date: %s", value)
        return None


def _record(item: ET.Element) -> Optional[ReviewRecord]:
    tmdb_text = _text(item, "movieId", TMDB_NS)
    if not tmdb_text:
        logger.warning("Skipping review without TMDB ID")
        return None
    try:
        tmdb_id = int(tmdb_text)
    except ValueError:
        logger.warning("Skipping review with invalid TMDB ID: %s", tmdb_text)
        return None
    if tmdb_id <= 0:
        logger.warning("Skipping review with invalid TMDB ID: %s", tmdb_text)
        return None

    review_id = _text(item, "guid")
    if not review_id:
        logger.warning("Skipping review of TMDB ID %s without a guid", tmdb_id)
        return None

    description = _text(item, "description")
    rewatch = _text(item, "rewatch", LETTERBOXD_NS)
    return ReviewRecord(
        tmdb_id=tmdb_id,
        film_title=_text(item, "filmTitle", LETTERBOXD_NS) or "Unknown",
        film_year=_text(item, "filmYear", LETTERBOXD_NS) or "",
        rating=_rating(_text(item, "memberRating", LETTERBOXD_NS)),
        review_text=strip_html(description) if description else "",
        watched_date=_watched_date(_text(item, "watchedDate", LETTERBOXD_NS)),
        is_rewatch=(rewatch or "").lower() == "yes",
        letterboxd_url=_text(item, "link") or "",
        letterboxd_review_id=review_id,
        published_date=_text(item, "pubDate") or "",
    )


def parse_feed(xml_text: str) -> List[ReviewRecord]:
    """
    Parse a Letterboxd RSS document into review records, in feed order.

    Entries without a usable TMDB id or guid are dropped with a warning. A
    document that is not well-formed RSS raises FeedParseError.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise FeedParseError(f"Failed to parse XML: {exc}") from exc
    if root.tag != "rss":
        raise FeedParseError(f"Failed to parse XML: expected <rss> document, got <{root.tag}>")

    records = []
    for item in root.iter("item"):
        record = _record(item)
        if record is not None:
            records.append(record)
    return records
