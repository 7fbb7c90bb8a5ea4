"""
Letterboxd review import.

A run fetches the member's RSS feed, parses it into ReviewRecords, and then
walks the records strictly in feed order. Each record either becomes a review
(imported), is recognised as already present (skipped), or cannot be brought
in because its movie could not be resolved or stored (failed). Only a failure
to fetch or parse the feed ends a run early.
"""
import enum
import logging
import time
from dataclasses import asdict, dataclass, field, replace
from typing import Callable, List, Optional

import requests
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import CinelogError
from ..models import utcnow
from ..models.review import SOURCE_LETTERBOXD, Review
from .catalog import MovieCatalog, MovieResolver
from .letterboxd import LetterboxdFeed, ReviewRecord, parse_feed
from .reviews import Duplicate, DuplicateGuard, ReviewStore
from .tmdb import TmdbClient

logger = logging.getLogger(__name__)

SKIP_REASONS = {
    Duplicate.BY_SOURCE_ID: "Already imported",
    Duplicate.BY_USER_MOVIE: "Review already exists for this movie",
}


class ImportState(enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    IMPORTING = "importing"
    COMPLETE = "complete"
    FAILED = "failed"


class Outcome(enum.Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ImportProgress:
    total: int = 0
    processed: int = 0
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    current_movie: Optional[str] = None

    def as_dict(self):
        data = asdict(self)
        data["currentMovie"] = data.pop("current_movie")
        return data


@dataclass
class ImportResult:
    success: bool = False
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def as_dict(self):
        return asdict(self)


ProgressCallback = Callable[[ImportProgress], None]


class LetterboxdImporter:
    def __init__(self, feed: LetterboxdFeed, resolver: MovieResolver, reviews: ReviewStore,
                 guard: Optional[DuplicateGuard] = None, delay: float = 0.3,
                 sleep: Callable[[float], None] = time.sleep):
        self.feed = feed
        self.resolver = resolver
        self.reviews = reviews
        self.guard = guard if guard is not None else DuplicateGuard(reviews)
        self.delay = delay
        self.sleep = sleep
        self.state = ImportState.IDLE

    def _transition(self, state: ImportState):
        logger.debug("Import state %s -> %s", self.state.value, state.value)
        self.state = state

    def run(self, user_id, handle: str, on_progress: Optional[ProgressCallback] = None) -> ImportResult:
        result = ImportResult()

        try:
            self._transition(ImportState.FETCHING)
            xml_text = self.feed.fetch(handle)
            self._transition(ImportState.PARSING)
            records = parse_feed(xml_text)
        except CinelogError as exc:
            self._transition(ImportState.FAILED)
            logger.error("Letterboxd import for user %s aborted: %s", user_id, exc)
            result.errors.append(str(exc) or "Failed to fetch or parse RSS feed")
            return result

        self._transition(ImportState.IMPORTING)
        progress = ImportProgress(total=len(records))
        if on_progress:
            on_progress(replace(progress))

        for record in records:
            progress.current_movie = record.label
            outcome, reason = self._import_one(user_id, record)

            if outcome is Outcome.IMPORTED:
                progress.imported += 1
            elif outcome is Outcome.SKIPPED:
                progress.skipped += 1
                logger.debug("Skipped %s: %s", record.label, reason)
            else:
                progress.failed += 1
                result.errors.append(f"{record.film_title}: {reason}")
            progress.processed += 1

            if on_progress:
                on_progress(replace(progress))

            # fixed pause after every record, skipped ones included
            self.sleep(self.delay)

        result.success = True
        result.imported = progress.imported
        result.skipped = progress.skipped
        result.failed = progress.failed
        self._transition(ImportState.COMPLETE)
        logger.info(
            "Letterboxd import for user %s finished: %d imported, %d skipped, %d failed",
            user_id, result.imported, result.skipped, result.failed,
        )
        return result

    def _import_one(self, user_id, record: ReviewRecord):
        movie_id = str(record.tmdb_id)
        try:
            self.resolver.ensure(movie_id, record.tmdb_id, record.film_title, record.film_year)

            duplicate = self.guard.check(user_id, movie_id, record.letterboxd_review_id)
            if duplicate is not Duplicate.NONE:
                return Outcome.SKIPPED, SKIP_REASONS[duplicate]

            now = utcnow()
            self.reviews.save(
                Review(
                    user_id=user_id,
                    movie_id=movie_id,
                    rating=record.rating,
                    review_text=record.review_text,
                    watched_date=record.watched_date,
                    is_rewatch=record.is_rewatch,
                    source=SOURCE_LETTERBOXD,
                    letterboxd_url=record.letterboxd_url,
                    letterboxd_review_id=record.letterboxd_review_id,
                    created_at=record.published_at() or now,
                    updated_at=now,
                )
            )
        except (CinelogError, requests.RequestException, SQLAlchemyError) as exc:
            logger.warning("Failed to import %s: %s", record.label, exc)
            return Outcome.FAILED, str(exc) or "Unknown error"
        return Outcome.IMPORTED, None


def build_importer(config=None) -> LetterboxdImporter:
    """Wire an importer against the app database and the configured TMDB and feed endpoints."""
    config = config if config is not None else current_app.config
    reviews = ReviewStore()
    resolver = MovieResolver(
        MovieCatalog(), TmdbClient.from_config(config), cast_limit=config.get("RESOLVER_CAST_LIMIT", 20)
    )
    return LetterboxdImporter(
        LetterboxdFeed.from_config(config),
        resolver,
        reviews,
        delay=config.get("IMPORT_DELAY_SECONDS", 0.3),
    )
