import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import csrf, db
from ..models.settings import UserSettings
from ..services import tmdb
from ..services.catalog import MovieCatalog
from ..services.importer import build_importer
from ..services.reviews import ReviewStore

logger = logging.getLogger(__name__)

reviews_bp = Blueprint("reviews", __name__)


@reviews_bp.get("/api/reviews")
@login_required
def my_reviews():
    """The current user's reviews, newest first, each with a movie summary."""
    catalog = MovieCatalog()
    items = []
    for review in ReviewStore().for_user(current_user.id):
        movie = catalog.get(review.movie_id)
        if movie is None:
            continue
        data = review.to_dict()
        data["movie"] = {
            "id": movie.id,
            "title": movie.title or "Untitled",
            "posterPath": movie.poster_path or "",
            "posterUrl": tmdb.image_url(movie.poster_path, "w185"),
            "releaseDate": movie.release_date or "",
        }
        items.append(data)
    return jsonify({"reviews": items, "count": len(items)})


@reviews_bp.post("/api/import/letterboxd")
@login_required
@csrf.exempt
def import_letterboxd():
    """
    Import the current user's Letterboxd reviews. The username comes from the
    request body or, failing that, from the user's settings. Progress snapshots
    are returned alongside the result, one per processed review.
    """
    data = request.get_json(silent=True) or {}
    settings = UserSettings.for_user(current_user)
    handle = (data.get("username") or settings.letterboxd_username or "").strip()
    if not handle:
        return jsonify({"ok": False, "error": "No Letterboxd username configured"}), 400

    progress_log = []

    def on_progress(progress):
        progress_log.append(progress.as_dict())
        logger.info(
            "Letterboxd import %d/%d for user %s: %s",
            progress.processed, progress.total, current_user.id, progress.current_movie or "-",
        )

    result = build_importer().run(current_user.id, handle, on_progress)
    if not result.success:
        return jsonify({"ok": False, "error": result.errors[0], "result": result.as_dict()}), 502

    settings.letterboxd_username = handle
    settings.record_import(result.imported)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Error updating import stats for user %s: %s", current_user.id, exc)

    return jsonify({
        "ok": True,
        "result": result.as_dict(),
        "progress": progress_log,
        "letterboxd": settings.to_dict()["letterboxd"],
    })
