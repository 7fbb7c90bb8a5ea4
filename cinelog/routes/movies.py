import logging
from datetime import date

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import csrf, db
from ..models.settings import UserSettings
from ..models.user import User
from ..services import tmdb
from ..services.catalog import SORT_COLUMNS, MovieCatalog
from ..services.profiles import display_name, resolve_author_names
from ..services.reviews import REVIEW_SORTS, ReviewStore

logger = logging.getLogger(__name__)

movies_bp = Blueprint("movies", __name__)


def _int_arg(name, default=None):
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def _float_arg(name):
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _card(movie):
    data = movie.to_summary()
    data["posterUrl"] = tmdb.image_url(movie.poster_path, "w342")
    return data


@movies_bp.get("/api/movies")
def list_movies():
    """
    Catalog listing with paging plus optional genre, year range, minimum TMDB
    rating and sort order.
    """
    page = max(1, _int_arg("page", 1))
    per_page = max(1, min(50, _int_arg("per_page", 24)))
    genres = [g.strip() for g in (request.args.get("genre") or "").split(",") if g.strip()]
    sort = request.args.get("sort", "popularity")
    if sort not in SORT_COLUMNS:
        sort = "popularity"

    movies, total = MovieCatalog().browse(
        page=page,
        per_page=per_page,
        genres=genres,
        year_from=_int_arg("year_from"),
        year_to=_int_arg("year_to"),
        min_rating=_float_arg("min_rating"),
        sort=sort,
    )
    total_pages = (total + per_page - 1) // per_page
    return jsonify(
        {
            "items": [_card(m) for m in movies],
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": max(1, total_pages),
        }
    )


@movies_bp.get("/api/movies/search")
def search_movies():
    q = (request.args.get("q") or "").strip()
    if not q:
        return jsonify({"results": []})
    return jsonify({"results": [_card(m) for m in MovieCatalog().search(q)]})


@movies_bp.get("/api/movies/<movie_id>")
def get_movie(movie_id):
    movie = MovieCatalog().get(movie_id)
    if movie is None:
        return jsonify({"ok": False, "error": "Movie not found"}), 404
    data = movie.to_dict()
    data["posterUrl"] = tmdb.image_url(movie.poster_path, "w500")
    data["backdropUrl"] = tmdb.image_url(movie.backdrop_path, "w1280")
    return jsonify(data)


def _author_name(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        return None
    return display_name(db.session.get(UserSettings, user_id), user)


@movies_bp.get("/api/movies/<movie_id>/reviews")
def movie_reviews(movie_id):
    sort = request.args.get("sort", "recent")
    if sort not in REVIEW_SORTS:
        sort = "recent"
    store = ReviewStore()
    reviews = store.for_movie(movie_id, sort=sort)

    app = current_app._get_current_object()

    def lookup(user_id):
        with app.app_context():
            return _author_name(user_id)

    names = resolve_author_names(
        (r.user_id for r in reviews), lookup, max_workers=app.config.get("PROFILE_LOOKUP_WORKERS", 8)
    )
    items = []
    for review in reviews:
        data = review.to_dict()
        data["author"] = names.get(review.user_id)
        items.append(data)
    return jsonify(
        {
            "reviews": items,
            "count": len(items),
            "averageRating": round(store.average_rating(movie_id), 1) if items else 0,
        }
    )


@movies_bp.get("/api/movies/<movie_id>/review")
@login_required
def get_own_review(movie_id):
    review = ReviewStore().get(current_user.id, movie_id)
    return jsonify({"review": review.to_dict() if review else None})


@movies_bp.put("/api/movies/<movie_id>/review")
@login_required
@csrf.exempt
def save_own_review(movie_id):
    data = request.get_json(silent=True) or {}
    if MovieCatalog().get(movie_id) is None:
        return jsonify({"ok": False, "error": "Movie not found"}), 404

    watched = data.get("watchedDate")
    try:
        watched_date = date.fromisoformat(watched) if watched else None
    except (TypeError, ValueError):
        return jsonify({"ok": False, "error": "watchedDate must be YYYY-MM-DD"}), 400

    try:
        review = ReviewStore().save_manual(
            current_user.id,
            movie_id,
            rating=data.get("rating"),
            review_text=data.get("reviewText") or "",
            watched_date=watched_date,
            is_rewatch=bool(data.get("isRewatch", False)),
        )
    except ValueError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400
    except SQLAlchemyError as exc:
        logger.error("Error saving review for movie %s: %s", movie_id, exc)
        return jsonify({"ok": False, "error": "Database error"}), 500
    return jsonify({"ok": True, "review": review.to_dict()})


@movies_bp.delete("/api/movies/<movie_id>/review")
@login_required
@csrf.exempt
def delete_own_review(movie_id):
    try:
        deleted = ReviewStore().delete(current_user.id, movie_id)
    except SQLAlchemyError as exc:
        logger.error("Error deleting review for movie %s: %s", movie_id, exc)
        return jsonify({"ok": False, "error": "Database error"}), 500
    if not deleted:
        return jsonify({"ok": False, "error": "Review not found"}), 404
    return jsonify({"ok": True})
