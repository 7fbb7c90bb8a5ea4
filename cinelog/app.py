import logging

from flask import Flask

from .config import get_config
from .extensions import csrf, db, login_manager, migrate
from .models.movie import Movie  # noqa: F401
from .models.review import Review  # noqa: F401
from .models.settings import UserSettings  # noqa: F401
from .models.user import User
from .routes.auth import auth_bp
from .routes.movies import movies_bp
from .routes.reviews import reviews_bp
from .routes.settings import settings_bp
from .services.cache import init_requests_cache


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or get_config())
    _configure_logging(app)
    init_requests_cache(app)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)

    login_manager.session_protection = None

    @login_manager.user_loader
    def load_user(user_id):
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return {"ok": False, "error": "Authentication required"}, 401

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(movies_bp)
    app.register_blueprint(reviews_bp)
    app.register_blueprint(settings_bp)

    with app.app_context():
        db.create_all()

    return app


def _configure_logging(app: Flask):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("cinelog").setLevel(level)
