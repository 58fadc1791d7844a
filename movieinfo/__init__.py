from __future__ import annotations

import logging
from typing import Any, Mapping

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import load_config, setup_logging
from .db import close_db, connect
from .errors import ApiError
from .models import init_db
from .routes import register_blueprints
from .tmdb import TMDbClient

logger = logging.getLogger("movieinfo")


def create_app(config: Mapping[str, Any] | None = None) -> Flask:
    """
    Build the API server.

    `config` overrides anything read from the environment, .env or YAML; tests
    use it to point DATABASE_PATH at a temporary file. A ready-made catalog
    client can be handed in as `TMDB_CLIENT`.
    """
    settings = load_config(config)
    setup_logging(settings)

    app = Flask(__name__)
    app.config.update(settings)
    app.json.sort_keys = False
    app.teardown_appcontext(close_db)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    if settings.get("JWT_SECRET_IS_DEFAULT"):
        logger.warning("JWT_SECRET not set; using the insecure development secret")

    app.extensions["tmdb"] = settings.get("TMDB_CLIENT") or TMDbClient(
        api_key=settings.get("TMDB_API_KEY"),
        base_url=settings["TMDB_BASE_URL"],
        timeout=settings["TMDB_TIMEOUT"],
    )

    conn = connect(settings["DATABASE_PATH"])
    try:
        init_db(conn)
    finally:
        conn.close()

    register_blueprints(app)
    _register_error_handlers(app)
    return app


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(404)
    def handle_not_found(_exc):
        return jsonify({"message": "Route not found"}), 404

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"message": exc.description or exc.name}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error")
        body = {"message": "Something went wrong!"}
        if app.config.get("ENV") == "development":
            body["error"] = str(exc)
        return jsonify(body), 500
