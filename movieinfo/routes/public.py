from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..db import query

bp = Blueprint("public", __name__, url_prefix="/api")


@bp.get("/health")
def health():
    """
    Readiness check: runs a trivial query so a broken database shows up as 503
    rather than as failures on the first real request.
    """
    try:
        query("SELECT 1")
    except Exception as exc:
        current_app.logger.exception("Health check failed")
        return jsonify({"status": "unhealthy", "message": str(exc)}), 503
    return jsonify({"status": "OK", "message": "Movie Info API is running!"})
