from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from ..auth import login_required
from ..db import get_db
from ..library import SQLiteCollectionStore, parse_movie_id, resolve_movies
from .common import catalog, clamp_int

bp = Blueprint("users", __name__, url_prefix="/api/users")


def _store() -> SQLiteCollectionStore:
    return SQLiteCollectionStore(get_db(), g.user["id"], cap=current_app.config["RECENTLY_VIEWED_CAP"])


def _resolved(movie_ids):
    return jsonify(resolve_movies(
        movie_ids,
        catalog().movie_details,
        max_workers=current_app.config["LOOKUP_WORKERS"],
    ))


@bp.get("/favorites")
@login_required
def favorites():
    return _resolved(_store().favorites())


@bp.put("/favorites/<movie_id>")
@login_required
def toggle_favorite(movie_id: str):
    store = _store()
    is_favorite = store.toggle_favorite(parse_movie_id(movie_id))
    return jsonify({"favorites": store.favorites(), "isFavorite": is_favorite})


@bp.get("/watchlist")
@login_required
def watchlist():
    return _resolved(_store().watchlist())


@bp.put("/watchlist/<movie_id>")
@login_required
def toggle_watchlist(movie_id: str):
    store = _store()
    in_watchlist = store.toggle_watchlist(parse_movie_id(movie_id))
    return jsonify({"watchlist": store.watchlist(), "inWatchlist": in_watchlist})


@bp.get("/recently-viewed")
@login_required
def recently_viewed():
    """Most recent first. Query parameter: limit (default 10, at most the stored cap)"""
    limit = clamp_int(
        request.args.get("limit"),
        current_app.config["RECENTLY_VIEWED_PAGE"],
        maximum=current_app.config["RECENTLY_VIEWED_CAP"],
    )
    return _resolved(_store().recently_viewed()[:limit])


@bp.put("/recently-viewed/<movie_id>")
@login_required
def record_view(movie_id: str):
    return jsonify({"recentlyViewed": _store().record_view(parse_movie_id(movie_id))})


@bp.get("/check/<movie_id>")
@login_required
def check(movie_id: str):
    return jsonify(_store().status(parse_movie_id(movie_id)))
