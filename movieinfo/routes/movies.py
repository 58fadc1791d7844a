from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..errors import ValidationError
from ..tmdb import MAX_PAGE, build_discover_params
from .common import catalog, clamp_int

bp = Blueprint("movies", __name__, url_prefix="/api/movies")


def _page() -> int:
    return clamp_int(request.args.get("page"), 1, maximum=MAX_PAGE)


@bp.get("/trending")
def trending():
    return jsonify(catalog().trending(request.args.get("timeWindow", "week")))


@bp.get("/popular")
def popular():
    return jsonify(catalog().popular(_page()))


@bp.get("/top-rated")
def top_rated():
    return jsonify(catalog().top_rated(_page()))


@bp.get("/upcoming")
def upcoming():
    return jsonify(catalog().upcoming(_page()))


@bp.get("/now-playing")
def now_playing():
    return jsonify(catalog().now_playing(_page()))


@bp.get("/genres")
def genres():
    return jsonify(catalog().genres())


@bp.get("/search")
def search():
    query = (request.args.get("query") or "").strip()
    if not query:
        raise ValidationError("Query is required")
    return jsonify(catalog().search_movies(query, _page()))


@bp.get("/discover")
def discover():
    """
    Filtered browsing.
    Query parameters: page, sort_by, genre, year_from, year_to, language,
    rating_min, rating_max
    """
    return jsonify(catalog().discover(build_discover_params(request.args)))


@bp.get("/genre/<int:genre_id>")
def by_genre(genre_id: int):
    return jsonify(catalog().movies_by_genre(genre_id, _page()))


@bp.get("/<int:movie_id>")
def details(movie_id: int):
    return jsonify(catalog().movie_details(movie_id))


@bp.get("/<int:movie_id>/credits")
def credits(movie_id: int):
    return jsonify(catalog().movie_credits(movie_id))


@bp.get("/<int:movie_id>/videos")
def videos(movie_id: int):
    return jsonify(catalog().movie_videos(movie_id))


@bp.get("/<int:movie_id>/similar")
def similar(movie_id: int):
    return jsonify(catalog().similar_movies(movie_id, _page()))


@bp.get("/<int:movie_id>/images")
def images(movie_id: int):
    return jsonify(catalog().movie_images(movie_id))
