from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from .. import accounts
from .. import admin as admin_service
from ..auth import admin_required
from ..db import get_db
from ..tmdb import image_url
from .common import clamp_int, json_payload

bp = Blueprint("admin", __name__, url_prefix="/api/admin")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_PAGE = 1_000_000  # keeps the OFFSET inside SQLite's integer range


def _paging() -> tuple[int, int]:
    page = clamp_int(request.args.get("page"), 1, maximum=MAX_PAGE)
    limit = clamp_int(request.args.get("limit"), DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE)
    return page, limit


def _with_images(movie: dict) -> dict:
    base = current_app.config["TMDB_IMAGE_URL"]
    return {
        **movie,
        "poster_url": image_url(movie.get("poster_path"), base=base),
        "backdrop_url": image_url(movie.get("backdrop_path"), size="original", base=base),
    }


@bp.get("/stats")
@admin_required
def stats():
    return jsonify(admin_service.dashboard_stats(get_db()))


@bp.get("/users")
@admin_required
def users():
    return jsonify(admin_service.list_users(get_db(), *_paging()))


@bp.put("/users/<int:user_id>/role")
@admin_required
def update_role(user_id: int):
    user = accounts.set_role(get_db(), user_id, json_payload().get("role"))
    return jsonify({"message": "User role updated", "user": user})


@bp.delete("/users/<int:user_id>")
@admin_required
def delete_user(user_id: int):
    accounts.delete_user(get_db(), user_id)
    return jsonify({"message": "User deleted"})


@bp.get("/reviews")
@admin_required
def reviews():
    return jsonify(admin_service.list_reviews(get_db(), *_paging()))


@bp.delete("/reviews/<int:review_id>")
@admin_required
def delete_review(review_id: int):
    admin_service.remove_review(get_db(), review_id)
    return jsonify({"message": "Review deleted"})


@bp.get("/movies")
@admin_required
def movies():
    return jsonify([_with_images(m) for m in admin_service.list_featured(get_db())])


@bp.post("/movies")
@admin_required
def create_movie():
    return jsonify(_with_images(admin_service.create_featured(get_db(), json_payload()))), 201


@bp.put("/movies/<int:featured_id>")
@admin_required
def update_movie(featured_id: int):
    return jsonify(_with_images(admin_service.update_featured(get_db(), featured_id, json_payload())))


@bp.delete("/movies/<int:featured_id>")
@admin_required
def delete_movie(featured_id: int):
    admin_service.delete_featured(get_db(), featured_id)
    return jsonify({"message": "Movie deleted"})
