from __future__ import annotations

from flask import Blueprint, g, jsonify

from .. import reviews as review_service
from ..auth import login_optional, login_required
from ..db import get_db
from ..library import parse_movie_id
from .common import json_payload

bp = Blueprint("reviews", __name__, url_prefix="/api/reviews")


@bp.get("/<movie_id>")
@login_optional
def movie_reviews(movie_id: str):
    """
    Reviews for a movie, newest first. Public; a signed-in caller also gets
    `isOwn` on each review.
    """
    reviews = review_service.reviews_for_movie(get_db(), parse_movie_id(movie_id))
    if g.user:
        for review in reviews:
            review["isOwn"] = review["user_id"] == g.user["id"]
    return jsonify(reviews)


@bp.post("")
@login_required
def create_review():
    """Body: {movieId, rating (1-10), comment (<= 1000 chars)}"""
    review = review_service.create_review(get_db(), g.user, json_payload())
    return jsonify(review), 201


@bp.put("/<int:review_id>")
@login_required
def update_review(review_id: int):
    review = review_service.update_review(get_db(), g.user, review_id, json_payload())
    return jsonify(review)


@bp.delete("/<int:review_id>")
@login_required
def delete_review(review_id: int):
    review_service.delete_review(get_db(), g.user, review_id)
    return jsonify({"message": "Review deleted"})


@bp.get("/user/my-reviews")
@login_required
def my_reviews():
    return jsonify(review_service.reviews_for_user(get_db(), g.user["id"]))
