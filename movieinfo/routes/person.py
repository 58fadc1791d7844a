from __future__ import annotations

from flask import Blueprint, jsonify

from .common import catalog

bp = Blueprint("person", __name__, url_prefix="/api/person")


@bp.get("/<int:person_id>")
def details(person_id: int):
    return jsonify(catalog().person_details(person_id))


@bp.get("/<int:person_id>/movie_credits")
def movie_credits(person_id: int):
    return jsonify(catalog().person_movie_credits(person_id))
