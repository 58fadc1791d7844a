from __future__ import annotations

from flask import Blueprint, g, jsonify

from .. import accounts
from ..auth import current_token, login_required
from ..db import get_db
from ..errors import Unauthenticated
from ..library import SQLiteCollectionStore
from .common import json_payload

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@bp.post("/register")
def register():
    """Create an account and sign the caller in. Body: {name, email, password}"""
    payload = json_payload()
    user = accounts.create_user(
        get_db(),
        payload.get("name"),
        payload.get("email"),
        payload.get("password"),
    )
    g.user = user
    return jsonify({
        "id": user["id"],
        "name": user["name"],
        "email": user["email"],
        "role": user["role"],
        "token": current_token(),
    }), 201


@bp.post("/login")
def login():
    payload = json_payload()
    conn = get_db()
    user = accounts.authenticate(conn, payload.get("email"), payload.get("password"))
    if not user:
        raise Unauthenticated("Invalid email or password")

    g.user = user
    store = SQLiteCollectionStore(conn, user["id"])
    return jsonify({
        "id": user["id"],
        "name": user["name"],
        "email": user["email"],
        "role": user["role"],
        "avatar": user["avatar"],
        "favorites": store.favorites(),
        "watchlist": store.watchlist(),
        "token": current_token(),
    })


@bp.get("/profile")
@login_required
def get_profile():
    store = SQLiteCollectionStore(get_db(), g.user["id"])
    return jsonify({
        **g.user,
        "favorites": store.favorites(),
        "watchlist": store.watchlist(),
        "recentlyViewed": store.recently_viewed(),
    })


@bp.put("/profile")
@login_required
def update_profile():
    """
    Update name, email, avatar and/or password of the signed-in user.
    Returns the updated profile with a freshly issued token.
    """
    user = accounts.update_profile(get_db(), g.user["id"], json_payload())
    g.user = user
    return jsonify({**user, "token": current_token()})
