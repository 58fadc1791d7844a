from __future__ import annotations

import sqlite3
from typing import Any, Mapping

from .db import fits_integer
from .errors import NotFound, ValidationError
from .models import FEATURED_FIELDS, featured_row_to_dict, review_row_to_dict, user_row_to_dict
from .reviews import REVIEW_COLUMNS, REVIEW_FROM, REVIEW_SELECT

RECENT_LIMIT = 5


def _count(conn: sqlite3.Connection, table: str) -> int:
    return conn.execute(f"SELECT COUNT(*) AS cnt FROM {table}").fetchone()["cnt"] or 0


def dashboard_stats(conn: sqlite3.Connection) -> dict[str, Any]:
    recent_users = conn.execute(
        "SELECT * FROM users ORDER BY created_at DESC, id DESC LIMIT ?",
        (RECENT_LIMIT,),
    ).fetchall()
    recent_reviews = conn.execute(
        f"{REVIEW_SELECT} ORDER BY r.created_at DESC, r.id DESC LIMIT ?",
        (RECENT_LIMIT,),
    ).fetchall()
    return {
        "stats": {
            "totalUsers": _count(conn, "users"),
            "totalReviews": _count(conn, "reviews"),
            "totalFeaturedMovies": _count(conn, "featured_movies"),
        },
        "recentUsers": [user_row_to_dict(row) for row in recent_users],
        "recentReviews": [review_row_to_dict(row) for row in recent_reviews],
    }


def list_users(conn: sqlite3.Connection, page: int, limit: int) -> dict[str, Any]:
    offset = (page - 1) * limit
    rows = conn.execute(
        "SELECT * FROM users ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
        (limit, offset),
    ).fetchall()
    return {
        "total": _count(conn, "users"),
        "page": page,
        "limit": limit,
        "results": [user_row_to_dict(row) for row in rows],
    }


def list_reviews(conn: sqlite3.Connection, page: int, limit: int) -> dict[str, Any]:
    offset = (page - 1) * limit
    rows = conn.execute(
        f"""
        SELECT {REVIEW_COLUMNS}, u.email AS reviewer_email
        {REVIEW_FROM}
        ORDER BY r.created_at DESC, r.id DESC
        LIMIT ? OFFSET ?
        """,
        (limit, offset),
    ).fetchall()
    return {
        "total": _count(conn, "reviews"),
        "page": page,
        "limit": limit,
        "results": [review_row_to_dict(row) for row in rows],
    }


def remove_review(conn: sqlite3.Connection, review_id: int) -> None:
    if not fits_integer(review_id):
        raise NotFound("Review not found")
    cur = conn.execute("DELETE FROM reviews WHERE id = ?", (review_id,))
    conn.commit()
    if cur.rowcount == 0:
        raise NotFound("Review not found")


# ----- featured movies -----
def _featured_payload(payload: Mapping[str, Any], partial: bool) -> dict[str, Any]:
    data = {key: payload[key] for key in FEATURED_FIELDS if key in payload}
    if "title" in data or not partial:
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("title is required")
        data["title"] = title.strip()
    if data.get("tmdb_id") is not None:
        try:
            data["tmdb_id"] = int(data["tmdb_id"])
        except (TypeError, ValueError):
            raise ValidationError("tmdb_id must be an integer")
        if not fits_integer(data["tmdb_id"]):
            raise ValidationError("tmdb_id is out of range")
    if data.get("vote_average") is not None:
        try:
            data["vote_average"] = float(data["vote_average"])
        except (TypeError, ValueError):
            raise ValidationError("vote_average must be numeric")
    if not data:
        raise ValidationError("No featured movie fields provided")
    return data


def list_featured(conn: sqlite3.Connection) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM featured_movies ORDER BY created_at DESC, id DESC"
    ).fetchall()
    return [featured_row_to_dict(row) for row in rows]


def get_featured(conn: sqlite3.Connection, featured_id: int) -> dict:
    if not fits_integer(featured_id):
        raise NotFound("Movie not found")
    row = conn.execute("SELECT * FROM featured_movies WHERE id = ?", (featured_id,)).fetchone()
    if not row:
        raise NotFound("Movie not found")
    return featured_row_to_dict(row)


def create_featured(conn: sqlite3.Connection, payload: Mapping[str, Any]) -> dict:
    data = _featured_payload(payload, partial=False)
    columns = ", ".join(data)
    placeholders = ", ".join("?" for _ in data)
    cur = conn.execute(
        f"INSERT INTO featured_movies ({columns}) VALUES ({placeholders})",
        tuple(data.values()),
    )
    conn.commit()
    return get_featured(conn, cur.lastrowid)


def update_featured(conn: sqlite3.Connection, featured_id: int, payload: Mapping[str, Any]) -> dict:
    get_featured(conn, featured_id)
    data = _featured_payload(payload, partial=True)
    assignments = ", ".join(f"{col} = ?" for col in data)
    conn.execute(
        f"UPDATE featured_movies SET {assignments} WHERE id = ?",
        (*data.values(), featured_id),
    )
    conn.commit()
    return get_featured(conn, featured_id)


def delete_featured(conn: sqlite3.Connection, featured_id: int) -> None:
    if not fits_integer(featured_id):
        raise NotFound("Movie not found")
    cur = conn.execute("DELETE FROM featured_movies WHERE id = ?", (featured_id,))
    conn.commit()
    if cur.rowcount == 0:
        raise NotFound("Movie not found")
