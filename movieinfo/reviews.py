from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from .auth import authorize
from .db import fits_integer
from .errors import DuplicateReview, NotFound, ValidationError
from .library import parse_movie_id
from .models import review_row_to_dict

MIN_RATING = 1
MAX_RATING = 10
MAX_COMMENT_LENGTH = 1000

REVIEW_COLUMNS = """
    r.id, r.user_id, r.movie_id, r.rating, r.comment, r.created_at, r.updated_at,
    u.name AS reviewer_name, u.avatar AS reviewer_avatar
"""
REVIEW_FROM = "FROM reviews r LEFT JOIN users u ON u.id = r.user_id"
REVIEW_SELECT = f"SELECT {REVIEW_COLUMNS} {REVIEW_FROM}"

DUPLICATE_REVIEW_MARKER = "reviews.user_id, reviews.movie_id"

logger = logging.getLogger("movieinfo.reviews")


def validate_rating(rating: Any) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        if isinstance(rating, float) and rating.is_integer():
            rating = int(rating)
        else:
            raise ValidationError("rating must be an integer between 1 and 10")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("rating must be an integer between 1 and 10")
    return rating


def validate_comment(comment: Any) -> str:
    if not isinstance(comment, str) or not comment.strip():
        raise ValidationError("comment is required")
    comment = comment.strip()
    if len(comment) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"comment must be at most {MAX_COMMENT_LENGTH} characters")
    return comment


def get_review(conn: sqlite3.Connection, review_id: int) -> dict:
    if not fits_integer(review_id):
        raise NotFound("Review not found")
    row = conn.execute(f"{REVIEW_SELECT} WHERE r.id = ?", (review_id,)).fetchone()
    if not row:
        raise NotFound("Review not found")
    return review_row_to_dict(row)


def create_review(conn: sqlite3.Connection, user: Mapping[str, Any], payload: Mapping[str, Any]) -> dict:
    """
    Insert a review for (user, movie).

    There is no read-before-write existence check: the UNIQUE (user_id,
    movie_id) constraint decides, so two racing creates cannot both land.
    """
    movie_id = parse_movie_id(payload.get("movieId"))
    rating = validate_rating(payload.get("rating"))
    comment = validate_comment(payload.get("comment"))
    try:
        cur = conn.execute(
            "INSERT INTO reviews (user_id, movie_id, rating, comment) VALUES (?, ?, ?, ?)",
            (user["id"], movie_id, rating, comment),
        )
        conn.commit()
    except sqlite3.IntegrityError as e:
        conn.rollback()
        if DUPLICATE_REVIEW_MARKER in str(e):
            raise DuplicateReview()
        raise
    logger.info("User %s reviewed movie %s", user["id"], movie_id)
    return get_review(conn, cur.lastrowid)


def update_review(conn: sqlite3.Connection, user: Mapping[str, Any], review_id: int, payload: Mapping[str, Any]) -> dict:
    review = get_review(conn, review_id)
    authorize(user, "review:update", review)

    updates: dict[str, Any] = {}
    if payload.get("rating") is not None:
        updates["rating"] = validate_rating(payload.get("rating"))
    if payload.get("comment") is not None:
        updates["comment"] = validate_comment(payload.get("comment"))
    if not updates:
        raise ValidationError("At least one of 'rating' or 'comment' must be provided")

    assignments = ", ".join(f"{col} = ?" for col in updates)
    conn.execute(
        f"UPDATE reviews SET {assignments}, updated_at = strftime('%Y-%m-%dT%H:%M:%f', 'now') WHERE id = ?",
        (*updates.values(), review_id),
    )
    conn.commit()
    return get_review(conn, review_id)


def delete_review(conn: sqlite3.Connection, user: Mapping[str, Any], review_id: int) -> None:
    review = get_review(conn, review_id)
    authorize(user, "review:delete", review)
    conn.execute("DELETE FROM reviews WHERE id = ?", (review_id,))
    conn.commit()
    logger.info("Review %s deleted by user %s", review_id, user["id"])


def reviews_for_movie(conn: sqlite3.Connection, movie_id: int) -> list[dict]:
    rows = conn.execute(
        f"{REVIEW_SELECT} WHERE r.movie_id = ? ORDER BY r.created_at DESC, r.id DESC",
        (movie_id,),
    ).fetchall()
    return [review_row_to_dict(row) for row in rows]


def reviews_for_user(conn: sqlite3.Connection, user_id: int) -> list[dict]:
    rows = conn.execute(
        f"{REVIEW_SELECT} WHERE r.user_id = ? ORDER BY r.created_at DESC, r.id DESC",
        (user_id,),
    ).fetchall()
    return [review_row_to_dict(row) for row in rows]
