from __future__ import annotations

import sqlite3
from typing import Mapping, Sequence

USERS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'admin')),
    avatar TEXT DEFAULT '',
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

FAVORITES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS favorites (
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    movie_id INTEGER NOT NULL,
    added_at TEXT DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (user_id, movie_id)
);
"""

WATCHLIST_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS watchlist (
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    movie_id INTEGER NOT NULL,
    added_at TEXT DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (user_id, movie_id)
);
"""

# `id` grows with every view, so ORDER BY id DESC is most-recent-first.
RECENTLY_VIEWED_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS recently_viewed (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    movie_id INTEGER NOT NULL,
    viewed_at TEXT DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (user_id, movie_id)
);
"""

REVIEWS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    movie_id INTEGER NOT NULL,
    rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 10),
    comment TEXT NOT NULL,
    created_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    updated_at TEXT,
    UNIQUE (user_id, movie_id)
);
"""

FEATURED_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS featured_movies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tmdb_id INTEGER,
    title TEXT NOT NULL,
    overview TEXT DEFAULT '',
    poster_path TEXT,
    backdrop_path TEXT,
    release_date TEXT,
    vote_average REAL DEFAULT 0.0,
    created_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
"""

INDEX_SQL: Sequence[str] = (
    "CREATE INDEX IF NOT EXISTS ix_reviews_movie ON reviews (movie_id, created_at);",
    "CREATE INDEX IF NOT EXISTS ix_reviews_user ON reviews (user_id, created_at);",
    "CREATE INDEX IF NOT EXISTS ix_recently_viewed_user ON recently_viewed (user_id, id);",
)

FEATURED_FIELDS = (
    "tmdb_id",
    "title",
    "overview",
    "poster_path",
    "backdrop_path",
    "release_date",
    "vote_average",
)


def init_db(conn: sqlite3.Connection) -> None:
    """Create tables and indexes if they do not yet exist."""
    for stmt in (
        USERS_TABLE_SQL,
        FAVORITES_TABLE_SQL,
        WATCHLIST_TABLE_SQL,
        RECENTLY_VIEWED_TABLE_SQL,
        REVIEWS_TABLE_SQL,
        FEATURED_TABLE_SQL,
    ):
        conn.execute(stmt)
    for stmt in INDEX_SQL:
        conn.execute(stmt)
    conn.commit()


def user_row_to_dict(row: Mapping[str, object]) -> dict:
    """Convert a users row into an API-friendly dict. Never exposes the hash."""
    data = dict(row)
    return {
        "id": data.get("id"),
        "name": data.get("name"),
        "email": data.get("email"),
        "role": data.get("role") or "user",
        "avatar": data.get("avatar") or "",
        "created_at": data.get("created_at"),
    }


def review_row_to_dict(row: Mapping[str, object]) -> dict:
    """
    Convert a reviews row joined with users (reviewer_name, reviewer_avatar,
    optionally reviewer_email) into the public review shape.
    """
    data = dict(row)
    reviewer = {
        "name": data.get("reviewer_name"),
        "avatar": data.get("reviewer_avatar") or "",
    }
    if "reviewer_email" in data:
        reviewer["email"] = data.get("reviewer_email")
    return {
        "id": data.get("id"),
        "user_id": data.get("user_id"),
        "movieId": data.get("movie_id"),
        "rating": data.get("rating"),
        "comment": data.get("comment"),
        "created_at": data.get("created_at"),
        "updated_at": data.get("updated_at"),
        "user": reviewer,
    }


def featured_row_to_dict(row: Mapping[str, object]) -> dict:
    data = dict(row)
    return {
        "id": data.get("id"),
        "tmdb_id": data.get("tmdb_id"),
        "title": data.get("title"),
        "overview": data.get("overview") or "",
        "poster_path": data.get("poster_path"),
        "backdrop_path": data.get("backdrop_path"),
        "release_date": data.get("release_date"),
        "vote_average": float(data.get("vote_average") or 0.0),
        "created_at": data.get("created_at"),
    }
