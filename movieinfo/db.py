from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Sequence

from flask import current_app, g

MAX_INTEGER = 2**63 - 1  # largest value SQLite stores as INTEGER


def connect(path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(path, timeout=30.0, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA busy_timeout = 30000")  # 30 second timeout for locks
    return conn


def fits_integer(value: int) -> bool:
    return -MAX_INTEGER - 1 <= value <= MAX_INTEGER


def get_db() -> sqlite3.Connection:
    """Return a SQLite connection stored on Flask's `g` context."""
    if "sqlite_conn" not in g:
        g.sqlite_conn = connect(current_app.config["DATABASE_PATH"])
    return g.sqlite_conn


def close_db(_: Exception | None = None) -> None:
    """Close the connection at the end of the request/app context."""
    conn = g.pop("sqlite_conn", None)
    if conn is not None:
        conn.close()


def query(sql: str, params: Sequence | dict = ()) -> list[sqlite3.Row]:
    """Execute a SELECT statement and return all rows."""
    conn = get_db()
    cur = conn.execute(sql, params)
    rows = cur.fetchall()
    cur.close()
    return rows


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Run a read-modify-write sequence under a write lock.

    BEGIN IMMEDIATE takes the database RESERVED lock up front, so two requests
    toggling the same row serialise instead of both reading the old state.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()
