from __future__ import annotations

import logging
import sqlite3
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from .db import fits_integer
from .errors import EmailTaken, NotFound, ValidationError
from .models import user_row_to_dict

ROLES = ("user", "admin")
PROFILE_FIELDS = ("name", "email", "avatar", "password")

logger = logging.getLogger("movieinfo.accounts")


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(stored_hash: str | None, password: str) -> bool:
    if not stored_hash:
        return False
    try:
        return check_password_hash(stored_hash, password)
    except ValueError:
        return False


def _clean_email(email: Any) -> str:
    email = (email or "").strip() if isinstance(email, str) else ""
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    return email


def get_user_row(conn: sqlite3.Connection, user_id: int) -> sqlite3.Row | None:
    if not fits_integer(user_id):
        return None
    return conn.execute(
        "SELECT * FROM users WHERE id = ? LIMIT 1",
        (user_id,),
    ).fetchone()


def find_by_email(conn: sqlite3.Connection, email: str) -> sqlite3.Row | None:
    return conn.execute(
        "SELECT * FROM users WHERE lower(email) = lower(?) LIMIT 1",
        (email,),
    ).fetchone()


def create_user(conn: sqlite3.Connection, name: Any, email: Any, password: Any) -> dict:
    """Register a new account with role `user`. Raises EmailTaken on a duplicate."""
    name = (name or "").strip() if isinstance(name, str) else ""
    password = password if isinstance(password, str) else ""
    if not name:
        raise ValidationError("Name is required")
    email = _clean_email(email)
    if not password:
        raise ValidationError("Password is required")

    if find_by_email(conn, email):
        raise EmailTaken()
    try:
        cur = conn.execute(
            """
            INSERT INTO users (name, email, password_hash, role, avatar)
            VALUES (?, ?, ?, 'user', '')
            """,
            (name, email, hash_password(password)),
        )
        conn.commit()
    except sqlite3.IntegrityError:
        conn.rollback()
        raise EmailTaken()
    logger.info("Registered user %s", cur.lastrowid)
    return user_row_to_dict(get_user_row(conn, cur.lastrowid))


def authenticate(conn: sqlite3.Connection, email: Any, password: Any) -> dict | None:
    if not isinstance(email, str) or not isinstance(password, str):
        return None
    row = find_by_email(conn, email.strip())
    if not row or not verify_password(row["password_hash"], password):
        return None
    return user_row_to_dict(row)


def update_profile(conn: sqlite3.Connection, user_id: int, payload: dict) -> dict:
    """Apply name/email/avatar/password changes; empty values are ignored."""
    updates: dict[str, Any] = {}
    if payload.get("name"):
        name = str(payload["name"]).strip()
        if not name:
            raise ValidationError("Name is required")
        updates["name"] = name
    if payload.get("email"):
        email = _clean_email(payload["email"])
        other = find_by_email(conn, email)
        if other and other["id"] != user_id:
            raise EmailTaken("Email already in use")
        updates["email"] = email
    if payload.get("avatar"):
        updates["avatar"] = str(payload["avatar"])
    if payload.get("password"):
        updates["password_hash"] = hash_password(str(payload["password"]))

    if updates:
        assignments = ", ".join(f"{col} = ?" for col in updates)
        try:
            conn.execute(
                f"UPDATE users SET {assignments} WHERE id = ?",
                (*updates.values(), user_id),
            )
            conn.commit()
        except sqlite3.IntegrityError:
            conn.rollback()
            raise EmailTaken("Email already in use")

    row = get_user_row(conn, user_id)
    if not row:
        raise NotFound("User not found")
    return user_row_to_dict(row)


def set_role(conn: sqlite3.Connection, user_id: int, role: Any) -> dict:
    if role not in ROLES:
        raise ValidationError("role must be 'user' or 'admin'")
    if not fits_integer(user_id):
        raise NotFound("User not found")
    cur = conn.execute("UPDATE users SET role = ? WHERE id = ?", (role, user_id))
    conn.commit()
    if cur.rowcount == 0:
        raise NotFound("User not found")
    logger.info("User %s role set to %s", user_id, role)
    return user_row_to_dict(get_user_row(conn, user_id))


def delete_user(conn: sqlite3.Connection, user_id: int) -> None:
    """Hard-delete a user; reviews and collections go with it (ON DELETE CASCADE)."""
    if not fits_integer(user_id):
        raise NotFound("User not found")
    cur = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
    conn.commit()
    if cur.rowcount == 0:
        raise NotFound("User not found")
    logger.info("Deleted user %s", user_id)
