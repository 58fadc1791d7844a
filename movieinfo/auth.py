from __future__ import annotations

import functools
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping

import jwt
from flask import current_app, g, request

from .accounts import get_user_row
from .db import get_db
from .errors import Forbidden, Unauthenticated
from .models import user_row_to_dict

ALGORITHM = "HS256"

logger = logging.getLogger("movieinfo.auth")


# ----- tokens -----
def issue_token(user_id: int, secret: str, days: int = 30, now: datetime | None = None) -> str:
    """Sign a session token for `user_id` that expires `days` after issuance."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(days=days)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> int:
    """Return the user id a token was issued for, or raise Unauthenticated."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": ["exp", "id"]})
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise Unauthenticated("Not authorized, token expired")
    except jwt.InvalidTokenError as e:
        logger.info("Rejected invalid token: %s", type(e).__name__)
        raise Unauthenticated()
    user_id = payload.get("id")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise Unauthenticated()
    return user_id


def bearer_token(header: str | None) -> str | None:
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def current_token() -> str:
    return issue_token(
        g.user["id"],
        current_app.config["JWT_SECRET"],
        current_app.config["JWT_EXPIRES_DAYS"],
    )


def resolve_token(token: str | None) -> dict:
    """
    Turn a bearer token into the current user record.

    The user row is re-read on every call so role changes apply immediately;
    a token whose user has since been deleted no longer resolves.
    """
    if not token:
        raise Unauthenticated("Not authorized, no token")
    user_id = decode_token(token, current_app.config["JWT_SECRET"])
    row = get_user_row(get_db(), user_id)
    if row is None:
        logger.info("Token for missing user %s rejected", user_id)
        raise Unauthenticated("User not found")
    return user_row_to_dict(row)


# ----- policy -----
def is_admin(user: Mapping[str, Any] | None) -> bool:
    return bool(user) and user.get("role") == "admin"


def is_owner(user: Mapping[str, Any] | None, resource: Mapping[str, Any]) -> bool:
    return bool(user) and resource.get("user_id") == user.get("id")


# action -> capabilities, any one of which grants it
POLICY: dict[str, tuple[Callable[..., bool], ...]] = {
    "review:update": (is_owner,),
    "review:delete": (is_owner, lambda user, _resource: is_admin(user)),
}


def authorize(user: Mapping[str, Any], action: str, resource: Mapping[str, Any]) -> None:
    checks = POLICY.get(action)
    if checks is None:
        raise KeyError(f"No policy for action {action!r}")
    if not any(check(user, resource) for check in checks):
        raise Forbidden(f"Not authorized to {action.split(':', 1)[1]} this {action.split(':', 1)[0]}")


def require_role(user: Mapping[str, Any] | None, role: str) -> None:
    if not user or user.get("role") != role:
        raise Forbidden(f"Not authorized as {role}")


# ----- route decorators -----
def login_required(route):
    @functools.wraps(route)
    def route_wrapper(*args, **kwargs):
        g.user = resolve_token(bearer_token(request.headers.get("Authorization")))
        return route(*args, **kwargs)

    return route_wrapper


def login_optional(route):
    """Attach g.user when a valid token is sent; otherwise carry on anonymously."""
    @functools.wraps(route)
    def route_wrapper(*args, **kwargs):
        g.user = None
        token = bearer_token(request.headers.get("Authorization"))
        if token:
            try:
                g.user = resolve_token(token)
            except Unauthenticated:
                g.user = None
        return route(*args, **kwargs)

    return route_wrapper


def admin_required(route):
    @functools.wraps(route)
    def route_wrapper(*args, **kwargs):
        g.user = resolve_token(bearer_token(request.headers.get("Authorization")))
        require_role(g.user, "admin")
        return route(*args, **kwargs)

    return route_wrapper
