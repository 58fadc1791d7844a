from __future__ import annotations

from typing import Any

from flask import current_app, request

from ..errors import ValidationError
from ..tmdb import TMDbClient, clamp_int

__all__ = ["catalog", "clamp_int", "json_payload"]


def catalog() -> TMDbClient:
    return current_app.extensions["tmdb"]


def json_payload() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload
