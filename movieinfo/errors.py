from __future__ import annotations


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status and a JSON message."""

    status_code = 500
    default_message = "Something went wrong!"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class DuplicateReview(ApiError):
    status_code = 400
    default_message = "You have already reviewed this movie"


class EmailTaken(ApiError):
    status_code = 400
    default_message = "User already exists"


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Not authorized, token failed"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Not authorized"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(ApiError):
    status_code = 502
    default_message = "Movie catalog is unavailable"
