from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

import requests

from .errors import NotFound, UpstreamError, ValidationError

TMDB_BASE = "https://api.themoviedb.org/3"
IMAGE_BASE_URL = "https://image.tmdb.org/t/p"

MAX_PAGE = 500  # TMDb rejects page numbers above this
SORT_KEYS = frozenset(
    {
        "popularity.desc",
        "popularity.asc",
        "vote_average.desc",
        "vote_average.asc",
        "primary_release_date.desc",
        "primary_release_date.asc",
        "original_title.asc",
        "original_title.desc",
    }
)
TIME_WINDOWS = frozenset({"day", "week"})

logger = logging.getLogger("movieinfo.tmdb")


def clamp_int(param: Any, default: int, minimum: int = 1, maximum: int | None = None) -> int:
    try:
        value = int(param) if param not in (None, "") else default
    except (TypeError, ValueError):
        value = default
    value = max(minimum, value)
    if maximum is not None:
        value = min(value, maximum)
    return value


def _year(value: Any, name: str) -> int | None:
    if value in (None, ""):
        return None
    try:
        year = int(str(value)[:4])
    except ValueError:
        raise ValidationError(f"{name} must be a year")
    if not 1800 <= year <= 2200:
        raise ValidationError(f"{name} must be a year")
    return year


def _rating(value: Any, name: str) -> float | None:
    if value in (None, ""):
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be numeric")
    if not 0 <= rating <= 10:
        raise ValidationError(f"{name} must be between 0 and 10")
    return rating


def build_discover_params(args: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Translate the public discover query string into TMDb /discover/movie params.

    Unset filters are left out entirely rather than sent empty.
    """
    sort_by = args.get("sort_by") or "popularity.desc"
    if sort_by not in SORT_KEYS:
        raise ValidationError(f"sort_by must be one of: {', '.join(sorted(SORT_KEYS))}")

    params: Dict[str, Any] = {
        "page": clamp_int(args.get("page"), 1, maximum=MAX_PAGE),
        "sort_by": sort_by,
    }

    genre = args.get("genre")
    if genre:
        ids = [g.strip() for g in str(genre).split(",") if g.strip()]
        if not all(g.isdigit() for g in ids):
            raise ValidationError("genre must be a comma separated list of ids")
        if ids:
            params["with_genres"] = ",".join(ids)

    year_from = _year(args.get("year_from"), "year_from")
    year_to = _year(args.get("year_to"), "year_to")
    if year_from and year_to and year_from > year_to:
        raise ValidationError("year_from must not be after year_to")
    if year_from:
        params["primary_release_date.gte"] = f"{year_from}-01-01"
    if year_to:
        params["primary_release_date.lte"] = f"{year_to}-12-31"

    language = (args.get("language") or "").strip()
    if language:
        params["with_original_language"] = language.lower()

    rating_min = _rating(args.get("rating_min"), "rating_min")
    rating_max = _rating(args.get("rating_max"), "rating_max")
    if rating_min is not None and rating_max is not None and rating_min > rating_max:
        raise ValidationError("rating_min must not exceed rating_max")
    if rating_min is not None:
        params["vote_average.gte"] = rating_min
    if rating_max is not None:
        params["vote_average.lte"] = rating_max
    return params


def image_url(path: str | None, size: str = "w500", base: str = IMAGE_BASE_URL) -> str | None:
    if not path:
        return None
    if path.startswith("http"):
        return path
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{base}/{size}{path}"


class TMDbClient:
    """
    Stateless pass-through to the TMDb v3 API.

    Every call reaches the provider; nothing is cached and nothing is retried.
    Failures surface as UpstreamError (or NotFound for a missing entity).
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = TMDB_BASE,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
        if not self.api_key:
            logger.error("TMDB_API_KEY is not configured")
            raise UpstreamError("Movie catalog is not configured")
        params = {**(params or {}), "api_key": self.api_key}
        url = f"{self.base_url}{path}"
        try:
            r = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.warning("TMDb request timed out after %ss: %s", self.timeout, path)
            raise UpstreamError("Movie catalog timed out")
        except requests.exceptions.RequestException as e:
            logger.warning("TMDb request failed: %s: %s", path, e)
            raise UpstreamError()

        if r.status_code == 404:
            raise NotFound("Resource not found in movie catalog")
        if r.status_code == 429:
            logger.warning("TMDb rate limit hit: %s", path)
            raise UpstreamError("Movie catalog rate limit exceeded")
        try:
            r.raise_for_status()
            return r.json()
        except (requests.exceptions.HTTPError, ValueError) as e:
            logger.warning("TMDb returned an error for %s: %s", path, e)
            raise UpstreamError()

    # ----- lists -----
    def trending(self, time_window: str = "week") -> Dict[str, Any]:
        if time_window not in TIME_WINDOWS:
            raise ValidationError("timeWindow must be 'day' or 'week'")
        return self._get(f"/trending/movie/{time_window}")

    def popular(self, page: int = 1) -> Dict[str, Any]:
        return self._get("/movie/popular", {"page": page})

    def top_rated(self, page: int = 1) -> Dict[str, Any]:
        return self._get("/movie/top_rated", {"page": page})

    def upcoming(self, page: int = 1) -> Dict[str, Any]:
        return self._get("/movie/upcoming", {"page": page})

    def now_playing(self, page: int = 1) -> Dict[str, Any]:
        return self._get("/movie/now_playing", {"page": page})

    def genres(self) -> Dict[str, Any]:
        return self._get("/genre/movie/list")

    # ----- search & discover -----
    def search_movies(self, query: str, page: int = 1) -> Dict[str, Any]:
        if not query:
            raise ValidationError("Query is required")
        return self._get("/search/movie", {"query": query, "page": page})

    def discover(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._get("/discover/movie", params)

    def movies_by_genre(self, genre_id: int, page: int = 1) -> Dict[str, Any]:
        return self._get(
            "/discover/movie",
            {"with_genres": genre_id, "page": page, "sort_by": "popularity.desc"},
        )

    # ----- single movie -----
    def movie_details(self, movie_id: int) -> Dict[str, Any]:
        return self._get(f"/movie/{movie_id}")

    def movie_credits(self, movie_id: int) -> Dict[str, Any]:
        return self._get(f"/movie/{movie_id}/credits")

    def movie_videos(self, movie_id: int) -> Dict[str, Any]:
        return self._get(f"/movie/{movie_id}/videos")

    def similar_movies(self, movie_id: int, page: int = 1) -> Dict[str, Any]:
        return self._get(f"/movie/{movie_id}/similar", {"page": page})

    def movie_images(self, movie_id: int) -> Dict[str, Any]:
        return self._get(f"/movie/{movie_id}/images")

    # ----- people -----
    def person_details(self, person_id: int) -> Dict[str, Any]:
        return self._get(f"/person/{person_id}")

    def person_movie_credits(self, person_id: int) -> Dict[str, Any]:
        return self._get(f"/person/{person_id}/movie_credits")
