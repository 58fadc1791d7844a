"""
HTTP client for the Movie Info API, mirroring the browser app's service layer.

While signed in, collection calls go to the server. Without a session they
fall back to a LocalCollectionStore, and the local lists are never merged
into the account on login.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests

from .errors import ApiError, NotFound, Unauthenticated, UpstreamError
from .library import CollectionStore, LocalCollectionStore, parse_movie_id, resolve_movies

logger = logging.getLogger("movieinfo.client")


class ClientError(ApiError):
    """Non-2xx response from the API."""


class MovieInfoClient:
    def __init__(
        self,
        base_url: str = "http://localhost:5000/api",
        local_store: CollectionStore | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.local = local_store or LocalCollectionStore()
        self.timeout = timeout
        self.session = session or requests.Session()
        self.user: Dict[str, Any] | None = None

    @property
    def token(self) -> str | None:
        return (self.user or {}).get("token")

    @property
    def logged_in(self) -> bool:
        return bool(self.token)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            r = self.session.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise UpstreamError("Movie Info API is unreachable")

        try:
            body = r.json()
        except ValueError:
            body = {}
        if r.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            if r.status_code == 401:
                raise Unauthenticated(message)
            if r.status_code == 404:
                raise NotFound(message)
            raise ClientError(message or r.reason, r.status_code)
        return body

    # ----- auth -----
    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        self.user = self._request("POST", "/auth/register", json={"name": name, "email": email, "password": password})
        return self.user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        self.user = self._request("POST", "/auth/login", json={"email": email, "password": password})
        return self.user

    def logout(self) -> None:
        self.user = None

    def profile(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/profile")

    def update_profile(self, **fields) -> Dict[str, Any]:
        updated = self._request("PUT", "/auth/profile", json=fields)
        self.user = {**(self.user or {}), **updated}
        return updated

    # ----- catalog -----
    def movie(self, movie_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/movies/{movie_id}")

    def movies(self, category: str = "popular", page: int = 1) -> Dict[str, Any]:
        return self._request("GET", f"/movies/{category}", params={"page": page})

    def trending(self, time_window: str = "week") -> Dict[str, Any]:
        return self._request("GET", "/movies/trending", params={"timeWindow": time_window})

    def search(self, query: str, page: int = 1) -> Dict[str, Any]:
        return self._request("GET", "/movies/search", params={"query": query, "page": page})

    def discover(self, **filters) -> Dict[str, Any]:
        return self._request("GET", "/movies/discover", params=filters)

    def person(self, person_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/person/{person_id}")

    # ----- collections -----
    def _local_details(self, movie_ids: List[int]) -> List[Dict[str, Any]]:
        return resolve_movies(movie_ids, self.movie, max_workers=4)

    def favorites(self) -> List[Dict[str, Any]]:
        if not self.logged_in:
            return self._local_details(self.local.favorites())
        return self._request("GET", "/users/favorites")

    def toggle_favorite(self, movie_id: int) -> Dict[str, Any]:
        movie_id = parse_movie_id(movie_id)
        if not self.logged_in:
            added = self.local.toggle_favorite(movie_id)
            return {"favorites": self.local.favorites(), "isFavorite": added}
        return self._request("PUT", f"/users/favorites/{movie_id}")

    def watchlist(self) -> List[Dict[str, Any]]:
        if not self.logged_in:
            return self._local_details(self.local.watchlist())
        return self._request("GET", "/users/watchlist")

    def toggle_watchlist(self, movie_id: int) -> Dict[str, Any]:
        movie_id = parse_movie_id(movie_id)
        if not self.logged_in:
            added = self.local.toggle_watchlist(movie_id)
            return {"watchlist": self.local.watchlist(), "inWatchlist": added}
        return self._request("PUT", f"/users/watchlist/{movie_id}")

    def recently_viewed(self) -> List[Dict[str, Any]]:
        if not self.logged_in:
            return self._local_details(self.local.recently_viewed())
        return self._request("GET", "/users/recently-viewed")

    def record_view(self, movie_id: int) -> Dict[str, Any]:
        movie_id = parse_movie_id(movie_id)
        if not self.logged_in:
            return {"recentlyViewed": self.local.record_view(movie_id)}
        return self._request("PUT", f"/users/recently-viewed/{movie_id}")

    def check(self, movie_id: int) -> Dict[str, bool]:
        movie_id = parse_movie_id(movie_id)
        if not self.logged_in:
            return self.local.status(movie_id)
        return self._request("GET", f"/users/check/{movie_id}")

    # ----- reviews -----
    def movie_reviews(self, movie_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/reviews/{movie_id}")

    def create_review(self, movie_id: int, rating: int, comment: str) -> Dict[str, Any]:
        return self._request("POST", "/reviews", json={"movieId": movie_id, "rating": rating, "comment": comment})

    def update_review(self, review_id: int, **fields) -> Dict[str, Any]:
        return self._request("PUT", f"/reviews/{review_id}", json=fields)

    def delete_review(self, review_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/reviews/{review_id}")

    def my_reviews(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/reviews/user/my-reviews")
