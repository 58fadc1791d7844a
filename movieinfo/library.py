"""
Per-user movie collections: favorites, watchlist and recently viewed.

Two stores implement the same contract. `SQLiteCollectionStore` keeps one row
per (user, movie) in the account database; `LocalCollectionStore` keeps the
anonymous visitor's lists in a JSON document, the way the browser client keeps
them in local storage. Favorites and watchlist are membership sets with toggle
semantics; recently viewed is move-to-front with a cap.
"""
from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List

from .db import fits_integer, transaction
from .errors import ApiError, ValidationError

RECENTLY_VIEWED_CAP = 20

logger = logging.getLogger("movieinfo.library")


def parse_movie_id(value: Any) -> int:
    try:
        movie_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError("movieId must be an integer")
    if isinstance(value, bool) or movie_id <= 0 or not fits_integer(movie_id):
        raise ValidationError("movieId must be a positive integer")
    return movie_id


def move_to_front(items: List[int], movie_id: int, cap: int = RECENTLY_VIEWED_CAP) -> List[int]:
    return ([movie_id] + [m for m in items if m != movie_id])[:cap]


class CollectionStore(ABC):
    cap = RECENTLY_VIEWED_CAP

    @abstractmethod
    def favorites(self) -> List[int]: ...

    @abstractmethod
    def watchlist(self) -> List[int]: ...

    @abstractmethod
    def recently_viewed(self) -> List[int]:
        """Most recent first."""

    @abstractmethod
    def toggle_favorite(self, movie_id: int) -> bool:
        """Add if absent, remove if present. Returns the new membership."""

    @abstractmethod
    def toggle_watchlist(self, movie_id: int) -> bool: ...

    @abstractmethod
    def record_view(self, movie_id: int) -> List[int]:
        """Move `movie_id` to the front and return the capped list."""

    def status(self, movie_id: int) -> Dict[str, bool]:
        return {
            "isFavorite": movie_id in self.favorites(),
            "inWatchlist": movie_id in self.watchlist(),
        }


class SQLiteCollectionStore(CollectionStore):
    """Server-side collections for one account, one row per element."""

    def __init__(self, conn: sqlite3.Connection, user_id: int, cap: int = RECENTLY_VIEWED_CAP):
        self.conn = conn
        self.user_id = user_id
        self.cap = cap

    def _ids(self, sql: str) -> List[int]:
        return [row[0] for row in self.conn.execute(sql, (self.user_id,)).fetchall()]

    def favorites(self) -> List[int]:
        return self._ids("SELECT movie_id FROM favorites WHERE user_id = ? ORDER BY added_at, rowid")

    def watchlist(self) -> List[int]:
        return self._ids("SELECT movie_id FROM watchlist WHERE user_id = ? ORDER BY added_at, rowid")

    def recently_viewed(self) -> List[int]:
        return self._ids("SELECT movie_id FROM recently_viewed WHERE user_id = ? ORDER BY id DESC")

    def _toggle(self, table: str, movie_id: int) -> bool:
        with transaction(self.conn) as conn:
            removed = conn.execute(
                f"DELETE FROM {table} WHERE user_id = ? AND movie_id = ?",
                (self.user_id, movie_id),
            ).rowcount
            if removed:
                return False
            conn.execute(
                f"INSERT INTO {table} (user_id, movie_id) VALUES (?, ?)",
                (self.user_id, movie_id),
            )
            return True

    def toggle_favorite(self, movie_id: int) -> bool:
        return self._toggle("favorites", movie_id)

    def toggle_watchlist(self, movie_id: int) -> bool:
        return self._toggle("watchlist", movie_id)

    def record_view(self, movie_id: int) -> List[int]:
        with transaction(self.conn) as conn:
            conn.execute(
                "DELETE FROM recently_viewed WHERE user_id = ? AND movie_id = ?",
                (self.user_id, movie_id),
            )
            conn.execute(
                "INSERT INTO recently_viewed (user_id, movie_id) VALUES (?, ?)",
                (self.user_id, movie_id),
            )
            conn.execute(
                """
                DELETE FROM recently_viewed
                WHERE user_id = ? AND id NOT IN (
                    SELECT id FROM recently_viewed
                    WHERE user_id = ?
                    ORDER BY id DESC
                    LIMIT ?
                )
                """,
                (self.user_id, self.user_id, self.cap),
            )
        return self.recently_viewed()

    def status(self, movie_id: int) -> Dict[str, bool]:
        fav = self.conn.execute(
            "SELECT 1 FROM favorites WHERE user_id = ? AND movie_id = ? LIMIT 1",
            (self.user_id, movie_id),
        ).fetchone()
        watch = self.conn.execute(
            "SELECT 1 FROM watchlist WHERE user_id = ? AND movie_id = ? LIMIT 1",
            (self.user_id, movie_id),
        ).fetchone()
        return {"isFavorite": fav is not None, "inWatchlist": watch is not None}


class LocalCollectionStore(CollectionStore):
    """
    Anonymous collections kept in a JSON document under the same keys the
    browser client uses (`favorites`, `watchlist`, `recentlyViewed`).

    With no path the document lives only in memory.
    """

    KEYS = ("favorites", "watchlist", "recentlyViewed")

    def __init__(self, path: str | os.PathLike | None = None, cap: int = RECENTLY_VIEWED_CAP):
        self.path = Path(path) if path else None
        self.cap = cap
        self._lock = threading.Lock()
        self._data: Dict[str, List[int]] = {key: [] for key in self.KEYS}
        if self.path and self.path.exists():
            self._data.update(self._read())

    def _read(self) -> Dict[str, List[int]]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable local collections file %s: %s", self.path, e)
            return {}
        if not isinstance(raw, dict):
            return {}
        return {
            key: [m for m in raw[key] if isinstance(m, int) and not isinstance(m, bool)]
            for key in self.KEYS
            if isinstance(raw.get(key), list)
        }

    def _save(self) -> None:
        if not self.path:
            return
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._data, f)
        os.replace(tmp, self.path)

    def favorites(self) -> List[int]:
        return list(self._data["favorites"])

    def watchlist(self) -> List[int]:
        return list(self._data["watchlist"])

    def recently_viewed(self) -> List[int]:
        return list(self._data["recentlyViewed"])

    def _toggle(self, key: str, movie_id: int) -> bool:
        with self._lock:
            items = self._data[key]
            if movie_id in items:
                self._data[key] = [m for m in items if m != movie_id]
                added = False
            else:
                self._data[key] = items + [movie_id]
                added = True
            self._save()
        return added

    def toggle_favorite(self, movie_id: int) -> bool:
        return self._toggle("favorites", movie_id)

    def toggle_watchlist(self, movie_id: int) -> bool:
        return self._toggle("watchlist", movie_id)

    def record_view(self, movie_id: int) -> List[int]:
        with self._lock:
            self._data["recentlyViewed"] = move_to_front(self._data["recentlyViewed"], movie_id, self.cap)
            self._save()
        return self.recently_viewed()

    def clear(self) -> None:
        with self._lock:
            self._data = {key: [] for key in self.KEYS}
            self._save()


def resolve_movies(
    movie_ids: Iterable[int],
    lookup: Callable[[int], Dict[str, Any]],
    max_workers: int = 8,
) -> List[Dict[str, Any]]:
    """
    Fetch details for each id, keeping the stored order.

    An id whose lookup fails (removed upstream, catalog hiccup) is dropped
    instead of failing the whole list.
    """
    ids = list(movie_ids)
    if not ids:
        return []

    def fetch(movie_id: int) -> Dict[str, Any] | None:
        try:
            return lookup(movie_id)
        except ApiError as e:
            logger.warning("Dropping movie %s from list: %s", movie_id, e.message)
            return None

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(ids)))) as pool:
        results = list(pool.map(fetch, ids))
    return [movie for movie in results if movie is not None]
