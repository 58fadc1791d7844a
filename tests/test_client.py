import pytest
import requests

from movieinfo.client import ClientError, MovieInfoClient
from movieinfo.errors import NotFound, Unauthenticated, UpstreamError
from movieinfo.library import LocalCollectionStore


class FlaskBridge:
    """requests.Session look-alike that sends calls into a Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client

    def request(self, method, url, headers=None, timeout=None, json=None, params=None):
        path = url[len("http://movieinfo.test"):]
        resp = self.test_client.open(path, method=method, headers=headers, json=json, query_string=params)
        out = requests.Response()
        out.status_code = resp.status_code
        out.reason = resp.status
        out._content = resp.get_data()
        out.headers["Content-Type"] = resp.content_type
        return out


class DownSession:
    def request(self, *args, **kwargs):
        raise requests.exceptions.ConnectionError("refused")


@pytest.fixture
def api(client):
    return MovieInfoClient(base_url="http://movieinfo.test/api", session=FlaskBridge(client))


def test_anonymous_collections_use_local_store(tmp_path, monkeypatch):
    store = LocalCollectionStore(tmp_path / "anon.json")
    api = MovieInfoClient(local_store=store, session=DownSession())
    monkeypatch.setattr(api, "movie", lambda movie_id: {"id": movie_id, "title": f"Movie {movie_id}"})

    assert api.toggle_favorite(603) == {"favorites": [603], "isFavorite": True}
    assert api.toggle_watchlist("550") == {"watchlist": [550], "inWatchlist": True}
    assert api.record_view(155) == {"recentlyViewed": [155]}
    assert api.check(603) == {"isFavorite": True, "inWatchlist": False}
    assert api.favorites() == [{"id": 603, "title": "Movie 603"}]
    assert [m["id"] for m in api.recently_viewed()] == [155]

    assert LocalCollectionStore(tmp_path / "anon.json").favorites() == [603]


def test_anonymous_details_skip_unresolvable_movies(monkeypatch):
    api = MovieInfoClient(session=DownSession())
    api.toggle_watchlist(1)
    api.toggle_watchlist(2)

    def movie(movie_id):
        if movie_id == 1:
            raise NotFound()
        return {"id": movie_id}

    monkeypatch.setattr(api, "movie", movie)
    assert api.watchlist() == [{"id": 2}]


def test_signed_in_collections_go_to_server_and_local_is_not_merged(api):
    api.toggle_favorite(27205)
    api.register("Alice", "alice@example.com", "secret123")
    assert api.logged_in

    assert api.toggle_favorite(603) == {"favorites": [603], "isFavorite": True}
    assert [m["id"] for m in api.favorites()] == [603]
    assert api.local.favorites() == [27205]

    api.logout()
    assert api.check(603) == {"isFavorite": False, "inWatchlist": False}
    assert api.check(27205)["isFavorite"] is True


def test_login_reviews_and_catalog(api):
    api.register("Alice", "alice@example.com", "secret123")
    api.logout()
    user = api.login("alice@example.com", "secret123")
    assert user["favorites"] == []

    review = api.create_review(603, 8, "Sharp")
    assert api.update_review(review["id"], comment="Sharper")["comment"] == "Sharper"
    assert [r["id"] for r in api.my_reviews()] == [review["id"]]
    assert api.movie_reviews(603)[0]["isOwn"] is True
    assert api.delete_review(review["id"]) == {"message": "Review deleted"}

    assert api.movie(603)["title"] == "The Matrix"
    assert api.person(6384)["name"] == "Keanu Reeves"


def test_error_mapping(api):
    with pytest.raises(Unauthenticated):
        api.login("nobody@example.com", "x")
    with pytest.raises(NotFound):
        api.movie(424242)

    api.register("Alice", "alice@example.com", "secret123")
    api.create_review(603, 8, "Sharp")
    with pytest.raises(ClientError) as exc:
        api.create_review(603, 9, "Again")
    assert exc.value.status_code == 400
    assert exc.value.message == "You have already reviewed this movie"


def test_unreachable_server_is_upstream_error():
    api = MovieInfoClient(session=DownSession())
    with pytest.raises(UpstreamError):
        api.movie(603)
