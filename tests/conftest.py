import json

import pytest
import requests

from movieinfo import accounts, create_app
from movieinfo.db import connect
from movieinfo.tmdb import TMDbClient

SECRET = "test-secret-that-is-long-enough-for-hs256"
TMDB_TEST_BASE = "https://tmdb.test/3"

MOVIES = {
    603: {"id": 603, "title": "The Matrix", "release_date": "1999-03-30"},
    27205: {"id": 27205, "title": "Inception", "release_date": "2010-07-15"},
    550: {"id": 550, "title": "Fight Club", "release_date": "1999-10-15"},
    155: {"id": 155, "title": "The Dark Knight", "release_date": "2008-07-16"},
}


def make_response(status: int, body) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.reason = "OK" if status < 400 else "Error"
    resp._content = json.dumps(body).encode()
    resp.headers["Content-Type"] = "application/json"
    return resp


class FakeSession:
    """Stands in for requests.Session: path -> body, (status, body) or an exception."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, params=None, timeout=None):
        path = url[len(TMDB_TEST_BASE):]
        self.calls.append({"path": path, "params": params, "timeout": timeout})
        entry = self.routes.get(path)
        if entry is None:
            return make_response(404, {"status_message": "The resource you requested could not be found."})
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, tuple):
            return make_response(*entry)
        return make_response(200, entry)


def default_routes():
    routes = {f"/movie/{movie_id}": body for movie_id, body in MOVIES.items()}
    routes.update({
        "/movie/popular": {"page": 1, "results": [MOVIES[603]], "total_pages": 1, "total_results": 1},
        "/movie/top_rated": {"page": 1, "results": [MOVIES[155]], "total_pages": 1, "total_results": 1},
        "/trending/movie/week": {"page": 1, "results": [MOVIES[27205]]},
        "/genre/movie/list": {"genres": [{"id": 28, "name": "Action"}]},
        "/search/movie": {"page": 1, "results": [MOVIES[603]]},
        "/discover/movie": {"page": 1, "results": [MOVIES[550]]},
        "/movie/603/credits": {"id": 603, "cast": [{"id": 6384, "name": "Keanu Reeves"}]},
        "/person/6384": {"id": 6384, "name": "Keanu Reeves"},
        "/person/6384/movie_credits": {"id": 6384, "cast": [MOVIES[603]]},
    })
    return routes


@pytest.fixture
def tmdb_session():
    return FakeSession(default_routes())


@pytest.fixture
def catalog(tmdb_session):
    return TMDbClient(api_key="test-key", base_url=TMDB_TEST_BASE, timeout=2, session=tmdb_session)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "movie_info_test.db")


@pytest.fixture
def app(db_path, catalog):
    return create_app({
        "ENV": "production",
        "DATABASE_PATH": db_path,
        "JWT_SECRET": SECRET,
        "TMDB_CLIENT": catalog,
        "LOOKUP_WORKERS": 4,
    })


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    def _register(name="Alice", email="alice@example.com", password="secret123"):
        resp = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _register


@pytest.fixture
def set_role(db_path):
    def _set_role(user_id, role):
        conn = connect(db_path)
        try:
            accounts.set_role(conn, user_id, role)
        finally:
            conn.close()
    return _set_role


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
