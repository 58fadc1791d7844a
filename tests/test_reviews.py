import sqlite3
import threading

import pytest

from conftest import bearer
from movieinfo.db import connect
from movieinfo.errors import ValidationError
from movieinfo.reviews import create_review, validate_comment, validate_rating


def _post_review(client, token, movie_id=27205, rating=9, comment="Great"):
    return client.post(
        "/api/reviews",
        headers=bearer(token),
        json={"movieId": movie_id, "rating": rating, "comment": comment},
    )


def test_create_review_and_list_for_movie(client, register):
    token = register()["token"]
    resp = _post_review(client, token)
    assert resp.status_code == 201
    review = resp.get_json()
    assert review["movieId"] == 27205
    assert review["rating"] == 9
    assert review["comment"] == "Great"
    assert review["user"]["name"] == "Alice"

    listed = client.get("/api/reviews/27205").get_json()
    assert len(listed) == 1
    assert listed[0]["user"]["name"] == "Alice"
    assert listed[0]["id"] == review["id"]


def test_reviews_for_movie_are_newest_first(client, register):
    alice = register()["token"]
    bob = register(name="Bob", email="bob@example.com")["token"]
    first = _post_review(client, alice, comment="first").get_json()
    second = _post_review(client, bob, comment="second").get_json()

    listed = client.get("/api/reviews/27205").get_json()
    assert [r["id"] for r in listed] == [second["id"], first["id"]]


def test_second_review_for_same_movie_is_rejected(client, register):
    token = register()["token"]
    assert _post_review(client, token).status_code == 201

    resp = _post_review(client, token, rating=3, comment="Changed my mind")
    assert resp.status_code == 400
    assert resp.get_json() == {"message": "You have already reviewed this movie"}
    assert len(client.get("/api/reviews/27205").get_json()) == 1


def test_concurrent_duplicate_creates_store_one_review(app, register):
    token = register()["token"]
    barrier = threading.Barrier(2)
    statuses = []

    def worker():
        local_client = app.test_client()
        barrier.wait()
        statuses.append(_post_review(local_client, token).status_code)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(statuses) == [201, 400]
    assert len(app.test_client().get("/api/reviews/27205").get_json()) == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"movieId": 27205, "rating": 0, "comment": "x"},
        {"movieId": 27205, "rating": 11, "comment": "x"},
        {"movieId": 27205, "rating": 7.5, "comment": "x"},
        {"movieId": 27205, "rating": "9", "comment": "x"},
        {"movieId": 27205, "rating": 9, "comment": "   "},
        {"movieId": 27205, "rating": 9, "comment": "x" * 1001},
        {"movieId": "abc", "rating": 9, "comment": "x"},
        {"rating": 9, "comment": "x"},
    ],
)
def test_create_review_validation(client, register, payload):
    token = register()["token"]
    resp = client.post("/api/reviews", headers=bearer(token), json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["message"]


def test_rating_and_comment_validators():
    assert validate_rating(1) == 1
    assert validate_rating(10.0) == 10
    with pytest.raises(ValidationError):
        validate_rating(True)
    assert validate_comment("  ok  ") == "ok"
    assert len(validate_comment("x" * 1000)) == 1000


def test_create_review_requires_session(client):
    resp = client.post("/api/reviews", json={"movieId": 1, "rating": 5, "comment": "x"})
    assert resp.status_code == 401


def test_owner_can_update_review(client, register):
    token = register()["token"]
    review = _post_review(client, token).get_json()

    resp = client.put(f"/api/reviews/{review['id']}", headers=bearer(token), json={"rating": 7})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["rating"] == 7
    assert body["comment"] == "Great"
    assert body["updated_at"]


def test_update_requires_a_field(client, register):
    token = register()["token"]
    review = _post_review(client, token).get_json()
    resp = client.put(f"/api/reviews/{review['id']}", headers=bearer(token), json={})
    assert resp.status_code == 400


def test_other_user_cannot_update_or_delete(client, register):
    alice = register()["token"]
    bob = register(name="Bob", email="bob@example.com")["token"]
    review = _post_review(client, alice).get_json()

    update = client.put(f"/api/reviews/{review['id']}", headers=bearer(bob), json={"rating": 1})
    delete = client.delete(f"/api/reviews/{review['id']}", headers=bearer(bob))
    assert update.status_code == 403
    assert delete.status_code == 403
    assert client.get("/api/reviews/27205").get_json()[0]["rating"] == 9


def test_admin_may_delete_but_not_edit_others_reviews(client, register, set_role):
    alice = register()["token"]
    admin = register(name="Root", email="root@example.com")
    set_role(admin["id"], "admin")
    review = _post_review(client, alice).get_json()

    update = client.put(f"/api/reviews/{review['id']}", headers=bearer(admin["token"]), json={"rating": 1})
    assert update.status_code == 403

    delete = client.delete(f"/api/reviews/{review['id']}", headers=bearer(admin["token"]))
    assert delete.status_code == 200
    assert delete.get_json() == {"message": "Review deleted"}
    assert client.get("/api/reviews/27205").get_json() == []


def test_owner_delete_then_missing_review_is_404(client, register):
    token = register()["token"]
    review = _post_review(client, token).get_json()
    assert client.delete(f"/api/reviews/{review['id']}", headers=bearer(token)).status_code == 200

    resp = client.delete(f"/api/reviews/{review['id']}", headers=bearer(token))
    assert resp.status_code == 404
    assert resp.get_json() == {"message": "Review not found"}


def test_my_reviews_lists_only_own(client, register):
    alice = register()["token"]
    bob = register(name="Bob", email="bob@example.com")["token"]
    _post_review(client, alice, movie_id=603)
    _post_review(client, alice, movie_id=550)
    _post_review(client, bob, movie_id=603)

    mine = client.get("/api/reviews/user/my-reviews", headers=bearer(alice)).get_json()
    assert sorted(r["movieId"] for r in mine) == [550, 603]
    assert all(r["user"]["name"] == "Alice" for r in mine)


def test_ids_beyond_integer_range(client, register):
    token = register()["token"]
    huge = 2**63

    assert client.get(f"/api/reviews/{huge}").status_code == 400
    assert _post_review(client, token, movie_id=huge).status_code == 400
    assert client.put(f"/api/reviews/{huge}", headers=bearer(token), json={"rating": 5}).status_code == 404
    assert client.delete(f"/api/reviews/{huge}", headers=bearer(token)).status_code == 404


def test_foreign_key_failure_is_not_reported_as_duplicate(app, db_path):
    conn = connect(db_path)
    try:
        with pytest.raises(sqlite3.IntegrityError):
            create_review(conn, {"id": 4242}, {"movieId": 603, "rating": 8, "comment": "Ghost"})
    finally:
        conn.close()
