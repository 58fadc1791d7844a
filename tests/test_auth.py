from datetime import datetime, timedelta, timezone

import jwt
import pytest

from conftest import SECRET, bearer
from movieinfo import accounts
from movieinfo.auth import (
    authorize,
    bearer_token,
    decode_token,
    is_admin,
    is_owner,
    issue_token,
    require_role,
    resolve_token,
)
from movieinfo.db import get_db
from movieinfo.errors import Forbidden, Unauthenticated


def test_token_round_trip_and_expiry_is_thirty_days():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    token = issue_token(42, SECRET, now=now)

    claims = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})
    assert claims["id"] == 42
    assert claims["exp"] - claims["iat"] == 30 * 24 * 3600


def test_decode_rejects_expired_token():
    issued = datetime.now(timezone.utc) - timedelta(days=31)
    token = issue_token(1, SECRET, now=issued)
    with pytest.raises(Unauthenticated):
        decode_token(token, SECRET)


def test_decode_rejects_tampered_tokens():
    with pytest.raises(Unauthenticated):
        decode_token(issue_token(1, "some-other-secret-also-32-bytes-long!!"), SECRET)

    header, _payload, signature = issue_token(1, SECRET).split(".")
    _h, other_payload, _s = issue_token(2, SECRET).split(".")
    with pytest.raises(Unauthenticated):
        decode_token(f"{header}.{other_payload}A.{signature}", SECRET)
    with pytest.raises(Unauthenticated):
        decode_token(f"{header}.{other_payload}.{signature}", SECRET)
    with pytest.raises(Unauthenticated):
        decode_token("not-a-token", SECRET)


@pytest.mark.parametrize(
    "header, expected",
    [
        (None, None),
        ("", None),
        ("Bearer", None),
        ("Bearer ", None),
        ("Basic abc", None),
        ("Bearer abc.def.ghi", "abc.def.ghi"),
    ],
)
def test_bearer_token_parsing(header, expected):
    assert bearer_token(header) == expected


def test_resolve_token_loads_current_user_without_password(app, register):
    user = register()
    with app.app_context():
        resolved = resolve_token(user["token"])
    assert resolved["id"] == user["id"]
    assert resolved["role"] == "user"
    assert "password_hash" not in resolved


def test_resolve_token_for_deleted_user_fails(app, client, register):
    user = register()
    with app.app_context():
        accounts.delete_user(get_db(), user["id"])
        with pytest.raises(Unauthenticated):
            resolve_token(user["token"])

    resp = client.get("/api/auth/profile", headers=bearer(user["token"]))
    assert resp.status_code == 401


def test_expired_and_tampered_tokens_get_401(client, register):
    user = register()
    expired = issue_token(user["id"], SECRET, now=datetime.now(timezone.utc) - timedelta(days=40))
    forged = issue_token(user["id"], "attacker-secret-that-is-long-enough-too")

    for token in (expired, forged, "garbage"):
        resp = client.get("/api/users/check/603", headers=bearer(token))
        assert resp.status_code == 401


def test_optional_resolution_proceeds_anonymously(client, register):
    user = register()
    client.post(
        "/api/reviews",
        headers=bearer(user["token"]),
        json={"movieId": 603, "rating": 9, "comment": "Whoa"},
    )

    anonymous = client.get("/api/reviews/603").get_json()
    bad_token = client.get("/api/reviews/603", headers=bearer("garbage")).get_json()
    signed_in = client.get("/api/reviews/603", headers=bearer(user["token"])).get_json()

    assert "isOwn" not in anonymous[0]
    assert "isOwn" not in bad_token[0]
    assert signed_in[0]["isOwn"] is True


def test_role_and_ownership_predicates():
    admin = {"id": 1, "role": "admin"}
    alice = {"id": 2, "role": "user"}
    review = {"id": 10, "user_id": 2}

    assert is_admin(admin) and not is_admin(alice) and not is_admin(None)
    assert is_owner(alice, review) and not is_owner(admin, review)

    require_role(admin, "admin")
    with pytest.raises(Forbidden):
        require_role(alice, "admin")

    authorize(alice, "review:update", review)
    authorize(alice, "review:delete", review)
    authorize(admin, "review:delete", review)
    with pytest.raises(Forbidden):
        authorize(admin, "review:update", review)
    with pytest.raises(Forbidden):
        authorize({"id": 3, "role": "user"}, "review:delete", review)
