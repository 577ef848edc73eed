import pytest
from fastapi.testclient import TestClient
from firebase_admin import auth as firebase_auth
from pytest_mock import MockerFixture

from squadlink.api.deps import get_current_user_id
from squadlink.core.config import settings
from squadlink.main import app

API = settings.API_V1_STR


def test_search_users(client: TestClient, add_user):
    add_user(id="alice", username="alice")
    add_user(id="bob", username="alpha")

    r = client.get(f"{API}/users/search", params={"query": "Al"})

    assert r.status_code == 200
    assert [(u["id"], u["friendship_status"]) for u in r.json()] == [("bob", "none")]


def test_get_user_not_found(client: TestClient):
    r = client.get(f"{API}/users/ghost")

    assert r.status_code == 404


def test_username_availability(client: TestClient, store):
    store.seed("usernames/taken", {"uid": "bob"})

    r = client.get(f"{API}/users/username-available/Taken")

    assert r.json() == {"username": "taken", "available": False, "reason": "taken"}


def test_me_update_and_username(client: TestClient, add_user):
    add_user(id="alice", username="alice_old")

    r = client.patch(
        f"{API}/me/", json={"bio": "Support main", "gaming_interests": ["MOBA"]}
    )
    assert r.status_code == 200
    assert r.json()["bio"] == "Support main"
    assert r.json()["gaming_interests"] == ["moba"]

    r = client.put(f"{API}/me/username", json={"username": "Alice_New"})
    assert r.status_code == 200
    assert client.get(f"{API}/me/").json()["username"] == "alice_new"


def test_me_rejects_too_many_genres(client: TestClient, add_user):
    add_user(id="alice")

    genres = ["fps", "action", "moba", "rpg", "mmorpg", "adventure", "strategy"]

    r = client.patch(
        f"{API}/me/", json={"gaming_interests": [*genres, "puzzle", "racing"]}
    )

    assert r.status_code == 422


# --------------------------------------
# authentication
# --------------------------------------


@pytest.fixture
def unauthenticated_client(client: TestClient) -> TestClient:
    app.dependency_overrides.pop(get_current_user_id, None)
    return client


def test_missing_token(unauthenticated_client: TestClient):
    r = unauthenticated_client.get(f"{API}/friends/")

    assert r.status_code == 401


def test_invalid_token(unauthenticated_client: TestClient, mocker: MockerFixture):
    mocker.patch("squadlink.api.deps.get_firebase_app")
    mocker.patch(
        "firebase_admin.auth.verify_id_token",
        side_effect=firebase_auth.InvalidIdTokenError("bad token"),
    )

    r = unauthenticated_client.get(
        f"{API}/friends/", headers={"Authorization": "Bearer nope"}
    )

    assert r.status_code == 401


def test_valid_token(unauthenticated_client: TestClient, mocker: MockerFixture, add_friendship):
    mocker.patch("squadlink.api.deps.get_firebase_app")
    verify = mocker.patch(
        "firebase_admin.auth.verify_id_token", return_value={"uid": "alice"}
    )
    add_friendship("alice", "bob")

    r = unauthenticated_client.get(
        f"{API}/friends/count", headers={"Authorization": "Bearer good-token"}
    )

    assert r.status_code == 200
    assert r.json() == 1
    assert verify.call_args.args[0] == "good-token"
