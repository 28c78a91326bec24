# ============================================================================
# FILE: tests/test_auth.py
# ============================================================================
from conftest import API, PNG_BYTES, create_user, login, register

from app.db.models.user import User
from app.services.user_service import user_service


def test_register_login_and_fetch_current_user(client, db_session):
    response = register(client, "alice", "secret1", full_name="Alice Liddell")
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["statusCode"] == 201
    assert body["data"]["username"] == "alice"

    stored = db_session.query(User).filter(User.username == "alice").one()
    assert stored.hashed_password != "secret1"

    response = client.post(
        f"{API}/users/login", json={"username_or_email": "alice", "password": "secret1"}
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["access_token"] and data["refresh_token"]
    assert set(data) == {"user", "access_token", "refresh_token"}
    assert "hashed_password" not in data["user"]
    assert "access_token" in response.cookies
    assert "refresh_token" in response.cookies
    client.cookies.clear()

    wrong = client.post(
        f"{API}/users/login", json={"username_or_email": "alice", "password": "wrong-password"}
    )
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid user credentials."
    assert wrong.json()["success"] is False

    anonymous = client.get(f"{API}/users/get-current-user")
    assert anonymous.status_code == 401
    assert anonymous.json()["message"] == (
        "Authentication required. Please log in to access this resource."
    )

    me = client.get(
        f"{API}/users/get-current-user",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert me.status_code == 200
    user = me.json()["data"]
    assert user["username"] == "alice"
    assert "hashed_password" not in user
    assert "password" not in user
    assert "refresh_token_hash" not in user
    assert "refresh_token" not in user


def test_login_accepts_email_case_insensitively(client):
    register(client, "alice")
    response = client.post(
        f"{API}/users/login",
        json={"username_or_email": "ALICE@mail.com", "password": "secret1"},
    )
    assert response.status_code == 200


def test_access_cookie_authenticates(client):
    register(client, "alice")
    client.post(f"{API}/users/login", json={"username_or_email": "alice", "password": "secret1"})

    response = client.get(f"{API}/users/get-current-user")
    assert response.status_code == 200
    client.cookies.clear()


def test_register_validation(client):
    missing = client.post(f"{API}/users/register", data={"username": "bob"})
    assert missing.status_code == 400
    assert missing.json()["message"] == "All fields are required."

    bad_email = register(client, "bob", email="not-an-email")
    assert bad_email.status_code == 400
    assert any(error.startswith("email") for error in bad_email.json()["errors"])

    bad_username = register(client, "bob-smith")
    assert bad_username.status_code == 400

    short_password = register(client, "bob", password="123")
    assert short_password.status_code == 400


def test_duplicate_registration_conflicts(client):
    assert register(client, "alice").status_code == 201

    again = register(client, "ALICE", email="other@mail.com")
    assert again.status_code == 409

    same_email = register(client, "alice2", email="alice@mail.com")
    assert same_email.status_code == 409


def test_registration_race_removes_transferred_avatar(client, storage, db_session, monkeypatch):
    assert register(client, "alice").status_code == 201

    # The duplicate slips past the lookup and is caught by the unique index
    monkeypatch.setattr(user_service, "find_conflicting_user", lambda *args: None)
    response = register(client, "alice", files={"avatar": ("me.png", PNG_BYTES, "image/png")})

    assert response.status_code == 409
    assert len(storage.uploaded) == 1
    assert storage.deleted == [("videotube/image_1", "image")]
    assert db_session.query(User).count() == 1


def test_guest_only_routes_reject_authenticated_callers(client):
    _, headers = create_user(client, "alice")

    response = client.post(
        f"{API}/users/register",
        data={"username": "bob", "email": "bob@mail.com", "full_name": "Bob Tester", "password": "secret1"},
        headers=headers,
    )
    assert response.status_code == 409
    assert response.json()["message"] == (
        "Already authenticated. Please log out first to access this resource."
    )

    login_again = client.post(
        f"{API}/users/login",
        json={"username_or_email": "alice", "password": "secret1"},
        headers=headers,
    )
    assert login_again.status_code == 409

    # Without credentials the same route is open
    assert register(client, "bob").status_code == 201


def test_optional_auth_never_rejects(client):
    response = client.get(f"{API}/videos", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 200

    client.cookies.set("access_token", "garbage")
    response = client.get(f"{API}/videos")
    assert response.status_code == 200
    client.cookies.clear()


def test_second_refresh_token_supersedes_the_first(client):
    register(client, "alice")
    first = client.post(
        f"{API}/users/login", json={"username_or_email": "alice", "password": "secret1"}
    ).json()["data"]["refresh_token"]
    client.cookies.clear()
    second = client.post(
        f"{API}/users/login", json={"username_or_email": "alice", "password": "secret1"}
    ).json()["data"]["refresh_token"]
    client.cookies.clear()

    stale = client.post(f"{API}/users/refresh-access-token", json={"refresh_token": first})
    assert stale.status_code == 401
    assert stale.json()["message"] == "Refresh token is expired or used."

    fresh = client.post(f"{API}/users/refresh-access-token", json={"refresh_token": second})
    assert fresh.status_code == 200
    rotated = fresh.json()["data"]["refresh_token"]
    assert set(fresh.json()["data"]) == {"access_token", "refresh_token"}
    assert rotated != second
    client.cookies.clear()

    # The token that was just exchanged is now used up
    reused = client.post(f"{API}/users/refresh-access-token", json={"refresh_token": second})
    assert reused.status_code == 401

    assert client.post(
        f"{API}/users/refresh-access-token", json={"refresh_token": rotated}
    ).status_code == 200
    client.cookies.clear()


def test_refresh_rejects_malformed_and_missing_tokens(client):
    malformed = client.post(f"{API}/users/refresh-access-token", json={"refresh_token": "abc"})
    assert malformed.status_code == 401
    assert malformed.json()["message"] == "Invalid refresh token."

    missing = client.post(f"{API}/users/refresh-access-token")
    assert missing.status_code == 401


def test_logout_invalidates_refresh_token(client):
    register(client, "alice")
    login_data = client.post(
        f"{API}/users/login", json={"username_or_email": "alice", "password": "secret1"}
    ).json()["data"]
    client.cookies.clear()
    headers = {"Authorization": f"Bearer {login_data['access_token']}"}

    response = client.delete(f"{API}/users/logout", headers=headers)
    assert response.status_code == 200

    refreshed = client.post(
        f"{API}/users/refresh-access-token", json={"refresh_token": login_data["refresh_token"]}
    )
    assert refreshed.status_code == 401


def test_change_password(client):
    _, headers = create_user(client, "alice")

    wrong = client.patch(
        f"{API}/users/change-current-password",
        json={"old_password": "nope", "new_password": "secret2"},
        headers=headers,
    )
    assert wrong.status_code == 401

    same = client.patch(
        f"{API}/users/change-current-password",
        json={"old_password": "secret1", "new_password": "secret1"},
        headers=headers,
    )
    assert same.status_code == 400

    ok = client.patch(
        f"{API}/users/change-current-password",
        json={"old_password": "secret1", "new_password": "secret2"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert login(client, "alice", "secret2")


def test_update_account_details(client):
    create_user(client, "bob")
    _, headers = create_user(client, "alice")

    taken = client.patch(f"{API}/users/update-account-details", json={"username": "bob"}, headers=headers)
    assert taken.status_code == 409

    empty = client.patch(f"{API}/users/update-account-details", json={}, headers=headers)
    assert empty.status_code == 400

    ok = client.patch(
        f"{API}/users/update-account-details",
        json={"username": "Alice_B", "full_name": "Alice Bee"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert ok.json()["data"]["username"] == "alice_b"
    assert ok.json()["data"]["full_name"] == "Alice Bee"


def test_channel_profile_reports_subscription_state(client):
    alice_id, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    client.post(f"{API}/subscriptions/channel/{alice_id}", headers=bob)

    as_bob = client.get(f"{API}/users/channel/alice", headers=bob).json()["data"]
    assert as_bob["subscriber_count"] == 1
    assert as_bob["is_subscribed"] is True

    anonymous = client.get(f"{API}/users/channel/alice").json()["data"]
    assert anonymous["is_subscribed"] is False

    assert client.get(f"{API}/users/channel/nobody").status_code == 404


def test_unknown_route_uses_envelope(client):
    response = client.get(f"{API}/does-not-exist")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["statusCode"] == 404
    assert body["data"] is None


def test_health_check(client):
    response = client.get(f"{API}/health-check")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "healthy"
    assert data["database"]["status"] == "connected"
    assert data["uptime"]["seconds"] >= 0
