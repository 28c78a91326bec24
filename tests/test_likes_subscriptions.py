# ============================================================================
# FILE: tests/test_likes_subscriptions.py
# ============================================================================
from sqlalchemy.orm import Session

from conftest import API, create_user, upload_video

from app.db.models.like import Like
from app.db.models.subscription import Subscription
from app.services.like_service import like_service
from app.services.subscription_service import subscription_service


def _is_liked(client, video_id, headers):
    return client.get(f"{API}/videos/{video_id}", headers=headers).json()["data"]["is_liked"]


def test_like_toggle_twice_restores_original_state(client, db_session):
    _, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    video = upload_video(client, alice)

    assert _is_liked(client, video["id"], bob) is False

    liked = client.post(f"{API}/likes/toggle/video/{video['id']}", headers=bob)
    assert liked.status_code == 201
    assert liked.json()["data"]["is_liked"] is True
    assert _is_liked(client, video["id"], bob) is True

    unliked = client.post(f"{API}/likes/toggle/video/{video['id']}", headers=bob)
    assert unliked.status_code == 200
    assert unliked.json()["data"]["is_liked"] is False
    assert _is_liked(client, video["id"], bob) is False

    client.post(f"{API}/likes/toggle/video/{video['id']}", headers=bob)
    assert _is_liked(client, video["id"], bob) is True
    assert db_session.query(Like).count() == 1


def test_liked_videos_list(client):
    _, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    video = upload_video(client, alice)
    client.post(f"{API}/likes/toggle/video/{video['id']}", headers=bob)

    data = client.get(f"{API}/likes/videos", headers=bob).json()["data"]
    assert data["total_docs"] == 1
    assert data["videos"][0]["id"] == video["id"]

    assert client.get(f"{API}/likes/videos", params={"limit": 51}, headers=bob).status_code == 400


def test_liking_unpublished_or_missing_targets(client):
    _, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    draft = upload_video(client, alice, publish=False)

    assert client.post(f"{API}/likes/toggle/video/{draft['id']}", headers=alice).status_code == 403
    assert client.post(f"{API}/likes/toggle/video/{draft['id']}", headers=bob).status_code == 404
    assert client.post(f"{API}/likes/toggle/comment/999", headers=bob).status_code == 404
    assert client.post(f"{API}/likes/toggle/tweet/999", headers=bob).status_code == 404
    assert client.post(f"{API}/likes/toggle/video/{draft['id']}").status_code == 401


def test_comment_and_tweet_likes_toggle(client):
    _, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    video = upload_video(client, alice)
    comment = client.post(
        f"{API}/comments/{video['id']}", json={"content": "Nice!"}, headers=alice
    ).json()["data"]
    tweet = client.post(f"{API}/tweets", json={"content": "hello"}, headers=alice).json()["data"]

    assert client.post(f"{API}/likes/toggle/comment/{comment['id']}", headers=bob).status_code == 201
    assert client.post(f"{API}/likes/toggle/tweet/{tweet['id']}", headers=bob).status_code == 201

    comments = client.get(f"{API}/comments/{video['id']}", headers=bob).json()["data"]["comments"]
    assert comments[0]["likes_count"] == 1
    assert comments[0]["is_liked"] is True

    tweets = client.get(f"{API}/tweets/user/{tweet['owner_id']}").json()["data"]
    assert tweets[0]["likes_count"] == 1

    assert client.post(f"{API}/likes/toggle/tweet/{tweet['id']}", headers=bob).status_code == 200
    tweets = client.get(f"{API}/tweets/user/{tweet['owner_id']}").json()["data"]
    assert tweets[0]["likes_count"] == 0


def test_self_subscription_is_always_rejected(client, monkeypatch):
    alice_id, alice = create_user(client, "alice")

    def no_writes(*args, **kwargs):
        raise AssertionError("self-subscription must be rejected before touching the database")

    monkeypatch.setattr(Session, "add", no_writes)
    first = client.post(f"{API}/subscriptions/channel/{alice_id}", headers=alice)
    second = client.post(f"{API}/subscriptions/channel/{alice_id}", headers=alice)

    assert first.status_code == 400
    assert second.status_code == 400
    assert first.json()["message"] == "You cannot subscribe to your own channel."


def test_subscription_toggle_and_listings(client, db_session):
    alice_id, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")

    subscribed = client.post(f"{API}/subscriptions/channel/{alice_id}", headers=bob)
    assert subscribed.status_code == 201
    assert subscribed.json()["data"]["is_subscribed"] is True

    count = client.get(f"{API}/subscriptions/channel/{alice_id}").json()["data"]
    assert count["subscriber_count"] == 1

    following = client.get(f"{API}/subscriptions", headers=bob).json()["data"]
    assert [channel["username"] for channel in following] == ["alice"]

    subscribers = client.get(f"{API}/subscriptions/subscribers/{alice_id}", headers=alice)
    assert [user["username"] for user in subscribers.json()["data"]] == ["bob"]

    snooping = client.get(f"{API}/subscriptions/subscribers/{alice_id}", headers=bob)
    assert snooping.status_code == 403

    unsubscribed = client.post(f"{API}/subscriptions/channel/{alice_id}", headers=bob)
    assert unsubscribed.status_code == 200
    assert db_session.query(Subscription).count() == 0


def test_subscribing_to_missing_channel(client):
    _, bob = create_user(client, "bob")

    assert client.post(f"{API}/subscriptions/channel/999", headers=bob).status_code == 404
    assert client.get(f"{API}/subscriptions/channel/999").status_code == 404


def test_like_created_concurrently_is_a_conflict(client, db_session, monkeypatch):
    _, alice = create_user(client, "alice")
    bob_id, bob = create_user(client, "bob")
    video = upload_video(client, alice)

    # Another request inserted the like between the lookup and the insert
    db_session.add(Like(liked_by_id=bob_id, video_id=video["id"]))
    db_session.commit()
    monkeypatch.setattr(like_service, "find_like", lambda *args: None)

    response = client.post(f"{API}/likes/toggle/video/{video['id']}", headers=bob)

    assert response.status_code == 409
    assert response.json()["success"] is False
    assert db_session.query(Like).count() == 1


def test_subscription_created_concurrently_is_a_conflict(client, db_session, monkeypatch):
    alice_id, _ = create_user(client, "alice")
    bob_id, bob = create_user(client, "bob")

    db_session.add(Subscription(subscriber_id=bob_id, channel_id=alice_id))
    db_session.commit()
    monkeypatch.setattr(subscription_service, "find_subscription", lambda *args: None)

    response = client.post(f"{API}/subscriptions/channel/{alice_id}", headers=bob)

    assert response.status_code == 409
    assert db_session.query(Subscription).count() == 1
