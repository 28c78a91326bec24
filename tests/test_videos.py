# ============================================================================
# FILE: tests/test_videos.py
# ============================================================================
from conftest import API, PNG_BYTES, create_user, upload_video, video_files

from app.db.models.video import Video


def test_unpublished_video_is_hidden_from_others(client):
    _, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    video = upload_video(client, alice, publish=False)

    assert client.get(f"{API}/videos/{video['id']}", headers=alice).status_code == 200
    assert client.get(f"{API}/videos/{video['id']}", headers=bob).status_code == 404
    assert client.get(f"{API}/videos/{video['id']}").status_code == 404


def test_foreign_video_delete_is_404_when_unpublished_and_403_when_published(client, storage, db_session):
    _, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    video = upload_video(client, alice, publish=False)

    hidden = client.delete(f"{API}/videos/{video['id']}", headers=bob)
    assert hidden.status_code == 404

    client.patch(f"{API}/videos/toggle/publish/{video['id']}", headers=alice)
    forbidden = client.delete(f"{API}/videos/{video['id']}", headers=bob)
    assert forbidden.status_code == 403

    update = client.patch(f"{API}/videos/{video['id']}", data={"title": "mine now"}, headers=bob)
    assert update.status_code == 403

    assert storage.deleted == []
    stored = db_session.query(Video).filter(Video.id == video["id"]).one()
    assert stored.title == "My first video"


def test_owner_delete_removes_record_and_remote_files(client, storage, db_session):
    _, alice = create_user(client, "alice")
    video = upload_video(client, alice)

    response = client.delete(f"{API}/videos/{video['id']}", headers=alice)

    assert response.status_code == 200
    assert sorted(kind for _, kind in storage.deleted) == ["image", "video"]
    assert db_session.query(Video).count() == 0
    assert client.get(f"{API}/videos/{video['id']}", headers=alice).status_code == 404


def test_toggle_publish_reports_both_states(client):
    _, alice = create_user(client, "alice")
    video = upload_video(client, alice, publish=False)

    response = client.patch(f"{API}/videos/toggle/publish/{video['id']}", headers=alice)

    data = response.json()["data"]
    assert data["previous_status"] is False
    assert data["current_status"] is True
    assert data["video"]["is_published"] is True


def test_update_video_details_and_thumbnail(client, storage, upload_dir):
    _, alice = create_user(client, "alice")
    video = upload_video(client, alice)
    old_thumbnail = video["thumbnail"]

    response = client.patch(
        f"{API}/videos/{video['id']}",
        data={"title": "Renamed"},
        files={"thumbnail": ("new.png", PNG_BYTES, "image/png")},
        headers=alice,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Renamed"
    assert data["thumbnail"] != old_thumbnail
    assert len(storage.deleted) == 1 and storage.deleted[0][1] == "image"

    nothing = client.patch(f"{API}/videos/{video['id']}", data={}, headers=alice)
    assert nothing.status_code == 400


def test_views_count_for_other_viewers_only(client):
    _, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    video = upload_video(client, alice)

    client.get(f"{API}/videos/{video['id']}", headers=alice)
    assert client.get(f"{API}/videos/{video['id']}", headers=alice).json()["data"]["views"] == 0

    client.get(f"{API}/videos/{video['id']}", headers=bob)
    detail = client.get(f"{API}/videos/{video['id']}").json()["data"]
    assert detail["views"] == 2
    assert detail["owner"]["username"] == "alice"


def test_watch_history_is_most_recent_first(client):
    _, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    first = upload_video(client, alice, title="First")
    second = upload_video(client, alice, title="Second")

    client.get(f"{API}/videos/{first['id']}", headers=bob)
    client.get(f"{API}/videos/{second['id']}", headers=bob)
    client.get(f"{API}/videos/{first['id']}", headers=bob)

    history = client.get(f"{API}/users/get-user-watch-history", headers=bob).json()["data"]
    assert [video["title"] for video in history] == ["First", "Second"]


def test_video_list_filters_sorts_and_paginates(client):
    alice_id, alice = create_user(client, "alice")
    _, bob = create_user(client, "bob")
    upload_video(client, alice, title="Cooking pasta")
    upload_video(client, alice, title="Cooking rice")
    upload_video(client, alice, title="Draft", publish=False)
    popular = upload_video(client, bob, title="Hiking")
    client.get(f"{API}/videos/{popular['id']}", headers=alice)

    everything = client.get(f"{API}/videos").json()["data"]
    assert everything["total_docs"] == 3
    assert "Draft" not in [v["title"] for v in everything["videos"]]

    search = client.get(f"{API}/videos", params={"keyword": "cooking"}).json()["data"]
    assert search["total_docs"] == 2

    by_views = client.get(f"{API}/videos", params={"sortBy": "views"}).json()["data"]
    assert by_views["videos"][0]["title"] == "Hiking"

    page = client.get(f"{API}/videos", params={"limit": 2, "page": 2}).json()["data"]
    assert len(page["videos"]) == 1
    assert page["has_prev_page"] is True
    assert page["has_next_page"] is False

    own = client.get(f"{API}/videos", params={"userId": alice_id}, headers=alice).json()["data"]
    assert own["total_docs"] == 3

    as_stranger = client.get(f"{API}/videos", params={"userId": alice_id}).json()["data"]
    assert as_stranger["total_docs"] == 2


def test_video_list_rejects_bad_query_parameters(client):
    assert client.get(f"{API}/videos", params={"sortBy": "title"}).status_code == 400
    response = client.get(f"{API}/videos", params={"limit": 500})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request data."
    assert response.json()["errors"]


def test_publish_requires_title_and_description(client, storage):
    _, alice = create_user(client, "alice")
    response = client.post(
        f"{API}/videos", data={"title": "  "}, files=video_files(), headers=alice
    )

    assert response.status_code == 400
    assert storage.uploaded == []


def test_keyword_wildcards_match_literally(client):
    _, alice = create_user(client, "alice")
    upload_video(client, alice, title="100% organic")
    upload_video(client, alice, title="Plain title")

    percent = client.get(f"{API}/videos", params={"keyword": "%"}).json()["data"]
    assert [v["title"] for v in percent["videos"]] == ["100% organic"]

    underscore = client.get(f"{API}/videos", params={"keyword": "_"}).json()["data"]
    assert underscore["total_docs"] == 0
