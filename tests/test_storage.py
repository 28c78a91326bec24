# ============================================================================
# FILE: tests/test_storage.py
# ============================================================================
import pytest

from app.core.storage import StorageClient, StorageError, public_id_from_url
from app.utils.pagination import paginated


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://res.cloudinary.com/demo/image/upload/v1712/avatar.png", "avatar"),
        ("https://res.cloudinary.com/demo/video/upload/v1712/folder/clip.mp4", "folder/clip"),
        ("https://res.cloudinary.com/demo/image/upload/c_fill,w_100/v1712/thumb.jpg?x=1", "thumb"),
        ("https://cdn.example.org/static/cover.webp", "cover"),
        ("", None),
        (None, None),
    ],
)
def test_public_id_from_url(url, expected):
    assert public_id_from_url(url) == expected


def test_upload_rejects_missing_file(tmp_path):
    client = StorageClient(cloud_name="demo", api_key="key", api_secret="secret")

    with pytest.raises(StorageError):
        client.upload(str(tmp_path / "missing.png"))


def test_paginated_envelope():
    page = paginated("videos", ["a", "b"], total=5, page=2, limit=2)

    assert page["videos"] == ["a", "b"]
    assert page["total_docs"] == 5
    assert page["total_pages"] == 3
    assert page["has_prev_page"] and page["has_next_page"]
    assert page["prev_page"] == 1
    assert page["next_page"] == 3


def test_paginated_empty_result():
    page = paginated("comments", [], total=0, page=1, limit=10)

    assert page["total_pages"] == 0
    assert not page["has_prev_page"]
    assert not page["has_next_page"]
    assert page["prev_page"] is None and page["next_page"] is None
