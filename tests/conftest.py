# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
import os
import threading

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_storage
from app.config import settings
from app.core.storage import IMAGE, VIDEO, StorageError, StoredMedia
from app.main import create_app

API = "/api/v1"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 256
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1024

VIDEO_EXTENSIONS = {".mp4", ".avi", ".mkv", ".mov", ".wmv"}


class FakeStorage:
    """In-memory stand-in for the Cloudinary client"""

    def __init__(self):
        self.uploaded = []
        self.deleted = []
        self.fail_uploads_for = set()
        self.fail_deletes = False
        self._lock = threading.Lock()
        self._counter = 0

    def upload(self, file_path):
        name = os.path.basename(file_path)
        ext = os.path.splitext(name)[1].lower()
        with self._lock:
            self.uploaded.append(file_path)
            self._counter += 1
            number = self._counter
        if any(marker in name for marker in self.fail_uploads_for):
            raise StorageError(f"simulated failure for {name}")

        kind = VIDEO if ext in VIDEO_EXTENSIONS else IMAGE
        public_id = f"videotube/{kind}_{number}"
        return StoredMedia(
            url=f"https://res.cloudinary.com/demo/{kind}/upload/v1700000000/{public_id}{ext}",
            public_id=public_id,
            resource_type=kind,
            duration=12.5 if kind == VIDEO else None,
        )

    def delete(self, public_id, kind=IMAGE):
        with self._lock:
            self.deleted.append((public_id, kind))
        if self.fail_deletes:
            raise StorageError("simulated delete failure")
        return True


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    directory = tmp_path / "temp"
    monkeypatch.setattr(settings, "UPLOAD_TEMP_DIR", str(directory))
    return directory


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def app(tmp_path, monkeypatch, upload_dir, storage):
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    application = create_app()
    application.dependency_overrides[get_storage] = lambda: storage
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session(client):
    session = client.app.state.database.session()
    try:
        yield session
    finally:
        session.close()


# ----------------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------------

def register(client, username="alice", password="secret1", full_name=None, email=None, files=None):
    data = {
        "username": username,
        "email": email or f"{username}@mail.com",
        "full_name": full_name or f"{username.capitalize()} Tester",
        "password": password,
    }
    return client.post(f"{API}/users/register", data=data, files=files)


def login(client, identifier="alice", password="secret1"):
    """Log in and return Bearer headers; cookies are dropped so calls stay explicit"""
    response = client.post(
        f"{API}/users/login",
        json={"username_or_email": identifier, "password": password},
    )
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}


def create_user(client, username="alice", password="secret1"):
    response = register(client, username, password)
    assert response.status_code == 201, response.text
    headers = login(client, username, password)
    return response.json()["data"]["id"], headers


def video_files(video_name="clip.mp4", thumbnail_name="thumb.png"):
    return {
        "video_file": (video_name, MP4_BYTES, "video/mp4"),
        "thumbnail": (thumbnail_name, PNG_BYTES, "image/png"),
    }


def upload_video(client, headers, title="My first video", publish=True, files=None):
    response = client.post(
        f"{API}/videos",
        data={"title": title, "description": "A description"},
        files=files or video_files(),
        headers=headers,
    )
    assert response.status_code == 201, response.text
    video = response.json()["data"]
    if publish:
        toggled = client.patch(f"{API}/videos/toggle/publish/{video['id']}", headers=headers)
        assert toggled.status_code == 200, toggled.text
        video = toggled.json()["data"]["video"]
    return video
