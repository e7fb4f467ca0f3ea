import httpx
import mongomock
import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings
from database.connection import ensure_indexes
from services.errors import UpstreamError

STORAGE_SETTINGS = {
    "S3_ACCESS_KEY_ID": "test-access-key",
    "S3_SECRET_ACCESS_KEY": "test-secret-key",
    "S3_BUCKET": "sound-bucket",
    "S3_PUBLIC_DOMAIN": "https://cdn.example.org",
    "S3_ENDPOINT_URL": None,
    "S3_REGION": "us-east-1",
}

PROXY_BODY = b"ID3" + b"\x00" * 2048


class FakeStorage:
    """Records deletes; optionally fails them"""

    available = True

    def __init__(self, fail_deletes=False):
        self.fail_deletes = fail_deletes
        self.deleted = []

    def delete(self, bucket, key):
        if self.fail_deletes:
            raise UpstreamError(f"Failed to delete {key}: storage unavailable")
        self.deleted.append((bucket, key))

    def mint(self, bucket, expires_in, max_size, key_prefix=""):
        return {"url": f"https://{bucket}.storage.test/", "fields": {"key": f"{key_prefix}${{filename}}"}}


class SkipPrecheck:
    """Collection wrapper whose find_one never finds anything, to reach the unique index"""

    def __init__(self, collection):
        self._collection = collection

    def find_one(self, *args, **kwargs):
        return None

    def __getattr__(self, name):
        return getattr(self._collection, name)


def upstream_handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "unreachable.test":
        raise httpx.ConnectError("connection refused", request=request)
    if request.url.path.endswith(".wav"):
        return httpx.Response(200, headers={"content-type": "audio/wav"}, content=PROXY_BODY)
    if request.url.path.endswith("missing.mp3"):
        return httpx.Response(404, content=b"not here")
    return httpx.Response(200, content=PROXY_BODY)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        JWT_SECRET_KEY="test-jwt-secret",
        BCRYPT_ROUNDS=4,
        MAX_FILE_SIZE=5 * 1024 * 1024,
        MAX_SOUND_DURATION=30,
        STATIC_DIR=tmp_path / "public",
        **STORAGE_SETTINGS,
    )


@pytest.fixture
def db():
    database = mongomock.MongoClient()["sound_board_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def app(settings, db, storage):
    return create_app(settings, database=db, storage=storage, proxy_transport=httpx.MockTransport(upstream_handler))


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def client(app):
    return TestClient(app)


def register(client, username, email=None, password="secret1"):
    """Register a user and return (token, user)"""
    response = client.post(
        "/api/auth/register",
        json={"username": username, "email": email or f"{username}@x.com", "password": password},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    return body["token"], body["user"]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def create_sound(client, token, name="Boom", url="https://cdn.example.org/sounds/boom.mp3", **extra):
    payload = {"name": name, "url": url, "color": "#ff0000", "duration": 2.5, "size": 1024}
    payload.update(extra)
    response = client.post("/api/sounds", json=payload, headers=auth(token))
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def alice(client):
    return register(client, "alice", "a@x.com")


@pytest.fixture
def bob(client):
    return register(client, "bob", "b@x.com")
