import asyncio
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.requests import ClientDisconnect

from app import create_app
from config import Settings
from routes.media import proxy_audio
from services.errors import UpstreamError, ValidationError
from services.proxy_service import CHUNK_SIZE, StreamingProxy
from tests.conftest import PROXY_BODY, STORAGE_SETTINGS, auth


def test_proxy_streams_plain_http_audio(client):
    response = client.get("/api/proxy", params={"url": "http://example.com/a.mp3"})

    assert response.status_code == 200
    assert response.content == PROXY_BODY
    assert response.headers["cache-control"] == "public, max-age=31536000"
    assert response.headers["content-type"] == "audio/mpeg"


def test_proxy_forwards_upstream_content_type(client):
    response = client.get("/api/proxy", params={"url": "http://example.com/a.wav"})

    assert response.headers["content-type"] == "audio/wav"


def test_proxy_forwards_upstream_status(client):
    response = client.get("/api/proxy", params={"url": "http://example.com/missing.mp3"})

    assert response.status_code == 404
    assert response.content == b"not here"
    assert response.headers["cache-control"] == "no-store"


def test_proxy_redirects_secure_urls_unchanged(client):
    url = "https://example.com/a.mp3?v=1"
    response = client.get("/api/proxy", params={"url": url}, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == url


@pytest.mark.parametrize("query", ["", "?url="])
def test_proxy_requires_url(client, query):
    response = client.get(f"/api/proxy{query}")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing URL"}


def test_proxy_upstream_failure_is_generic(client):
    response = client.get("/api/proxy", params={"url": "http://unreachable.test/a.mp3"})

    assert response.status_code == 500
    assert response.json() == {"error": "Proxy Error"}


def test_proxy_needs_no_auth(client):
    assert client.get("/api/proxy", params={"url": "http://example.com/a.mp3"}).status_code == 200


def test_upstream_is_read_lazily_and_closed_early(settings):
    produced = []

    async def body():
        for i in range(8):
            produced.append(i)
            yield b"x" * CHUNK_SIZE

    def handler(request):
        return httpx.Response(200, content=body())

    async def run():
        proxy = StreamingProxy(settings, transport=httpx.MockTransport(handler))
        upstream = await proxy.open("http://example.com/long.mp3")
        chunks = upstream.iter_bytes()
        first = await chunks.__anext__()
        await chunks.aclose()
        return upstream, first

    upstream, first = asyncio.run(run())

    assert len(first) == CHUNK_SIZE
    assert len(produced) < 8
    assert upstream.closed


def test_upstream_closed_by_explicit_aclose(settings):
    def handler(request):
        return httpx.Response(200, content=b"abc")

    async def run():
        proxy = StreamingProxy(settings, transport=httpx.MockTransport(handler))
        upstream = await proxy.open("http://example.com/a.mp3")
        await upstream.aclose()
        return upstream

    assert asyncio.run(run()).closed


def test_open_raises_upstream_error_on_connect_failure(settings):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    proxy = StreamingProxy(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError):
        asyncio.run(proxy.open("http://example.com/a.mp3"))


def test_needs_proxy(settings):
    assert StreamingProxy.needs_proxy("http://example.com/a.mp3") is True
    assert StreamingProxy.needs_proxy("https://example.com/a.mp3") is False
    with pytest.raises(ValidationError):
        StreamingProxy.needs_proxy(None)


def stream_scope(spec_version):
    return {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": spec_version},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": "/api/proxy",
        "raw_path": b"/api/proxy",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
    }


def slow_upstream(produced):
    async def body():
        for i in range(8):
            produced.append(i)
            await asyncio.sleep(0.01)
            yield b"x" * CHUNK_SIZE

    return httpx.MockTransport(lambda request: httpx.Response(200, content=body()))


def test_proxy_route_closes_upstream_when_client_connection_breaks(settings):
    produced, sent = [], []

    async def run():
        proxy = StreamingProxy(settings, transport=slow_upstream(produced))
        response = await proxy_audio(SimpleNamespace(proxy=proxy), "http://example.com/long.mp3")
        never = asyncio.Event()

        async def receive():
            await never.wait()

        async def send(message):
            if message["type"] == "http.response.body":
                if sent:
                    raise OSError("connection reset by peer")
                sent.append(message["body"])

        with pytest.raises((OSError, ClientDisconnect)):
            await response(stream_scope("2.4"), receive, send)
        return response.upstream

    upstream = asyncio.run(run())

    assert upstream.closed
    assert len(sent) == 1
    assert len(produced) < 8


def test_proxy_route_closes_upstream_when_client_disconnects(settings):
    produced, sent = [], []

    async def run():
        proxy = StreamingProxy(settings, transport=slow_upstream(produced))
        response = await proxy_audio(SimpleNamespace(proxy=proxy), "http://example.com/long.mp3")
        disconnected = asyncio.Event()

        async def receive():
            await disconnected.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            if message["type"] == "http.response.body":
                sent.append(message["body"])
                disconnected.set()

        await response(stream_scope("2.3"), receive, send)
        return response.upstream

    upstream = asyncio.run(run())

    assert upstream.closed
    assert sent


def upload_client(db, tmp_path, **overrides):
    values = dict(STORAGE_SETTINGS, JWT_SECRET_KEY="test-jwt-secret", BCRYPT_ROUNDS=4, STATIC_DIR=tmp_path / "public")
    values.update(overrides)
    return TestClient(create_app(Settings(**values), database=db))


def test_upload_token_is_scoped_presigned_post(client, db, tmp_path, alice):
    token, _ = alice
    s3_client = upload_client(db, tmp_path)

    response = s3_client.get("/api/upload-token", headers=auth(token))

    assert response.status_code == 200
    body = response.json()
    assert body["domain"] == "https://cdn.example.org"
    assert body["maxSize"] == 5 * 1024 * 1024
    assert body["expiresIn"] == 3600
    assert "sound-bucket" in body["token"]["url"]
    assert body["token"]["fields"]["key"] == "sounds/${filename}"
    assert "policy" in body["token"]["fields"]


@pytest.mark.parametrize("missing", ["S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "S3_BUCKET", "S3_PUBLIC_DOMAIN"])
def test_upload_token_requires_all_storage_settings(client, db, tmp_path, alice, missing):
    token, _ = alice
    s3_client = upload_client(db, tmp_path, **{missing: None})

    response = s3_client.get("/api/upload-token", headers=auth(token))

    assert response.status_code == 500
    assert response.json() == {"error": "Storage is not configured"}


def test_upload_token_requires_auth(client):
    assert client.get("/api/upload-token").status_code == 401


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["storage_configured"] is True
