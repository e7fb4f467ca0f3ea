"""
Streaming pass-through for audio hosted on plain HTTP.

Browsers block http:// media on an https:// page, so playback can be routed
through here. The upstream body is relayed chunk by chunk and never held in
memory as a whole.
"""
import logging
from typing import AsyncIterator, Optional

import httpx

from services.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

PLAIN_SCHEME = "http://"
DEFAULT_CONTENT_TYPE = "audio/mpeg"
CACHE_CONTROL = "public, max-age=31536000"
NO_STORE = "no-store"
CHUNK_SIZE = 64 * 1024


class UpstreamStream:
    """
    An open upstream response, consumed lazily.

    Closing it, either explicitly or by closing the iterator early, closes
    the upstream response and its client.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self.client = client
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def content_type(self) -> str:
        return self.response.headers.get("content-type") or DEFAULT_CONTENT_TYPE

    @property
    def cache_control(self) -> str:
        """Long-lived public caching for successful bodies only"""
        return CACHE_CONTROL if self.response.is_success else NO_STORE

    @property
    def closed(self) -> bool:
        return self.response.is_closed and self.client.is_closed

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes(chunk_size=CHUNK_SIZE):
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self):
        await self.response.aclose()
        await self.client.aclose()


class StreamingProxy:
    """Opens upstream streams for the proxy route"""

    def __init__(self, settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = httpx.Timeout(settings.PROXY_TIMEOUT_SECONDS)
        self.transport = transport

    @staticmethod
    def needs_proxy(target_url: Optional[str]) -> bool:
        """
        True when the URL must be relayed; anything else is redirected as-is.

        Raises ValidationError when no URL was given.
        """
        if not target_url or not target_url.strip():
            raise ValidationError("Missing URL")
        return target_url.startswith(PLAIN_SCHEME)

    async def open(self, target_url: str) -> UpstreamStream:
        """Connect upstream and return once the response headers are in"""
        client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        try:
            request = client.build_request("GET", target_url)
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            await client.aclose()
            logger.error(f"Proxy error fetching {target_url}: {type(e).__name__}: {str(e)}")
            raise UpstreamError("Proxy Error")

        if response.status_code != 200:
            logger.warning(f"Upstream returned {response.status_code} for {target_url}")

        return UpstreamStream(client, response)
