"""
Media routes: direct-upload credentials and the plain-HTTP streaming proxy.
"""

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import RedirectResponse
from starlette.responses import StreamingResponse

from models.upload import UploadToken
from routes.auth import CurrentUser, Services
from services.proxy_service import UpstreamStream

# Create router
router = APIRouter(prefix="/api", tags=["Media"])


@router.get("/upload-token", response_model=UploadToken)
async def get_upload_token(current_user: CurrentUser, services: Services):
    """
    Get a short-lived credential for uploading a sound straight to storage.

    Returns the presigned POST, the public domain objects are served from,
    and the size limit.
    """
    return await services.uploads.issue(current_user)


class UpstreamResponse(StreamingResponse):
    """
    Streams an open upstream body to the client.

    The upstream is closed once the response ends, including when the
    client goes away partway through.
    """

    def __init__(self, upstream: UpstreamStream):
        super().__init__(
            upstream.iter_bytes(),
            status_code=upstream.status_code,
            headers={"Cache-Control": upstream.cache_control},
            media_type=upstream.content_type,
        )
        self.upstream = upstream

    async def __call__(self, scope, receive, send):
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.upstream.aclose()


@router.get("/proxy")
async def proxy_audio(services: Services, url: Optional[str] = Query(None, description="Audio URL")):
    """
    Re-serve plain-HTTP audio over this service's transport.

    Non-http:// URLs are redirected to unchanged.
    """
    if not services.proxy.needs_proxy(url):
        return RedirectResponse(url=url, status_code=302)

    upstream = await services.proxy.open(url)
    return UpstreamResponse(upstream)
