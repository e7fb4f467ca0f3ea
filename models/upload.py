"""
Direct-upload credential model
"""
from typing import Any, Dict

from models.common import CamelModel


class UploadToken(CamelModel):
    """
    Credential for pushing a sound straight to object storage.

    `token` holds the presigned POST (`url` plus form `fields`); `domain` is
    the public base URL the uploaded object will be served from.
    """
    token: Dict[str, Any]
    domain: str
    max_size: int
    expires_in: int
