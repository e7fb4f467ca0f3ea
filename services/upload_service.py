"""
Direct-to-storage upload credentials
"""
import logging

from models.upload import UploadToken
from models.user import User
from services.errors import ConfigError

logger = logging.getLogger(__name__)


class UploadTokenService:
    """Issues short-lived, bucket-scoped upload credentials"""

    def __init__(self, settings, storage):
        self.settings = settings
        self.storage = storage

    async def issue(self, identity: User) -> UploadToken:
        """
        Mint a credential for one direct upload window.

        All four storage settings must be present; which one is missing is
        logged but not revealed to the caller.
        """
        missing = [
            name
            for name in ("S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "S3_BUCKET", "S3_PUBLIC_DOMAIN")
            if not getattr(self.settings, name)
        ]
        if missing or self.storage is None:
            logger.error(f"Upload token requested but storage is not configured (missing: {missing})")
            raise ConfigError("Storage is not configured")

        token = self.storage.mint(
            self.settings.S3_BUCKET,
            self.settings.UPLOAD_TOKEN_EXPIRES_SECONDS,
            self.settings.MAX_FILE_SIZE,
            key_prefix=self.settings.S3_UPLOAD_PREFIX or "",
        )
        logger.info(f"Issued upload token to user {identity.id}")

        return UploadToken(
            token=token,
            domain=self.settings.S3_PUBLIC_DOMAIN,
            max_size=self.settings.MAX_FILE_SIZE,
            expires_in=self.settings.UPLOAD_TOKEN_EXPIRES_SECONDS,
        )
