"""
Wires the services together from one settings object.
"""
from typing import Optional

import httpx
from pymongo.database import Database

from services.auth import AuthService
from services.collection_service import CollectionService
from services.favorite_service import FavoriteService
from services.proxy_service import StreamingProxy
from services.sound_service import SoundService
from services.upload_service import UploadTokenService
from utils.s3_storage import S3Client


class ServiceContainer:
    """Every service the routes need, built once at startup"""

    def __init__(
        self,
        settings,
        db: Database,
        storage=None,
        proxy_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.db = db
        self.storage = storage if storage is not None else S3Client(settings)

        self.auth = AuthService(settings, db)
        self.sounds = SoundService(settings, db, self.storage)
        self.collections = CollectionService(db, self.sounds)
        self.favorites = FavoriteService(db, self.sounds)
        self.uploads = UploadTokenService(settings, self.storage)
        self.proxy = StreamingProxy(settings, transport=proxy_transport)
