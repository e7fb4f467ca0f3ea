"""
Service layer for Sound operations
"""
import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional, Set

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.database import Database

from database.connection import COLLECTIONS, FAVORITES, SOUNDS, USERS
from models.common import parse_object_id, utc_now
from models.sound import DEFAULT_ICON, DeletionReport, SoundCreate, SoundInDB, SoundUpdate, SoundView
from models.user import User, UserSummary
from services.auth import ensure_owner
from services.errors import NotFoundError, ValidationError
from utils.s3_storage import key_from_url

logger = logging.getLogger(__name__)


class SoundService:
    """Sound catalog, including the deletion cascade"""

    def __init__(self, settings, db: Database, storage):
        self.settings = settings
        self.storage = storage
        self.sounds_collection = db[SOUNDS]
        self.users_collection = db[USERS]
        self.collections_collection = db[COLLECTIONS]
        self.favorites_collection = db[FAVORITES]

    def find_sound(self, sound_id) -> SoundInDB:
        """Load a sound or raise NotFoundError"""
        oid = parse_object_id(sound_id)
        sound_data = self.sounds_collection.find_one({"_id": oid}) if oid else None
        if not sound_data:
            raise NotFoundError("Sound not found")
        return SoundInDB(**sound_data)

    def favorite_ids(self, identity: Optional[User]) -> Set[str]:
        """Ids of the sounds the caller has favorited; empty for anonymous callers"""
        if identity is None:
            return set()
        sound_ids = self.favorites_collection.distinct("sound_id", {"user_id": ObjectId(identity.id)})
        return {str(sound_id) for sound_id in sound_ids}

    def build_views(self, sounds: Iterable[SoundInDB], favorites: Set[str]) -> List[SoundView]:
        """Attach uploader summaries and favorite flags"""
        sounds = list(sounds)
        uploader_ids = {ObjectId(s.uploader_id) for s in sounds if s.uploader_id}
        uploaders: Dict[str, UserSummary] = {}
        if uploader_ids:
            cursor = self.users_collection.find({"_id": {"$in": list(uploader_ids)}}, {"username": 1})
            for user_data in cursor:
                uploaders[str(user_data["_id"])] = UserSummary(
                    id=str(user_data["_id"]),
                    username=user_data["username"],
                )

        return [
            SoundView(
                id=sound.id,
                name=sound.name,
                url=sound.url,
                color=sound.color,
                icon=sound.icon,
                duration=sound.duration,
                size=sound.size,
                uploader=uploaders.get(sound.uploader_id) if sound.uploader_id else None,
                created_at=sound.created_at,
                is_favorite=sound.id in favorites,
            )
            for sound in sounds
        ]

    async def list_sounds(self, identity: Optional[User] = None) -> List[SoundView]:
        """All sounds, newest first, flagged against the caller's favorites"""
        cursor = self.sounds_collection.find().sort("created_at", DESCENDING)
        sounds = [SoundInDB(**sound_data) for sound_data in cursor]
        return self.build_views(sounds, self.favorite_ids(identity))

    async def get_sound(self, sound_id: str, identity: Optional[User] = None) -> SoundView:
        """One sound by id"""
        sound = self.find_sound(sound_id)
        return self.build_views([sound], self.favorite_ids(identity))[0]

    async def create_sound(self, sound_create: SoundCreate, identity: User) -> SoundView:
        """Record a sound that was uploaded straight to storage"""
        if not sound_create.name or not sound_create.url:
            raise ValidationError("Please provide a sound name and URL")

        if sound_create.size is not None:
            if sound_create.size < 0:
                raise ValidationError("File size cannot be negative")
            if sound_create.size > self.settings.MAX_FILE_SIZE:
                raise ValidationError(f"File size cannot exceed {self.settings.max_file_size_mb}MB")

        if sound_create.duration is not None:
            if sound_create.duration < 0:
                raise ValidationError("Sound duration cannot be negative")
            if sound_create.duration > self.settings.MAX_SOUND_DURATION:
                raise ValidationError(
                    f"Sound duration cannot exceed {self.settings.MAX_SOUND_DURATION} seconds"
                )

        sound_doc = {
            "name": sound_create.name,
            "url": sound_create.url,
            "color": sound_create.color,
            "icon": sound_create.icon or DEFAULT_ICON,
            "duration": sound_create.duration,
            "size": sound_create.size,
            "storage_key": key_from_url(sound_create.url, self.settings.S3_PUBLIC_DOMAIN),
            "uploader_id": ObjectId(identity.id),
            "created_at": utc_now(),
        }
        result = self.sounds_collection.insert_one(sound_doc)
        sound_doc["_id"] = result.inserted_id

        sound = SoundInDB(**sound_doc)
        logger.info(f"Created sound {sound.id} for user {identity.id}")
        return self.build_views([sound], set())[0]

    async def update_sound(self, sound_id: str, sound_update: SoundUpdate, identity: User) -> SoundView:
        """Rename or recolor a sound; uploader only"""
        sound = self.find_sound(sound_id)
        ensure_owner(sound.uploader_id, identity, "Not permitted to modify this sound")

        updates = sound_update.model_dump(exclude_none=True, by_alias=False)
        if updates:
            self.sounds_collection.update_one({"_id": ObjectId(sound.id)}, {"$set": updates})
            sound = self.find_sound(sound.id)
            logger.info(f"Updated sound {sound.id}: {sorted(updates)}")

        return self.build_views([sound], self.favorite_ids(identity))[0]

    async def delete_sound(self, sound_id: str, identity: User) -> DeletionReport:
        """
        Delete a sound and everything that points at it.

        Steps run in order: storage object, record, favorites, collection
        memberships. The record step is primary and its failure propagates;
        failures of the other steps are logged and reported but swallowed.
        """
        sound = self.find_sound(sound_id)
        ensure_owner(sound.uploader_id, identity, "Not permitted to delete this sound")

        oid = ObjectId(sound.id)
        report = DeletionReport(sound_id=sound.id)

        key = self.storage_key(sound)
        if self.storage is not None and self.storage.available and key:
            await self._best_effort(report, "storage_object", lambda: self._delete_storage_object(key))
        else:
            report.skipped.append("storage_object")

        self.sounds_collection.delete_one({"_id": oid})
        report.completed.append("record")

        await self._best_effort(
            report, "favorites", lambda: self.favorites_collection.delete_many({"sound_id": oid})
        )
        await self._best_effort(
            report, "collections", lambda: self.collections_collection.update_many({}, {"$pull": {"sound_ids": oid}})
        )

        logger.info(
            f"Deleted sound {sound.id}: completed={report.completed} "
            f"skipped={report.skipped} failed={list(report.failed)}"
        )
        return report

    def storage_key(self, sound: SoundInDB) -> Optional[str]:
        """
        Bucket key owned by this sound alone, or None.

        Only URLs on the public storage domain name one of our objects, and an
        object still referenced by another sound is left in place.
        """
        key = sound.storage_key or key_from_url(sound.url, self.settings.S3_PUBLIC_DOMAIN)
        if not key:
            return None

        shared = self.sounds_collection.count_documents(
            {"$or": [{"storage_key": key}, {"url": sound.url}], "_id": {"$ne": ObjectId(sound.id)}},
            limit=1,
        )
        if shared:
            logger.info(f"Keeping storage object {key}: still used by another sound")
            return None
        return key

    async def _delete_storage_object(self, key: str):
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, lambda: self.storage.delete(self.settings.S3_BUCKET, key))

    async def _best_effort(self, report: DeletionReport, step: str, action: Callable):
        try:
            result = action()
            if asyncio.iscoroutine(result):
                await result
            report.completed.append(step)
        except Exception as e:
            logger.error(f"Cascade step '{step}' failed for sound {report.sound_id}: {str(e)}")
            report.failed[step] = str(e)
