"""
Service layer for Favorite operations
"""
import logging
from typing import List

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database.connection import FAVORITES, SOUNDS
from models.common import parse_object_id, utc_now
from models.favorite import FavoriteCreate, FavoriteInDB, FavoriteView
from models.sound import SoundInDB, SoundView
from models.user import User
from services.errors import ConflictError, ValidationError
from services.sound_service import SoundService

logger = logging.getLogger(__name__)

ALREADY_FAVORITED = "Sound already favorited"


class FavoriteService:
    """Per-user bookmarks of sounds"""

    def __init__(self, db: Database, sound_service: SoundService):
        self.favorites_collection = db[FAVORITES]
        self.sounds_collection = db[SOUNDS]
        self.sound_service = sound_service

    async def add_favorite(self, favorite_create: FavoriteCreate, identity: User) -> FavoriteView:
        """
        Favorite a sound.

        A duplicate is caught by the pre-check or, when two requests race,
        by the unique (user_id, sound_id) index; both give the same error.
        """
        if not favorite_create.sound_id:
            raise ValidationError("Please provide a sound id")

        sound = self.sound_service.find_sound(favorite_create.sound_id)
        user_oid = ObjectId(identity.id)
        sound_oid = ObjectId(sound.id)

        existing = self.favorites_collection.find_one({"user_id": user_oid, "sound_id": sound_oid})
        if existing:
            raise ConflictError(ALREADY_FAVORITED)

        favorite_doc = {
            "user_id": user_oid,
            "sound_id": sound_oid,
            "created_at": utc_now(),
        }
        try:
            result = self.favorites_collection.insert_one(favorite_doc)
        except DuplicateKeyError:
            logger.info(f"Concurrent favorite rejected for user {identity.id}, sound {sound.id}")
            raise ConflictError(ALREADY_FAVORITED)

        favorite_doc["_id"] = result.inserted_id
        favorite = FavoriteInDB(**favorite_doc)
        return FavoriteView(
            id=favorite.id,
            user=favorite.user_id,
            sound=favorite.sound_id,
            created_at=favorite.created_at,
        )

    async def remove_favorite(self, sound_id: str, identity: User):
        """Unfavorite; removing something never favorited is not an error"""
        oid = parse_object_id(sound_id)
        if oid is None:
            return
        self.favorites_collection.find_one_and_delete({"user_id": ObjectId(identity.id), "sound_id": oid})

    async def list_favorites(self, identity: User) -> List[SoundView]:
        """The caller's favorited sounds, most recently favorited first"""
        cursor = self.favorites_collection.find({"user_id": ObjectId(identity.id)}).sort("created_at", DESCENDING)
        sound_ids = [favorite_data["sound_id"] for favorite_data in cursor]
        if not sound_ids:
            return []

        sounds = {}
        for sound_data in self.sounds_collection.find({"_id": {"$in": sound_ids}}):
            sound = SoundInDB(**sound_data)
            sounds[sound.id] = sound

        # Favorites whose sound was deleted outside the cascade are skipped
        ordered = [sounds[str(sound_id)] for sound_id in sound_ids if str(sound_id) in sounds]
        return self.sound_service.build_views(ordered, {sound.id for sound in ordered})
