"""
Service layer for Collection operations
"""
import logging
from typing import List

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from database.connection import COLLECTIONS, SOUNDS
from models.collection import CollectionCreate, CollectionDetail, CollectionInDB, CollectionView
from models.common import parse_object_id, utc_now
from models.sound import SoundInDB
from models.user import User
from services.auth import ensure_owner
from services.errors import NotFoundError, ValidationError
from services.sound_service import SoundService

logger = logging.getLogger(__name__)


def to_view(collection: CollectionInDB) -> CollectionView:
    """Collection with plain sound ids"""
    return CollectionView(
        id=collection.id,
        name=collection.name,
        description=collection.description,
        owner=collection.owner_id,
        sounds=list(collection.sound_ids),
        is_public=collection.is_public,
        created_at=collection.created_at,
    )


class CollectionService:
    """Owner-scoped collections of sounds"""

    def __init__(self, db: Database, sound_service: SoundService):
        self.collections_collection = db[COLLECTIONS]
        self.sounds_collection = db[SOUNDS]
        self.sound_service = sound_service

    def find_owned(self, collection_id: str, identity: User, message: str) -> CollectionInDB:
        """Load a collection and check the caller owns it"""
        oid = parse_object_id(collection_id)
        collection_data = self.collections_collection.find_one({"_id": oid}) if oid else None
        if not collection_data:
            raise NotFoundError("Collection not found")

        collection = CollectionInDB(**collection_data)
        ensure_owner(collection.owner_id, identity, message)
        return collection

    async def create_collection(self, collection_create: CollectionCreate, identity: User) -> CollectionView:
        """New empty collection owned by the caller"""
        if not collection_create.name or not collection_create.name.strip():
            raise ValidationError("Please provide a collection name")

        collection_doc = {
            "name": collection_create.name.strip(),
            "description": collection_create.description,
            "owner_id": ObjectId(identity.id),
            "sound_ids": [],
            "is_public": bool(collection_create.is_public),
            "created_at": utc_now(),
        }
        result = self.collections_collection.insert_one(collection_doc)
        collection_doc["_id"] = result.inserted_id

        collection = CollectionInDB(**collection_doc)
        logger.info(f"Created collection {collection.id} for user {identity.id}")
        return to_view(collection)

    async def list_collections(self, identity: User) -> List[CollectionDetail]:
        """
        The caller's collections, newest first, with sounds resolved.

        Members whose sound no longer exists are left out.
        """
        cursor = self.collections_collection.find({"owner_id": ObjectId(identity.id)}).sort("created_at", DESCENDING)
        collections = [CollectionInDB(**collection_data) for collection_data in cursor]

        member_ids = {ObjectId(sound_id) for c in collections for sound_id in c.sound_ids}
        sounds = {}
        if member_ids:
            for sound_data in self.sounds_collection.find({"_id": {"$in": list(member_ids)}}):
                sound = SoundInDB(**sound_data)
                sounds[sound.id] = sound

        favorites = self.sound_service.favorite_ids(identity)
        views = {view.id: view for view in self.sound_service.build_views(sounds.values(), favorites)}

        return [
            CollectionDetail(
                id=collection.id,
                name=collection.name,
                description=collection.description,
                owner=collection.owner_id,
                sounds=[views[sound_id] for sound_id in collection.sound_ids if sound_id in views],
                is_public=collection.is_public,
                created_at=collection.created_at,
            )
            for collection in collections
        ]

    async def add_sound(self, collection_id: str, sound_id: str, identity: User) -> CollectionView:
        """Add an existing sound; adding a member twice is rejected"""
        collection = self.find_owned(collection_id, identity, "Not permitted to modify this collection")

        if not sound_id:
            raise ValidationError("Please provide a sound id")
        sound = self.sound_service.find_sound(sound_id)

        if sound.id in collection.sound_ids:
            raise ValidationError("Sound is already in this collection")

        updated = self.collections_collection.find_one_and_update(
            {"_id": ObjectId(collection.id)},
            {"$addToSet": {"sound_ids": ObjectId(sound.id)}},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Collection not found")

        logger.info(f"Added sound {sound.id} to collection {collection.id}")
        return to_view(CollectionInDB(**updated))

    async def remove_sound(self, collection_id: str, sound_id: str, identity: User) -> CollectionView:
        """Drop a sound from the collection; a non-member is a no-op"""
        collection = self.find_owned(collection_id, identity, "Not permitted to modify this collection")

        oid = parse_object_id(sound_id)
        if oid is None:
            return to_view(collection)

        updated = self.collections_collection.find_one_and_update(
            {"_id": ObjectId(collection.id)},
            {"$pull": {"sound_ids": oid}},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Collection not found")

        logger.info(f"Removed sound {sound_id} from collection {collection.id}")
        return to_view(CollectionInDB(**updated))

    async def delete_collection(self, collection_id: str, identity: User):
        """Delete a collection; the sounds themselves are untouched"""
        collection = self.find_owned(collection_id, identity, "Not permitted to delete this collection")
        self.collections_collection.delete_one({"_id": ObjectId(collection.id)})
        logger.info(f"Deleted collection {collection.id}")
