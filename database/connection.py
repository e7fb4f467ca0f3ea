"""
MongoDB connection utility for the sound board backend.
"""

import logging
from typing import Optional
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection

logger = logging.getLogger(__name__)

USERS = "users"
SOUNDS = "sounds"
COLLECTIONS = "collections"
FAVORITES = "favorites"


class MongoDB:
    """MongoDB connection manager"""

    def __init__(self, settings):
        self.settings = settings
        self.client: Optional[MongoClient] = None
        self.database: Optional[Database] = None

    def connect(self) -> bool:
        """Connect to MongoDB"""
        try:
            if self.client is None:
                self.client = MongoClient(self.settings.MONGODB_URL)
                self.database = self.client[self.settings.MONGODB_DB_NAME]

            # Test the connection
            self.client.admin.command('ping')
            logger.info(f"Successfully connected to MongoDB database: {self.settings.MONGODB_DB_NAME}")
            return True

        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {str(e)}")
            return False

    def disconnect(self):
        """Disconnect from MongoDB"""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("Disconnected from MongoDB")

    def get_database(self) -> Database:
        """
        Get the database handle.

        MongoClient connects lazily, so this never blocks; connection errors
        surface on the first query.
        """
        if self.database is None:
            self.client = MongoClient(self.settings.MONGODB_URL)
            self.database = self.client[self.settings.MONGODB_DB_NAME]
        return self.database

    def get_collection(self, collection_name: str) -> Collection:
        """Get a collection from the database"""
        return self.get_database()[collection_name]

    def is_connected(self) -> bool:
        """Check if connected to MongoDB"""
        try:
            if self.client:
                self.client.admin.command('ping')
                return True
        except Exception:
            pass
        return False


def ensure_indexes(db: Database):
    """
    Create the indexes the service relies on.

    The unique indexes are what make concurrent registrations and favorites
    safe: the second writer gets a DuplicateKeyError.
    """
    db[USERS].create_index("username", unique=True)
    db[USERS].create_index("email", unique=True)

    db[SOUNDS].create_index([("created_at", DESCENDING)])
    db[SOUNDS].create_index("uploader_id")
    db[SOUNDS].create_index("storage_key")

    db[COLLECTIONS].create_index([("owner_id", ASCENDING), ("created_at", DESCENDING)])
    db[COLLECTIONS].create_index("sound_ids")

    db[FAVORITES].create_index([("user_id", ASCENDING), ("sound_id", ASCENDING)], unique=True)
    db[FAVORITES].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db[FAVORITES].create_index("sound_id")

    logger.info("MongoDB indexes ensured")
