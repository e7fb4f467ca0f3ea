"""
Script to create MongoDB indexes for the sound board collections
"""
import logging

from config import settings
from database.connection import COLLECTIONS, FAVORITES, SOUNDS, USERS, MongoDB, ensure_indexes

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_indexes():
    """Create indexes and list what exists afterwards"""
    mongodb = MongoDB(settings)
    if not mongodb.connect():
        raise RuntimeError("Failed to connect to MongoDB")

    try:
        db = mongodb.get_database()
        ensure_indexes(db)

        for name in (USERS, SOUNDS, COLLECTIONS, FAVORITES):
            logger.info(f"📊 {name} collection indexes:")
            for index in db[name].list_indexes():
                unique = " (unique)" if index.get("unique") else ""
                logger.info(f"   - {index['name']}: {dict(index.get('key', {}))}{unique}")

    except Exception as e:
        logger.error(f"❌ Error creating indexes: {str(e)}")
        raise
    finally:
        mongodb.disconnect()


if __name__ == "__main__":
    create_indexes()
