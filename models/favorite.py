"""
Favorite models: one bookmark per (user, sound) pair
"""
from datetime import datetime
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, Field

from models.common import CamelModel, PyObjectId, utc_now


class FavoriteCreate(CamelModel):
    """Body of POST /api/favorites"""
    sound_id: Optional[str] = None


class FavoriteInDB(BaseModel):
    """Favorite document as stored in MongoDB"""
    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    user_id: PyObjectId
    sound_id: PyObjectId
    created_at: datetime = Field(default_factory=utc_now)

    class Config:
        populate_by_name = True
        json_encoders = {ObjectId: str}


class FavoriteView(CamelModel):
    """Favorite as returned by the API"""
    id: str
    user: str
    sound: str
    created_at: datetime
