"""
Collection models: named, owned groupings of sounds
"""
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, Field

from models.common import CamelModel, PyObjectId, utc_now
from models.sound import SoundView


class CollectionCreate(CamelModel):
    """Body of POST /api/collections"""
    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


class CollectionSoundAdd(CamelModel):
    """Body of POST /api/collections/{id}/sounds"""
    sound_id: Optional[str] = None


class CollectionInDB(BaseModel):
    """Collection document as stored in MongoDB"""
    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    name: str
    description: Optional[str] = None
    owner_id: PyObjectId
    sound_ids: List[PyObjectId] = []
    is_public: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    class Config:
        populate_by_name = True
        json_encoders = {ObjectId: str}


class CollectionView(CamelModel):
    """Collection with sound ids, returned by mutations"""
    id: str
    name: str
    description: Optional[str] = None
    owner: str
    sounds: List[str] = []
    is_public: bool = False
    created_at: datetime


class CollectionDetail(CamelModel):
    """Collection with its sounds resolved, returned by listings"""
    id: str
    name: str
    description: Optional[str] = None
    owner: str
    sounds: List[SoundView] = []
    is_public: bool = False
    created_at: datetime
