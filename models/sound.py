"""
Sound (clip) models for the sounds collection
"""
from datetime import datetime
from typing import Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, Field

from models.common import CamelModel, PyObjectId, utc_now
from models.user import UserSummary

DEFAULT_ICON = "fa-music"


class SoundCreate(CamelModel):
    """Body of POST /api/sounds"""
    name: Optional[str] = None
    url: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    duration: Optional[float] = None  # seconds
    size: Optional[int] = None  # bytes


class SoundUpdate(CamelModel):
    """Partial update; only supplied fields change"""
    name: Optional[str] = None
    color: Optional[str] = None


class SoundInDB(BaseModel):
    """Sound document as stored in MongoDB"""
    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    name: str
    url: str
    color: Optional[str] = None
    icon: str = DEFAULT_ICON
    duration: Optional[float] = None
    size: Optional[int] = None
    storage_key: Optional[str] = None  # bucket key when url is on the public storage domain
    uploader_id: Optional[PyObjectId] = None  # None once the uploader is gone
    created_at: datetime = Field(default_factory=utc_now)

    class Config:
        populate_by_name = True
        json_encoders = {ObjectId: str, datetime: lambda v: v.isoformat()}


class SoundView(CamelModel):
    """Sound as returned by the API"""
    id: str
    name: str
    url: str
    color: Optional[str] = None
    icon: str = DEFAULT_ICON
    duration: Optional[float] = None
    size: Optional[int] = None
    uploader: Optional[UserSummary] = None
    created_at: datetime
    is_favorite: bool = False


class DeletionReport(CamelModel):
    """
    Outcome of a sound deletion cascade.

    Steps appear in execution order. Only the record step may fail the
    whole operation; the others land in `failed` with their error text.
    """
    sound_id: str
    completed: List[str] = []
    skipped: List[str] = []
    failed: Dict[str, str] = {}
