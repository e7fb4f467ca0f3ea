"""
Shared helpers for the document models.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator
from pydantic.alias_generators import to_camel


def utc_now():
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def validate_object_id(v):
    """Validate ObjectId"""
    if isinstance(v, ObjectId):
        return str(v)
    if isinstance(v, str):
        if ObjectId.is_valid(v):
            return v
        raise ValueError("Invalid ObjectId")
    raise ValueError("Invalid ObjectId")


PyObjectId = Annotated[str, BeforeValidator(validate_object_id)]


def parse_object_id(value) -> Optional[ObjectId]:
    """Convert a path/body id to an ObjectId, or None when it is not one"""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class CamelModel(BaseModel):
    """API model serialized with camelCase keys; accepts either case on input"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class SuccessResponse(BaseModel):
    """Plain acknowledgement body"""
    success: bool = True
