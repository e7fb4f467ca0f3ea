"""
User models for the authentication system.
"""

from datetime import datetime
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, EmailStr, Field, field_validator

from models.common import CamelModel, PyObjectId, utc_now


class UserCreate(BaseModel):
    """
    User registration body.

    Fields are optional here so that a missing field is reported by the
    auth service with a readable message instead of a schema error.
    """
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator('username', mode='before')
    @classmethod
    def validate_username(cls, v):
        """Trim the handle"""
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator('email', mode='before')
    @classmethod
    def validate_email(cls, v):
        """Normalize email"""
        if isinstance(v, str):
            return v.strip().lower() or None
        return v


class UserLogin(BaseModel):
    """User login model"""
    email: Optional[str] = None
    password: Optional[str] = None


class UserInDB(BaseModel):
    """User model as stored in database"""
    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    username: str
    email: str
    hashed_password: str
    created_at: datetime = Field(default_factory=utc_now)

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True
        json_encoders = {ObjectId: str}


class User(CamelModel):
    """Public identity, safe to return from the API"""
    id: str
    username: str
    email: str
    created_at: Optional[datetime] = None


class UserSummary(CamelModel):
    """Uploader reference embedded in sound views"""
    id: str
    username: str


class AuthResponse(CamelModel):
    """Register/login response"""
    token: str
    user: User


class TokenData(BaseModel):
    """Token data model"""
    user_id: Optional[str] = None
    username: Optional[str] = None


class TokenVerification(CamelModel):
    """Response of the token verification endpoint"""
    message: str = "Token is valid"
    user_id: str
    username: str
