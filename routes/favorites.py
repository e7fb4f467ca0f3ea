"""
Favorite routes.
"""

import logging
from typing import List

from fastapi import APIRouter

from models.common import SuccessResponse
from models.favorite import FavoriteCreate, FavoriteView
from models.sound import SoundView
from routes.auth import CurrentUser, Services

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/favorites", tags=["Favorites"])


@router.post("", response_model=FavoriteView)
async def add_favorite(favorite_create: FavoriteCreate, current_user: CurrentUser, services: Services):
    """Favorite a sound; favoriting twice is rejected."""
    return await services.favorites.add_favorite(favorite_create, current_user)


@router.delete("/{sound_id}", response_model=SuccessResponse)
async def remove_favorite(sound_id: str, current_user: CurrentUser, services: Services):
    """Unfavorite a sound."""
    await services.favorites.remove_favorite(sound_id, current_user)
    return SuccessResponse()


@router.get("", response_model=List[SoundView])
async def list_favorites(current_user: CurrentUser, services: Services):
    """The caller's favorited sounds."""
    return await services.favorites.list_favorites(current_user)
