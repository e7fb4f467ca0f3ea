"""
Sound routes: public listing, owner-only mutation.
"""

import logging
from typing import List

from fastapi import APIRouter

from models.common import SuccessResponse
from models.sound import SoundCreate, SoundUpdate, SoundView
from routes.auth import CurrentUser, OptionalUser, Services

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/sounds", tags=["Sounds"])


@router.get("", response_model=List[SoundView])
async def list_sounds(current_user: OptionalUser, services: Services):
    """
    All sounds, newest first.

    Anonymous callers are welcome; signed-in callers get `isFavorite` set
    on the sounds they bookmarked.
    """
    return await services.sounds.list_sounds(current_user)


@router.get("/{sound_id}", response_model=SoundView)
async def get_sound(sound_id: str, current_user: OptionalUser, services: Services):
    """One sound by id."""
    return await services.sounds.get_sound(sound_id, current_user)


@router.post("", response_model=SoundView)
async def create_sound(sound_create: SoundCreate, current_user: CurrentUser, services: Services):
    """
    Register a sound that was uploaded to storage with an upload token.

    - **name**, **url**: required
    - **size**, **duration**: checked against the configured limits
    """
    return await services.sounds.create_sound(sound_create, current_user)


@router.put("/{sound_id}", response_model=SoundView)
async def update_sound(sound_id: str, sound_update: SoundUpdate, current_user: CurrentUser, services: Services):
    """Rename or recolor a sound. Uploader only."""
    return await services.sounds.update_sound(sound_id, sound_update, current_user)


@router.delete("/{sound_id}", response_model=SuccessResponse)
async def delete_sound(sound_id: str, current_user: CurrentUser, services: Services):
    """
    Delete a sound. Uploader only.

    The storage object, favorites and collection memberships are cleaned
    up on a best-effort basis.
    """
    await services.sounds.delete_sound(sound_id, current_user)
    return SuccessResponse()
