"""
Collection routes. Every route acts on the caller's own collections.
"""

import logging
from typing import List

from fastapi import APIRouter

from models.collection import CollectionCreate, CollectionDetail, CollectionSoundAdd, CollectionView
from models.common import SuccessResponse
from routes.auth import CurrentUser, Services

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/collections", tags=["Collections"])


@router.post("", response_model=CollectionView)
async def create_collection(collection_create: CollectionCreate, current_user: CurrentUser, services: Services):
    """Create an empty collection."""
    return await services.collections.create_collection(collection_create, current_user)


@router.get("", response_model=List[CollectionDetail])
async def list_collections(current_user: CurrentUser, services: Services):
    """The caller's collections with their sounds, newest first."""
    return await services.collections.list_collections(current_user)


@router.post("/{collection_id}/sounds", response_model=CollectionView)
async def add_sound_to_collection(
    collection_id: str,
    body: CollectionSoundAdd,
    current_user: CurrentUser,
    services: Services,
):
    """Add a sound to a collection. Owner only."""
    return await services.collections.add_sound(collection_id, body.sound_id, current_user)


@router.delete("/{collection_id}/sounds/{sound_id}", response_model=CollectionView)
async def remove_sound_from_collection(
    collection_id: str,
    sound_id: str,
    current_user: CurrentUser,
    services: Services,
):
    """Remove a sound from a collection. Owner only."""
    return await services.collections.remove_sound(collection_id, sound_id, current_user)


@router.delete("/{collection_id}", response_model=SuccessResponse)
async def delete_collection(collection_id: str, current_user: CurrentUser, services: Services):
    """Delete a collection. Owner only."""
    await services.collections.delete_collection(collection_id, current_user)
    return SuccessResponse()
