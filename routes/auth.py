"""
Authentication routes and the bearer-token guards used by every router.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from models.user import AuthResponse, TokenVerification, User, UserCreate, UserLogin
from services.container import ServiceContainer
from services.errors import AuthError

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Security scheme; missing headers are handled by the guards below
security = HTTPBearer(auto_error=False)


def get_services(request: Request) -> ServiceContainer:
    """Service container built by create_app"""
    return request.app.state.services


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> User:
    """Required auth: 401 unless the bearer token resolves to a live user"""
    token = credentials.credentials if credentials else None
    return await services.auth.validate(token)


async def get_optional_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> Optional[User]:
    """Optional auth: the identity, or None on any failure"""
    if not credentials:
        return None
    try:
        return await services.auth.validate(credentials.credentials)
    except AuthError as e:
        logger.debug(f"Ignoring invalid optional credentials: {e.message}")
        return None


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
Services = Annotated[ServiceContainer, Depends(get_services)]


@router.post("/register", response_model=AuthResponse)
async def register_user(user_create: UserCreate, services: Services):
    """
    Register a new user.

    - **username**: unique handle
    - **email**: unique email address
    - **password**: at least 6 characters

    Returns a token and the public profile.
    """
    logger.info(f"[REGISTER] Registering {user_create.username}")
    return await services.auth.register(user_create)


@router.post("/login", response_model=AuthResponse)
async def login_user(user_login: UserLogin, services: Services):
    """
    Authenticate by email and password and return a JWT.
    """
    return await services.auth.login(user_login)


@router.get("/me", response_model=User)
async def get_current_user_profile(current_user: CurrentUser):
    """
    Get current user profile.

    Requires valid JWT token in Authorization header.
    """
    return current_user


@router.get("/verify", response_model=TokenVerification)
async def verify_token_endpoint(current_user: CurrentUser):
    """
    Verify if the provided token is valid.
    """
    return TokenVerification(user_id=current_user.id, username=current_user.username)
