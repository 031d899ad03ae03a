from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, ProfileIncompleteError
from app.core.security import decode_access_token
from app.database import get_db
from app.models.profile import Profile
from app.schemas.user import CurrentUserResponse, UserResponse
from app.services import profile_service, user_service

router = APIRouter(prefix="", tags=["auth"])

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """
    Resolve the bearer token to a local user.

    The token is issued by the identity provider; its subject is looked up and
    a local user is created on first sight.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    claims = decode_access_token(credentials.credentials)
    user = await user_service.get_or_create_user(db, claims)
    if not user.is_active:
        raise AuthenticationError("Account is disabled")

    return UserResponse.model_validate(user)


async def get_current_profile(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Study profile of the current user; matching needs a complete one."""
    profile = await profile_service.get_profile_by_user_id(db, current_user.id)
    if profile is None or not profile.is_complete:
        raise ProfileIncompleteError()
    return profile


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CurrentUserResponse:
    profile = await profile_service.get_profile_by_user_id(db, current_user.id)
    return CurrentUserResponse(
        user=current_user,
        profile_complete=profile is not None and profile.is_complete,
    )
