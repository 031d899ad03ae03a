import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_profile, get_current_user
from app.core.exceptions import AppException, InvalidArgumentError, NotFoundError
from app.core.rate_limit import user_rate_limit, users_limiter
from app.database import get_db
from app.models.profile import Profile
from app.schemas.match import CompatibilityResponse
from app.schemas.profile import (
    ProfileBrief,
    ProfileCreate,
    ProfileResponse,
    PublicUserResponse,
    UserProfileResponse,
)
from app.schemas.user import UserBrief, UserResponse
from app.services import match_service, profile_service, user_service
from app.services.compatibility_service import compatibility_breakdown

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="",
    tags=["users"],
    dependencies=[Depends(user_rate_limit(users_limiter))],
)


@router.get("/profile", response_model=UserProfileResponse)
async def get_my_profile(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserProfileResponse:
    """Get the current user together with their study profile, if any."""
    profile = await profile_service.get_profile_by_user_id(db, current_user.id)
    return UserProfileResponse(
        user=current_user,
        profile=ProfileResponse.model_validate(profile) if profile else None,
    )


@router.post("/profile", response_model=UserProfileResponse)
async def save_my_profile(
    profile_data: ProfileCreate,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserProfileResponse:
    """
    Create or update the current user's study profile.

    Saving a profile also runs match discovery. Discovery failures are logged
    and do not fail the profile update.
    """
    profile = await profile_service.upsert_profile(db, current_user.id, profile_data)
    response = UserProfileResponse(
        user=current_user,
        profile=ProfileResponse.model_validate(profile),
    )

    try:
        await match_service.discover(db, current_user.id)
    except (AppException, SQLAlchemyError) as exc:
        await db.rollback()
        logger.warning("Discovery after profile update failed for %s: %s", current_user.id, exc)

    return response


@router.get("/{user_id}", response_model=PublicUserResponse)
async def get_user(
    user_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PublicUserResponse:
    """Public view of another user and their study profile."""
    user = await user_service.get_user_by_id(db, user_id)
    if user is None or not user.is_active:
        raise NotFoundError("User not found", resource="user")

    profile = await profile_service.get_profile_by_user_id(db, user_id)
    return PublicUserResponse(
        user=UserBrief.model_validate(user),
        profile=ProfileBrief.model_validate(profile) if profile else None,
    )


@router.get("/{user_id}/compatibility", response_model=CompatibilityResponse)
async def get_user_compatibility(
    user_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    my_profile: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CompatibilityResponse:
    """
    Preview the compatibility score with another user.

    Returns the overall score (0-100) and how each factor contributed.
    Nothing is stored.
    """
    if user_id == current_user.id:
        raise InvalidArgumentError(
            "Cannot check compatibility with yourself", field="user_id"
        )

    profile = await profile_service.get_profile_by_user_id(db, user_id)
    if profile is None or not profile.is_complete:
        raise NotFoundError("Profile not found", resource="profile")

    return compatibility_breakdown(my_profile, profile)
