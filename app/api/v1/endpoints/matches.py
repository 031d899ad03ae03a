import math
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_profile, get_current_user
from app.core.rate_limit import matches_limiter, user_rate_limit
from app.database import get_db
from app.models.match import Match
from app.schemas.match import (
    DeclineRequest,
    InteractionCreate,
    InteractionResponse,
    LikeResponse,
    MatchDetailResponse,
    MatchFindRequest,
    MatchFindResponse,
    MatchListResponse,
    MatchResponse,
    MatchStatsResponse,
    MatchStatus,
    MatchStatusResponse,
    OtherUser,
    RatingCreate,
    RatingResponse,
    RatingResult,
)
from app.schemas.profile import ProfileBrief
from app.schemas.user import UserBrief, UserResponse
from app.services import match_query_service, match_service, profile_service, user_service

router = APIRouter(
    prefix="",
    tags=["matches"],
    dependencies=[Depends(user_rate_limit(matches_limiter))],
)

RECENT_INTERACTIONS = 10


async def _to_responses(
    db: AsyncSession,
    matches: list[Match],
    current_user_id: UUID,
    response_model: type[MatchResponse] = MatchResponse,
) -> list[MatchResponse]:
    """Serialize matches with the other participant's user and profile."""
    other_ids = [match.other_user_id(current_user_id) for match in matches]
    users = await user_service.get_users_by_ids(db, other_ids)
    profiles = await profile_service.get_profiles_by_user_ids(db, other_ids)

    responses = []
    for match, other_id in zip(matches, other_ids):
        response = response_model.model_validate(match)
        user = users.get(other_id)
        if user is not None:
            profile = profiles.get(other_id)
            response.other_user = OtherUser(
                user=UserBrief.model_validate(user),
                profile=ProfileBrief.model_validate(profile) if profile else None,
            )
        responses.append(response)
    return responses


def _rating(match: Match, user_id: UUID) -> RatingResponse | None:
    rating = match.rating_for(user_id)
    return RatingResponse(**rating) if rating else None


@router.get(
    "/",
    response_model=MatchListResponse,
    dependencies=[Depends(get_current_profile)],
)
async def get_my_matches(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    match_status: MatchStatus = Query(MatchStatus.active, alias="status"),
    min_compatibility: int | None = Query(None, ge=0, le=100),
    subjects: str | None = Query(None, description="Comma-separated subjects"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> MatchListResponse:
    """Get the current user's matches, best first. Lists active matches by default."""
    subject_list = [s for s in subjects.split(",") if s.strip()] if subjects else None

    matches, total = await match_query_service.list_matches(
        db,
        current_user.id,
        status=match_status.value,
        min_compatibility=min_compatibility,
        subjects=subject_list,
        page=page,
        per_page=per_page,
    )

    return MatchListResponse(
        matches=await _to_responses(db, matches, current_user.id),
        total=total,
        page=page,
        per_page=per_page,
        pages=math.ceil(total / per_page),
    )


# NOTE: These specific routes MUST be defined before /{match_id} to avoid route conflicts
@router.post("/find", response_model=MatchFindResponse)
async def find_matches(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    data: MatchFindRequest | None = None,
) -> MatchFindResponse:
    """
    Discover study partners and save them as matches.

    Requires a complete study profile. Users you already have a match with are
    skipped unless force_refresh is set.
    """
    data = data or MatchFindRequest()
    matches = await match_service.discover(
        db, current_user.id, limit=data.limit, force_refresh=data.force_refresh
    )

    return MatchFindResponse(
        matches=await _to_responses(db, matches, current_user.id),
        count=len(matches),
        message=f"Found {len(matches)} new matches",
    )


@router.get(
    "/stats/summary",
    response_model=MatchStatsResponse,
    dependencies=[Depends(get_current_profile)],
)
async def get_match_stats(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MatchStatsResponse:
    stats = await match_query_service.get_match_stats(db, current_user.id)
    return MatchStatsResponse(**stats)


# Dynamic routes MUST come after specific routes to avoid conflicts
@router.get("/{match_id}", response_model=MatchDetailResponse)
async def get_match(
    match_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MatchDetailResponse:
    """Get match details with the latest interactions. Viewing is recorded."""
    match = await match_service.view_match(db, match_id, current_user.id)
    interactions = await match_query_service.list_interactions(
        db, match.id, limit=RECENT_INTERACTIONS
    )

    [response] = await _to_responses(
        db, [match], current_user.id, response_model=MatchDetailResponse
    )
    response.liked = match.liked_by(current_user.id)
    response.my_rating = _rating(match, current_user.id)
    response.their_rating = _rating(match, match.other_user_id(current_user.id))
    response.recent_interactions = [
        InteractionResponse.model_validate(i) for i in interactions
    ]
    return response


@router.post("/{match_id}/like", response_model=LikeResponse)
async def like_match(
    match_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LikeResponse:
    """Like or un-like a match."""
    match = await match_service.toggle_like(db, match_id, current_user.id)
    return LikeResponse(
        id=match.id,
        liked=match.liked_by(current_user.id),
        mutual_like=match.mutual_like,
        status=match.status,
        match_type=match.match_type,
        message="It's a mutual match!" if match.mutual_like else "Like updated",
    )


@router.post("/{match_id}/rate", response_model=RatingResult)
async def rate_match(
    match_id: UUID,
    rating: RatingCreate,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RatingResult:
    """Rate a match once. Ratings cannot be changed afterwards."""
    match = await match_service.add_rating(
        db, match_id, current_user.id, rating.score, rating.comment
    )
    return RatingResult(
        id=match.id,
        rating=_rating(match, current_user.id),
        average_rating=match.average_rating,
        message="Rating added",
    )


@router.post("/{match_id}/decline", response_model=MatchStatusResponse)
async def decline_match(
    match_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    data: DeclineRequest | None = None,
) -> MatchStatusResponse:
    match = await match_service.decline(
        db, match_id, current_user.id, data.reason if data else None
    )
    return MatchStatusResponse(id=match.id, status=match.status, message="Match declined")


@router.post("/{match_id}/block", response_model=MatchStatusResponse)
async def block_match(
    match_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MatchStatusResponse:
    match = await match_service.block(db, match_id, current_user.id)
    return MatchStatusResponse(id=match.id, status=match.status, message="Match blocked")


@router.post("/{match_id}/unblock", response_model=MatchStatusResponse)
async def unblock_match(
    match_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MatchStatusResponse:
    match = await match_service.unblock(db, match_id, current_user.id)
    return MatchStatusResponse(id=match.id, status=match.status, message="Match unblocked")


@router.post(
    "/{match_id}/interactions",
    response_model=InteractionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_interaction(
    match_id: UUID,
    data: InteractionCreate,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> InteractionResponse:
    """Record an interaction such as a message or a completed study session."""
    interaction = await match_service.record_interaction(
        db, match_id, data.type, data.details, acting_user_id=current_user.id
    )
    return InteractionResponse.model_validate(interaction)


@router.delete("/{match_id}", response_model=MatchStatusResponse)
async def delete_match(
    match_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MatchStatusResponse:
    """Remove a match. The record is kept as declined."""
    match = await match_service.remove(db, match_id, current_user.id)
    return MatchStatusResponse(id=match.id, status=match.status, message="Match removed")
