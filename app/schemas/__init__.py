from app.schemas.match import (
    CompatibilityBreakdown,
    CompatibilityResponse,
    DeclineRequest,
    InteractionCreate,
    InteractionResponse,
    InteractionType,
    LikeResponse,
    MatchDetailResponse,
    MatchFindRequest,
    MatchFindResponse,
    MatchListResponse,
    MatchResponse,
    MatchStatsResponse,
    MatchStatus,
    MatchStatusResponse,
    MatchType,
    RatingCreate,
    RatingResult,
)
from app.schemas.profile import (
    LearningStyle,
    ProfileBrief,
    ProfileCreate,
    ProfileResponse,
    PublicUserResponse,
    UserProfileResponse,
    Weekday,
)
from app.schemas.user import CurrentUserResponse, TokenPayload, UserBrief, UserResponse

__all__ = [
    "TokenPayload",
    "UserResponse",
    "UserBrief",
    "CurrentUserResponse",
    "LearningStyle",
    "Weekday",
    "ProfileCreate",
    "ProfileResponse",
    "ProfileBrief",
    "UserProfileResponse",
    "PublicUserResponse",
    "MatchStatus",
    "MatchType",
    "InteractionType",
    "CompatibilityBreakdown",
    "CompatibilityResponse",
    "MatchResponse",
    "MatchDetailResponse",
    "MatchListResponse",
    "MatchFindRequest",
    "MatchFindResponse",
    "LikeResponse",
    "RatingCreate",
    "RatingResult",
    "DeclineRequest",
    "InteractionCreate",
    "InteractionResponse",
    "MatchStatusResponse",
    "MatchStatsResponse",
]
