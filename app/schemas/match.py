from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.profile import ProfileBrief
from app.schemas.user import UserBrief


class MatchStatus(str, Enum):
    pending = "pending"
    active = "active"
    blocked = "blocked"
    declined = "declined"


class MatchType(str, Enum):
    suggested = "suggested"
    one_way = "one-way"
    mutual = "mutual"


class InteractionType(str, Enum):
    view = "view"
    like = "like"
    message = "message"
    session_request = "session_request"
    session_completed = "session_completed"
    rating = "rating"
    decline = "decline"
    block = "block"
    delete = "delete"


class CompatibilityBreakdown(BaseModel):
    """Score of a single compatibility factor"""

    score: float
    max_score: int
    detail: str


class CompatibilityResponse(BaseModel):
    score: int
    breakdown: dict[str, CompatibilityBreakdown]


class OtherUser(BaseModel):
    """The other person in a match, from the viewer's side"""

    user: UserBrief
    profile: ProfileBrief | None = None


class MatchResponse(BaseModel):
    """Match details returned by API"""

    id: UUID
    user_id: UUID
    matched_user_id: UUID
    compatibility: int
    status: str
    match_type: str
    mutual_like: bool
    user_liked: bool
    matched_user_liked: bool
    session_count: int
    average_rating: float | None = None
    last_interaction_at: datetime
    created_at: datetime

    # Filled in for the requesting user
    other_user: OtherUser | None = None

    model_config = ConfigDict(from_attributes=True)


class InteractionResponse(BaseModel):
    id: int
    type: str
    details: dict[str, Any]
    occurred_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RatingResponse(BaseModel):
    score: int
    comment: str | None
    rated_at: datetime | None


class MatchDetailResponse(MatchResponse):
    """Single match as seen by one of its participants"""

    liked: bool = False
    my_rating: RatingResponse | None = None
    their_rating: RatingResponse | None = None
    recent_interactions: list[InteractionResponse] = []


class MatchListResponse(BaseModel):
    """Paginated list of matches"""

    matches: list[MatchResponse]
    total: int
    page: int
    per_page: int
    pages: int


class MatchFindRequest(BaseModel):
    limit: int = Field(20, ge=1, le=50)
    force_refresh: bool = False


class MatchFindResponse(BaseModel):
    matches: list[MatchResponse]
    count: int
    message: str


class LikeResponse(BaseModel):
    id: UUID
    liked: bool
    mutual_like: bool
    status: str
    match_type: str
    message: str


class RatingCreate(BaseModel):
    score: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=300)


class RatingResult(BaseModel):
    id: UUID
    rating: RatingResponse
    average_rating: float | None
    message: str


class DeclineRequest(BaseModel):
    reason: str | None = Field(None, max_length=300)


class InteractionCreate(BaseModel):
    type: InteractionType
    details: dict[str, Any] = {}


class MatchStatusResponse(BaseModel):
    id: UUID
    status: str
    message: str


class MatchStatsResponse(BaseModel):
    total_matches: int
    active_matches: int
    pending_matches: int
    mutual_matches: int
    average_compatibility: int
    max_compatibility: int
    min_compatibility: int
    match_rate: int
