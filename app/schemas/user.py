from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TokenPayload(BaseModel):
    """Claims we read from the identity provider token"""

    sub: str
    exp: int
    name: str | None = None
    nickname: str | None = None
    email: str | None = None
    picture: str | None = None

    model_config = ConfigDict(extra="ignore")


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str | None
    avatar: str | None
    is_active: bool
    average_rating: float
    total_ratings: int
    last_active_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserBrief(BaseModel):
    """Public view of another user"""

    id: UUID
    name: str
    avatar: str | None
    average_rating: float = Field(0.0)
    total_ratings: int = 0
    last_active_at: datetime | None = None

    model_config = {"from_attributes": True}


class CurrentUserResponse(BaseModel):
    user: UserResponse
    profile_complete: bool
