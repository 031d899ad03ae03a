from datetime import datetime
from enum import Enum, IntEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.user import UserBrief, UserResponse


class LearningStyle(IntEnum):
    visual = 1
    auditory = 2
    kinesthetic = 3
    reading_writing = 4


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"


class ProfileCreate(BaseModel):
    """Create or replace the study profile"""

    subjects: list[str] = Field(..., min_length=1, max_length=10)
    learning_style: LearningStyle
    availability: list[Weekday] = Field(..., min_length=1, max_length=7)
    performance_level: int = Field(..., ge=1, le=5)
    goals: str | None = Field(None, max_length=500)

    @field_validator("subjects")
    @classmethod
    def clean_subjects(cls, value: list[str]) -> list[str]:
        cleaned = []
        seen = set()
        for subject in value:
            subject = subject.strip()
            if not subject or len(subject) > 50:
                raise ValueError("Subjects must be between 1 and 50 characters")
            if subject.lower() in seen:
                continue
            seen.add(subject.lower())
            cleaned.append(subject)
        return cleaned

    @field_validator("availability")
    @classmethod
    def unique_days(cls, value: list[Weekday]) -> list[Weekday]:
        return list(dict.fromkeys(value))


class ProfileResponse(BaseModel):
    id: UUID
    user_id: UUID
    subjects: list[str]
    learning_style: int
    availability: list[str]
    performance_level: int
    goals: str | None
    is_complete: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileBrief(BaseModel):
    """Profile fields shown to other users"""

    subjects: list[str]
    learning_style: int
    availability: list[str]
    performance_level: int
    goals: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserProfileResponse(BaseModel):
    """Current user with their study profile"""

    user: UserResponse
    profile: ProfileResponse | None = None


class PublicUserResponse(BaseModel):
    user: UserBrief
    profile: ProfileBrief | None = None
