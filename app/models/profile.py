import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Subjects as entered by the user; normalised copies live in profile_subjects
    subjects: Mapped[list] = mapped_column(JSON, default=list)
    # 1: visual, 2: auditory, 3: kinesthetic, 4: reading/writing
    learning_style: Mapped[int] = mapped_column(Integer, nullable=False)
    # Weekday names, Monday..Sunday
    availability: Mapped[list] = mapped_column(JSON, default=list)
    performance_level: Mapped[int] = mapped_column(Integer, nullable=False)
    goals: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationship
    user: Mapped["User"] = relationship("User", back_populates="profile")

    @property
    def is_complete(self) -> bool:
        return bool(
            self.subjects
            and self.availability
            and self.learning_style
            and self.performance_level
        )


class ProfileSubject(Base):
    """Lower-cased subject of a profile, one row per subject."""

    __tablename__ = "profile_subjects"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("profile_id", "name", name="uq_profile_subject"),
    )
