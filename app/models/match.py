import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Canonical pair ordering (user_id < matched_user_id), fixed at creation
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    matched_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    compatibility: Mapped[int] = mapped_column(Integer, nullable=False)

    # Status: pending, active, blocked, declined
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    # Type: suggested, one-way, mutual
    match_type: Mapped[str] = mapped_column(String(20), default="suggested", nullable=False)

    user_liked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    matched_user_liked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    mutual_like: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    session_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # One rating per side, never overwritten
    user_rating_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_rating_comment: Mapped[str | None] = mapped_column(String(300), nullable=True)
    user_rated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    matched_user_rating_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    matched_user_rating_comment: Mapped[str | None] = mapped_column(
        String(300), nullable=True
    )
    matched_user_rated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    last_interaction_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "matched_user_id", name="uq_match_pair"),
        CheckConstraint("user_id < matched_user_id", name="match_user_order_check"),
        CheckConstraint(
            "compatibility >= 0 AND compatibility <= 100",
            name="match_compatibility_range",
        ),
        Index("ix_matches_user_status", "user_id", "status"),
        Index("ix_matches_matched_user_status", "matched_user_id", "status"),
    )

    def involves(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.user_id, self.matched_user_id)

    def other_user_id(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.matched_user_id if self.user_id == user_id else self.user_id

    def liked_by(self, user_id: uuid.UUID) -> bool:
        return self.user_liked if self.user_id == user_id else self.matched_user_liked

    @property
    def average_rating(self) -> float | None:
        scores = [
            s
            for s in (self.user_rating_score, self.matched_user_rating_score)
            if s is not None
        ]
        if not scores:
            return None
        return sum(scores) / len(scores)

    def rating_for(self, user_id: uuid.UUID) -> dict[str, Any] | None:
        """Rating given by ``user_id``, if any."""
        if self.user_id == user_id:
            score, comment, rated_at = (
                self.user_rating_score,
                self.user_rating_comment,
                self.user_rated_at,
            )
        else:
            score, comment, rated_at = (
                self.matched_user_rating_score,
                self.matched_user_rating_comment,
                self.matched_user_rated_at,
            )
        if score is None:
            return None
        return {"score": score, "comment": comment, "rated_at": rated_at}


class MatchInteraction(Base):
    """Append-only history entry of a match."""

    __tablename__ = "match_interactions"

    # Integer key keeps insertion order stable when timestamps collide
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    match_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("matches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # view, like, message, session_request, session_completed, rating,
    # decline, block, delete
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    details: Mapped[dict] = mapped_column(JSON, default=dict)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
