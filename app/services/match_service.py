"""
Match lifecycle: discovery, likes, ratings, status changes and the
interaction log.

Counter and flag changes are single UPDATE statements evaluated by the
database, so concurrent requests on the same match never lose a write.
"""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import and_, case, not_, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    DuplicateRatingError,
    InvalidArgumentError,
    NotFoundError,
    ProfileIncompleteError,
    UnauthorizedActionError,
)
from app.models.match import Match, MatchInteraction
from app.schemas.match import InteractionType, MatchStatus, MatchType
from app.services import match_store, profile_service, user_service
from app.services.compatibility_service import calculate_compatibility
from app.services.notification_service import MATCH_INTERACTION, MATCH_MUTUAL, notifier

logger = logging.getLogger(__name__)

DEFAULT_DECLINE_REASON = "No reason provided"
MAX_RATING_COMMENT_LENGTH = 300
CLOSED_STATUSES = [MatchStatus.declined.value, MatchStatus.blocked.value]


async def get_match_for_participant(
    db: AsyncSession,
    match_id: UUID,
    user_id: UUID,
) -> Match:
    """Load a match the user takes part in."""
    match = await match_store.get_match_by_id(db, match_id)
    if match is None:
        raise NotFoundError("Match not found", resource="match")
    if not match.involves(user_id):
        raise UnauthorizedActionError()
    return match


async def _append_interaction(
    db: AsyncSession,
    match_id: UUID,
    interaction_type: str,
    details: dict[str, Any] | None = None,
) -> MatchInteraction:
    now = datetime.now(timezone.utc)
    interaction = MatchInteraction(
        match_id=match_id,
        type=interaction_type,
        details=details or {},
        occurred_at=now,
    )
    db.add(interaction)

    values: dict[str, Any] = {"last_interaction_at": now}
    if interaction_type == InteractionType.session_completed.value:
        values["session_count"] = Match.session_count + 1

    await db.execute(
        update(Match)
        .where(Match.id == match_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await db.flush()
    return interaction


async def _set_status(
    db: AsyncSession,
    match: Match,
    status: MatchStatus,
    interaction_type: InteractionType,
    details: dict[str, Any],
) -> Match:
    match.status = status.value
    await _append_interaction(db, match.id, interaction_type.value, details)
    await db.commit()
    await db.refresh(match)
    return match


async def discover(
    db: AsyncSession,
    user_id: UUID,
    limit: int | None = None,
    force_refresh: bool = False,
) -> list[Match]:
    """
    Find new study partners for a user and persist them as matches.

    Candidates share at least one subject with the user. Only those scoring
    strictly above MATCH_MIN_COMPATIBILITY are kept. Users already paired with
    the caller are skipped unless force_refresh is set, in which case open
    records get a fresh score and keep their status. Declined and blocked
    pairs are always skipped.
    """
    limit = limit or settings.DISCOVERY_DEFAULT_LIMIT

    profile = await profile_service.get_profile_by_user_id(db, user_id)
    if profile is None or not profile.is_complete:
        raise ProfileIncompleteError()

    candidates = await profile_service.find_candidates(
        db,
        profile.subjects,
        exclude_user_id=user_id,
        limit=limit * settings.DISCOVERY_CANDIDATE_MULTIPLIER,
    )

    scored: list[tuple[UUID, int]] = []
    for candidate in candidates:
        score = calculate_compatibility(profile, candidate)
        if score > settings.MATCH_MIN_COMPATIBILITY:
            scored.append((candidate.user_id, score))
    scored.sort(key=lambda item: item[1], reverse=True)

    # Declined and blocked pairs never come back, even on a refresh
    skipped = await match_store.get_paired_user_ids(
        db, user_id, statuses=CLOSED_STATUSES if force_refresh else None
    )
    scored = [item for item in scored if item[0] not in skipped]

    matches = []
    for candidate_id, score in scored[:limit]:
        matches.append(
            await match_store.create_or_update_match(db, user_id, candidate_id, score)
        )
    await db.commit()

    matches.sort(key=lambda m: m.compatibility, reverse=True)
    logger.info(
        "Discovery for %s: %d candidates, %d matches saved",
        user_id,
        len(candidates),
        len(matches),
    )
    return matches


async def toggle_like(db: AsyncSession, match_id: UUID, acting_user_id: UUID) -> Match:
    """
    Flip the acting user's like flag.

    When both sides like each other a pending match becomes active and mutual.
    """
    match = await get_match_for_participant(db, match_id, acting_user_id)
    was_mutual = match.mutual_like

    flag = Match.user_liked if match.user_id == acting_user_id else Match.matched_user_liked
    same_match = Match.id == match.id

    await db.execute(
        update(Match)
        .where(same_match)
        .values({flag.key: not_(flag)})
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(Match)
        .where(same_match)
        .values(mutual_like=and_(Match.user_liked, Match.matched_user_liked))
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(Match)
        .where(
            same_match,
            Match.mutual_like == True,  # noqa: E712
            Match.status == MatchStatus.pending.value,
        )
        .values(status=MatchStatus.active.value, match_type=MatchType.mutual.value)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(Match)
        .where(
            same_match,
            Match.mutual_like == False,  # noqa: E712
            Match.match_type != MatchType.mutual.value,
        )
        .values(
            match_type=case(
                (
                    or_(Match.user_liked, Match.matched_user_liked),
                    MatchType.one_way.value,
                ),
                else_=MatchType.suggested.value,
            )
        )
        .execution_options(synchronize_session=False)
    )
    await db.refresh(match)

    liked = match.liked_by(acting_user_id)
    await _append_interaction(
        db,
        match.id,
        InteractionType.like.value,
        {"user_id": str(acting_user_id), "liked": liked},
    )
    await db.commit()
    await db.refresh(match)

    if match.mutual_like and not was_mutual:
        logger.info("Mutual match %s between %s and %s", match.id, match.user_id, match.matched_user_id)
        await notifier.publish(
            MATCH_MUTUAL,
            {
                "match_id": str(match.id),
                "user_ids": [str(match.user_id), str(match.matched_user_id)],
                "compatibility": match.compatibility,
            },
        )
    return match


async def add_rating(
    db: AsyncSession,
    match_id: UUID,
    acting_user_id: UUID,
    score: int,
    comment: str | None = None,
) -> Match:
    """
    Store the acting user's rating of the match. Each side rates once.
    The score also counts towards the other user's rating stats.
    """
    if isinstance(score, bool) or not isinstance(score, int) or not 1 <= score <= 5:
        raise InvalidArgumentError("Rating must be an integer between 1 and 5", field="score")
    if comment is not None and len(comment) > MAX_RATING_COMMENT_LENGTH:
        raise InvalidArgumentError(
            f"Comment must be at most {MAX_RATING_COMMENT_LENGTH} characters",
            field="comment",
        )

    match = await get_match_for_participant(db, match_id, acting_user_id)
    now = datetime.now(timezone.utc)

    if match.user_id == acting_user_id:
        slot = Match.user_rating_score
        values = {
            "user_rating_score": score,
            "user_rating_comment": comment,
            "user_rated_at": now,
        }
    else:
        slot = Match.matched_user_rating_score
        values = {
            "matched_user_rating_score": score,
            "matched_user_rating_comment": comment,
            "matched_user_rated_at": now,
        }

    result = await db.execute(
        update(Match)
        .where(Match.id == match.id, slot.is_(None))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise DuplicateRatingError()

    await user_service.add_received_rating(db, match.other_user_id(acting_user_id), score)
    await _append_interaction(
        db,
        match.id,
        InteractionType.rating.value,
        {"user_id": str(acting_user_id), "score": score, "comment": comment},
    )
    await db.commit()
    await db.refresh(match)

    logger.info("User %s rated match %s with %d", acting_user_id, match.id, score)
    return match


async def decline(
    db: AsyncSession,
    match_id: UUID,
    acting_user_id: UUID,
    reason: str | None = None,
) -> Match:
    match = await get_match_for_participant(db, match_id, acting_user_id)
    return await _set_status(
        db,
        match,
        MatchStatus.declined,
        InteractionType.decline,
        {"user_id": str(acting_user_id), "reason": reason or DEFAULT_DECLINE_REASON},
    )


async def remove(db: AsyncSession, match_id: UUID, acting_user_id: UUID) -> Match:
    """Soft delete: the record stays, declined."""
    match = await get_match_for_participant(db, match_id, acting_user_id)
    return await _set_status(
        db,
        match,
        MatchStatus.declined,
        InteractionType.delete,
        {"user_id": str(acting_user_id)},
    )


async def block(db: AsyncSession, match_id: UUID, acting_user_id: UUID) -> Match:
    match = await get_match_for_participant(db, match_id, acting_user_id)
    return await _set_status(
        db,
        match,
        MatchStatus.blocked,
        InteractionType.block,
        {"user_id": str(acting_user_id), "blocked": True},
    )


async def unblock(db: AsyncSession, match_id: UUID, acting_user_id: UUID) -> Match:
    """Lift a block. The match goes back to pending."""
    match = await get_match_for_participant(db, match_id, acting_user_id)
    if match.status != MatchStatus.blocked.value:
        raise InvalidArgumentError("Match is not blocked", field="status")
    return await _set_status(
        db,
        match,
        MatchStatus.pending,
        InteractionType.block,
        {"user_id": str(acting_user_id), "blocked": False},
    )


async def record_interaction(
    db: AsyncSession,
    match_id: UUID,
    interaction_type: InteractionType | str,
    details: dict[str, Any] | None = None,
    acting_user_id: UUID | None = None,
) -> MatchInteraction:
    """
    Append an event to the match history.

    session_completed also bumps the session counter. When acting_user_id is
    given the user must take part in the match.
    """
    try:
        interaction_type = InteractionType(interaction_type)
    except ValueError:
        raise InvalidArgumentError(
            f"Unknown interaction type: {interaction_type}", field="type"
        )

    if acting_user_id is not None:
        match = await get_match_for_participant(db, match_id, acting_user_id)
    else:
        match = await match_store.get_match_by_id(db, match_id)
        if match is None:
            raise NotFoundError("Match not found", resource="match")

    interaction = await _append_interaction(db, match.id, interaction_type.value, details)
    await db.commit()
    await db.refresh(interaction)
    await db.refresh(match)

    await notifier.publish(
        MATCH_INTERACTION,
        {
            "match_id": str(match.id),
            "type": interaction_type.value,
            "user_id": str(acting_user_id) if acting_user_id else None,
        },
    )
    return interaction


async def view_match(db: AsyncSession, match_id: UUID, viewer_id: UUID) -> Match:
    """Load a match for one of its participants and log the view."""
    match = await get_match_for_participant(db, match_id, viewer_id)
    await _append_interaction(
        db, match.id, InteractionType.view.value, {"user_id": str(viewer_id)}
    )
    await db.commit()
    await db.refresh(match)
    return match
