"""
Storage of match records keyed by unordered user pairs.

Pair members are sorted before insert so the (user_id, matched_user_id) unique
constraint covers both orderings. Lookups still check both orderings.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicatePairError, InvalidArgumentError, NotFoundError
from app.models.match import Match

logger = logging.getLogger(__name__)


def canonical_pair(user_a_id: UUID, user_b_id: UUID) -> tuple[UUID, UUID]:
    if user_a_id == user_b_id:
        raise InvalidArgumentError("Cannot match a user with themselves", field="user_id")
    if user_a_id > user_b_id:
        return user_b_id, user_a_id
    return user_a_id, user_b_id


def _pair_clause(user_a_id: UUID, user_b_id: UUID):
    return or_(
        and_(Match.user_id == user_a_id, Match.matched_user_id == user_b_id),
        and_(Match.user_id == user_b_id, Match.matched_user_id == user_a_id),
    )


async def get_match_by_id(db: AsyncSession, match_id: UUID) -> Match | None:
    """Get match by ID."""
    result = await db.execute(
        select(Match)
        .where(Match.id == match_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_pair(db: AsyncSession, user_a_id: UUID, user_b_id: UUID) -> Match | None:
    """Match between two users in any status, whichever order they were stored in."""
    result = await db.execute(select(Match).where(_pair_clause(user_a_id, user_b_id)))
    return result.scalar_one_or_none()


async def create_match(
    db: AsyncSession,
    user_a_id: UUID,
    user_b_id: UUID,
    compatibility: int,
) -> Match:
    """
    Create a new pending, suggested match.

    Raises DuplicatePairError when the pair already has a record, including
    when a concurrent insert wins the race on the unique constraint.
    """
    user_id, matched_user_id = canonical_pair(user_a_id, user_b_id)

    match = Match(
        user_id=user_id,
        matched_user_id=matched_user_id,
        compatibility=compatibility,
        status="pending",
        match_type="suggested",
    )
    try:
        async with db.begin_nested():
            db.add(match)
    except IntegrityError:
        logger.info("Match between %s and %s already exists", user_id, matched_user_id)
        raise DuplicatePairError()

    await db.refresh(match)
    logger.info(
        "Created match %s between %s and %s (compatibility=%d)",
        match.id,
        user_id,
        matched_user_id,
        compatibility,
    )
    return match


async def upsert_compatibility(
    db: AsyncSession,
    user_a_id: UUID,
    user_b_id: UUID,
    compatibility: int,
) -> Match:
    """Refresh the score of an existing pair. Status is left untouched."""
    match = await find_pair(db, user_a_id, user_b_id)
    if match is None:
        raise NotFoundError("Match not found", resource="match")

    await db.execute(
        update(Match)
        .where(Match.id == match.id)
        .values(
            compatibility=compatibility,
            last_interaction_at=datetime.now(timezone.utc),
        )
    )
    await db.refresh(match)
    return match


async def create_or_update_match(
    db: AsyncSession,
    user_a_id: UUID,
    user_b_id: UUID,
    compatibility: int,
) -> Match:
    """Create the pair's record, or refresh its score if one already exists."""
    existing = await find_pair(db, user_a_id, user_b_id)
    if existing is not None:
        return await upsert_compatibility(db, user_a_id, user_b_id, compatibility)

    try:
        return await create_match(db, user_a_id, user_b_id, compatibility)
    except DuplicatePairError:
        # Lost the insert race; the winner's record gets the new score
        return await upsert_compatibility(db, user_a_id, user_b_id, compatibility)


async def get_paired_user_ids(
    db: AsyncSession,
    user_id: UUID,
    statuses: list[str] | None = None,
) -> set[UUID]:
    """Users that already share a match record with ``user_id``, optionally only in the given statuses."""
    query = select(Match.user_id, Match.matched_user_id).where(
        or_(Match.user_id == user_id, Match.matched_user_id == user_id)
    )
    if statuses:
        query = query.where(Match.status.in_(statuses))

    result = await db.execute(query)
    return {
        matched_user_id if first_id == user_id else first_id
        for first_id, matched_user_id in result.all()
    }
